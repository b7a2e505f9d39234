"""FastAPI application entry point."""

import logging
from typing import Optional

from fastapi import FastAPI, WebSocket, Query, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from .config import Settings, settings
from .controller import StoryReadingController
from ..domain.entities.story import BookReport, QuizResult
from ..domain.entities.user_preferences import UserPreferences
from ..domain.entities.websocket_messages import ErrorCode, ErrorMessage, SessionCreate
from ..infrastructure import (
    CloudSpeechClient,
    DynamoDBPreferencesProvider,
    DynamoDBStoryRepository,
    LocalPreferencesProvider,
    LocalStoryRepository,
    MockSpeechBackend,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


class CreateStoryRequest(BaseModel):
    topic: str = Field(min_length=1)
    length: Optional[int] = Field(None, ge=1, le=3)


class QuizAnswersRequest(BaseModel):
    answers: list[str]


def build_controller(config: Settings) -> StoryReadingController:
    """Wire providers according to the configured backends."""
    default_preferences = UserPreferences(
        voice=config.default_voice, speaking_rate=config.speaking_rate
    )
    if config.storage_backend == "dynamodb":
        story_repository = DynamoDBStoryRepository(
            config.stories_table_name, config.aws_region, max_stories=config.max_saved_stories
        )
        preferences_provider = DynamoDBPreferencesProvider(
            config.preferences_table_name, config.aws_region, defaults=default_preferences
        )
    else:
        story_repository = LocalStoryRepository(max_stories=config.max_saved_stories)
        preferences_provider = LocalPreferencesProvider(defaults=default_preferences)

    if config.speech_backend == "cloud":
        speech = CloudSpeechClient(
            config.functions_base_url,
            timeout=config.functions_timeout,
            api_key=config.functions_api_key,
        )
    else:
        speech = MockSpeechBackend(sample_rate=config.tts_sample_rate)

    return StoryReadingController(
        story_repository=story_repository,
        preferences_provider=preferences_provider,
        story_generator=speech,
        synthesizer=speech,
        transcriber=speech,
        phoneme_provider=speech,
        reading_config=config.reading_config(),
        tts_sample_rate=config.tts_sample_rate,
    )


# Create FastAPI app instance
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

controller = build_controller(settings)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return controller.get_health_status()


@app.get("/stories")
async def list_stories(user_id: str = Query(..., description="User ID to list stories for")):
    """List a user's saved stories, newest first."""
    stories = await controller.list_stories(user_id)
    return {"stories": stories, "user_id": user_id}


@app.post("/stories", status_code=status.HTTP_201_CREATED)
async def create_story(request: CreateStoryRequest, user_id: str = Query(...)):
    """Generate a story about a topic and save it."""
    try:
        story = await controller.create_story(user_id, request.topic, request.length)
        return story.model_dump(mode="json")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating story for user {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Could not generate story")


@app.delete("/stories/{story_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_story(story_id: int, user_id: str = Query(...)):
    """Delete a saved story."""
    try:
        await controller.delete_story(user_id, story_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/stories/{story_id}/quiz", response_model=QuizResult)
async def submit_quiz(story_id: int, request: QuizAnswersRequest, user_id: str = Query(...)):
    """Grade quiz answers and store the result on the story."""
    try:
        return await controller.submit_quiz(user_id, story_id, request.answers)
    except ValueError as e:
        code = 404 if "not found" in str(e) else 400
        raise HTTPException(status_code=code, detail=str(e))


@app.put("/stories/{story_id}/report")
async def save_book_report(story_id: int, report: BookReport, user_id: str = Query(...)):
    """Attach a book report to a story."""
    try:
        story = await controller.save_book_report(user_id, story_id, report)
        return story.model_dump(mode="json")
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/preferences/{user_id}", response_model=UserPreferences)
async def get_preferences(user_id: str):
    """Get a user's reading preferences."""
    return await controller.get_preferences(user_id)


@app.put("/preferences/{user_id}", response_model=UserPreferences)
async def update_preferences(user_id: str, preferences: UserPreferences):
    """Update a user's reading preferences."""
    return await controller.update_preferences(user_id, preferences)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for story reading sessions.

    Handles full-duplex communication for:
    - Microphone audio from the client (binary PCM16LE mono frames)
    - Prompt audio to the client (binary WAV frames)
    - JSON control/event messages (text messages)

    Connection lifecycle:
    1. Client connects
    2. Client sends session.create with user_id and story_id
    3. Server responds with session.created (includes session_id)
    4. Server sends session.ready and flow.state; reading begins on reading.start
    5. On disconnect, the learner leaves the story and the session ends
    """
    await websocket.accept()

    try:
        try:
            message = SessionCreate.model_validate_json(await websocket.receive_text())
        except ValidationError as e:
            logger.error(f"Expected session.create message: {e.errors()[:1]}")
            await _send_error(websocket, ErrorCode.INVALID_MESSAGE, "First message must be session.create")
            await websocket.close()
            return

        try:
            await controller.handle_websocket_connection(
                websocket=websocket,
                user_id=message.user_id,
                story_id=message.story_id,
                sample_rate=message.sample_rate,
            )
        except ValueError as e:
            logger.warning(f"Story lookup failed: {e}")
            await _send_error(websocket, ErrorCode.STORY_NOT_FOUND, str(e))
            await websocket.close()
    except Exception as e:
        logger.error(f"Error handling websocket connection: {e}", exc_info=True)
        try:
            await websocket.close()
        except Exception:
            pass


async def _send_error(websocket: WebSocket, code: ErrorCode, message: str) -> None:
    await websocket.send_text(ErrorMessage(code=code, message=message).model_dump_json())
