"""Story reading controller for handling business logic and coordination."""

import asyncio
import logging
from typing import Optional

from fastapi import WebSocket

from ..domain.entities import ReadingSessionState, Story
from ..domain.entities.story import BookReport, QuizResult
from ..domain.entities.user_preferences import UserPreferences
from ..domain.entities.websocket_messages import SessionCreated
from ..domain.interfaces.preferences_provider import PreferencesProvider
from ..domain.interfaces.speech import PhonemeProvider, SpeechSynthesizer, Transcriber
from ..domain.interfaces.story_generator import StoryGenerator
from ..domain.interfaces.story_repository import StoryRepository
from ..domain.services import (
    DEFAULT_CONFIG,
    AudioCaptureAdapter,
    ReadingConfig,
    ReadingService,
    SpeechPlaybackAdapter,
    record_quiz_result,
)
from ..infrastructure.websocket_audio import WebSocketAudioSink, WebSocketMicrophone
from .websocket_handler import WebSocketHandler

logger = logging.getLogger(__name__)


class StoryReadingController:
    """
    Controller for coordinating story and reading operations.

    This controller is injected with all necessary providers and handles
    the business logic for each endpoint, keeping the API layer thin.
    """

    def __init__(
        self,
        story_repository: StoryRepository,
        preferences_provider: PreferencesProvider,
        story_generator: StoryGenerator,
        synthesizer: SpeechSynthesizer,
        transcriber: Transcriber,
        phoneme_provider: PhonemeProvider,
        reading_config: ReadingConfig = DEFAULT_CONFIG,
        tts_sample_rate: int = 24000,
    ):
        """
        Initialize the controller with injected dependencies.

        Args:
            story_repository: Repository for saved stories
            preferences_provider: Provider for user preferences
            story_generator: Backend that writes new stories
            synthesizer: Text-to-speech backend
            transcriber: Speech-to-text backend
            phoneme_provider: Phoneme lookup backend
            reading_config: Reading flow constants
            tts_sample_rate: Sample rate of synthesized PCM
        """
        self.story_repository = story_repository
        self.preferences_provider = preferences_provider
        self.story_generator = story_generator
        self.synthesizer = synthesizer
        self.transcriber = transcriber
        self.phoneme_provider = phoneme_provider
        self.reading_config = reading_config
        self.tts_sample_rate = tts_sample_rate

        logger.info("StoryReadingController initialized with providers")

    async def handle_websocket_connection(
        self,
        websocket: WebSocket,
        user_id: str,
        story_id: int,
        sample_rate: int = 16000,
    ) -> None:
        """
        Run a reading session for one story over an accepted WebSocket.

        Raises:
            ValueError: If the story is not found.
        """
        logger.info(f"Handling new WebSocket connection from {websocket.client}")

        story = await self.story_repository.get_story(user_id, story_id)
        preferences = await self.preferences_provider.get_preferences(user_id)

        # The browser is the speaker and the microphone.
        outbound_queue: asyncio.Queue = asyncio.Queue()
        sink = WebSocketAudioSink(outbound_queue)
        microphone = WebSocketMicrophone(outbound_queue, sample_rate=sample_rate)

        session = ReadingSessionState(user_id=user_id, story_id=story.id)
        reading_service = ReadingService(
            session=session,
            story=story,
            playback=SpeechPlaybackAdapter(
                self.synthesizer, sink, sample_rate=self.tts_sample_rate
            ),
            capture=AudioCaptureAdapter(
                microphone, trailing_delay=self.reading_config.capture_trailing_delay
            ),
            transcriber=self.transcriber,
            phoneme_provider=self.phoneme_provider,
            preferences=preferences,
            config=self.reading_config,
            outbound_queue=outbound_queue,
        )
        handler = WebSocketHandler(reading_service, sink, microphone)

        await websocket.send_text(SessionCreated(session_id=str(session.id)).model_dump_json())
        logger.info(f"Created session {session.id} for story {story.id}")

        await reading_service.start()
        await handler.handle_websocket(websocket)

    def get_health_status(self) -> dict:
        """
        Get application health status.

        Returns:
            Dict containing health status information
        """
        return {
            "status": "healthy",
            "providers": {
                "story_repository": type(self.story_repository).__name__,
                "preferences_provider": type(self.preferences_provider).__name__,
                "story_generator": type(self.story_generator).__name__,
                "synthesizer": type(self.synthesizer).__name__,
                "transcriber": type(self.transcriber).__name__,
            },
        }

    async def list_stories(self, user_id: str) -> list[dict]:
        """List a user's saved stories, newest first."""
        stories = await self.story_repository.list_stories(user_id)
        return [story.model_dump(mode="json") for story in stories]

    async def create_story(self, user_id: str, topic: str, length: Optional[int] = None) -> Story:
        """
        Generate a story for a topic and save it.

        Args:
            user_id: Owner of the story.
            topic: What the story should be about.
            length: Story length tier; defaults to the user's preference.

        Returns:
            Story: The saved story.
        """
        if length is None:
            preferences = await self.preferences_provider.get_preferences(user_id)
            length = preferences.story_length

        story = await self.story_generator.generate_story(topic, length)
        await self.story_repository.save_story(user_id, story)
        logger.info(f"Saved story {story.id} for user {user_id}")
        return story

    async def delete_story(self, user_id: str, story_id: int) -> None:
        """
        Raises:
            ValueError: If the story is not found.
        """
        await self.story_repository.delete_story(user_id, story_id)

    async def submit_quiz(self, user_id: str, story_id: int, selections: list[str]) -> QuizResult:
        """
        Grade quiz answers and store the result on the story.

        Raises:
            ValueError: If the story is not found or the answers do not match the quiz.
        """
        story = await self.story_repository.get_story(user_id, story_id)
        story = record_quiz_result(story, selections)
        await self.story_repository.update_story(user_id, story)
        return story.quiz_results

    async def save_book_report(self, user_id: str, story_id: int, report: BookReport) -> Story:
        """
        Attach a book report to a story.

        Raises:
            ValueError: If the story is not found.
        """
        story = await self.story_repository.get_story(user_id, story_id)
        story = story.model_copy(update={"book_report": report})
        await self.story_repository.update_story(user_id, story)
        logger.info(f"Saved {report.source.value} book report for story {story_id}")
        return story

    async def get_preferences(self, user_id: str) -> UserPreferences:
        return await self.preferences_provider.get_preferences(user_id)

    async def update_preferences(self, user_id: str, preferences: UserPreferences) -> UserPreferences:
        await self.preferences_provider.update_preferences(user_id, preferences)
        return preferences
