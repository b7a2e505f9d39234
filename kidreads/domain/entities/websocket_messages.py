"""WebSocket message models for the reading coach application."""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from .reading_session import Feedback, FlowState, ReadingMode
from .story import QuizQuestion


# ===== Client → Server Messages =====


class SessionCreate(BaseModel):
    """Session initialization message from client."""

    type: Literal["session.create"] = "session.create"
    user_id: str
    story_id: int
    sample_rate: int = Field(default=16000)


class ReadingStart(BaseModel):
    """Learner pressed "Start Reading" / "Read Again"."""

    type: Literal["reading.start"] = "reading.start"


class ReadingDone(BaseModel):
    """Learner pressed "I'm Done"."""

    type: Literal["reading.done"] = "reading.done"


class ReadingModeChange(BaseModel):
    """Learner selected a reading mode."""

    type: Literal["reading.mode"] = "reading.mode"
    mode: ReadingMode


class ReadingFullStory(BaseModel):
    """Learner asked to hear the whole story."""

    type: Literal["reading.full_story"] = "reading.full_story"


class PhonemeSelect(BaseModel):
    """Learner tapped a word in Phoneme mode."""

    type: Literal["phoneme.select"] = "phoneme.select"
    word: str = Field(min_length=1)


class PlaybackEnded(BaseModel):
    """Client finished playing the clip numbered by its playback.start."""

    type: Literal["playback.ended"] = "playback.ended"
    clip: int = Field(ge=1)


class CaptureStarted(BaseModel):
    """Client microphone is live; PCM frames follow as binary messages."""

    type: Literal["capture.started"] = "capture.started"


class CaptureDenied(BaseModel):
    """Client could not open the microphone."""

    type: Literal["capture.denied"] = "capture.denied"
    reason: Optional[str] = None


# Union type for all client control messages
ClientMessage = Annotated[
    Union[
        ReadingStart,
        ReadingDone,
        ReadingModeChange,
        ReadingFullStory,
        PhonemeSelect,
        PlaybackEnded,
        CaptureStarted,
        CaptureDenied,
    ],
    Field(discriminator="type"),
]

client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


# ===== Server → Client Messages =====


class SessionCreated(BaseModel):
    """Session created confirmation from server."""

    type: Literal["session.created"] = "session.created"
    session_id: str


class FlowStateUpdate(BaseModel):
    """Current flow state and cursor position."""

    type: Literal["flow.state"] = "flow.state"
    flow_state: FlowState
    reading_mode: ReadingMode
    sentence_index: int = Field(ge=0)
    word_index: int = Field(ge=0)
    target_text: Optional[str] = None
    narrating: bool = False


class ResponseFeedback(BaseModel):
    """Evaluation of the learner's attempt."""

    type: Literal["feedback"] = "feedback"
    outcome: Feedback
    similarity: float = Field(ge=0.0, le=100.0)
    expected_text: str
    transcript: Optional[str] = None
    message: str


class PhonemeUpdate(BaseModel):
    """Phoneme drill-down data with the currently highlighted unit."""

    type: Literal["phonemes"] = "phonemes"
    word: str
    phonemes: list[str]
    highlighted_index: Optional[int] = None


class QuizOpen(BaseModel):
    """Quiz questions for the story."""

    type: Literal["quiz.open"] = "quiz.open"
    questions: list[QuizQuestion]


class CaptureControl(BaseModel):
    """Ask the client to start or stop streaming microphone audio."""

    type: Literal["capture.start", "capture.stop"]


class PlaybackStart(BaseModel):
    """Announces the binary WAV frame that follows and numbers its clip."""

    type: Literal["playback.start"] = "playback.start"
    clip: int = Field(ge=1)


class PlaybackStop(BaseModel):
    """Ask the client to stop the prompt audio it is playing."""

    type: Literal["playback.stop"] = "playback.stop"
    clip: int = Field(ge=0)


class SessionEnded(BaseModel):
    """Session ended message from server."""

    type: Literal["session.ended"] = "session.ended"
    reason: str


class ServerNotice(BaseModel):
    """Server notice message."""

    type: Literal["notice"] = "notice"
    message: str


class ErrorCode(str, Enum):
    """Error codes for WebSocket errors."""

    INVALID_MESSAGE = "INVALID_MESSAGE"
    STORY_NOT_FOUND = "STORY_NOT_FOUND"
    MICROPHONE_DENIED = "MICROPHONE_DENIED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorMessage(BaseModel):
    """Error message from server."""

    type: Literal["error"] = "error"
    code: ErrorCode
    message: str


# Union type for all server messages
ServerMessage = Union[
    SessionCreated, FlowStateUpdate, ResponseFeedback, PhonemeUpdate,
    QuizOpen, CaptureControl, PlaybackStart, PlaybackStop, SessionEnded, ServerNotice,
    ErrorMessage,
]
