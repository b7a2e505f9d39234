"""Outbound message entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional

from .reading_session import Feedback, FlowState, ReadingMode
from .story import QuizQuestion
from .websocket_messages import (
    CaptureControl,
    ErrorCode,
    ErrorMessage,
    FlowStateUpdate,
    PhonemeUpdate,
    PlaybackStart,
    PlaybackStop,
    QuizOpen,
    ResponseFeedback,
    ServerNotice,
    SessionEnded,
)


class OutboundMessage:
    """Base class for outbound messages."""

    pass


@dataclass
class AudioOutMessage(OutboundMessage):
    """Message containing prompt audio (WAV bytes) for one numbered clip."""

    wav_bytes: bytes
    clip: int = 1
    timestamp: float = field(default_factory=lambda: datetime.utcnow().timestamp())
    start: PlaybackStart = field(init=False)

    def __post_init__(self):
        self.start = PlaybackStart(clip=self.clip)


@dataclass
class NoticeMessage(OutboundMessage):
    """Message containing a notice."""

    message: str
    notice: ServerNotice = field(init=False)

    def __post_init__(self):
        self.notice = ServerNotice(message=self.message)


@dataclass
class ErrorOutMessage(OutboundMessage):
    """Message containing an error."""

    code: ErrorCode
    message: str
    error: ErrorMessage = field(init=False)

    def __post_init__(self):
        self.error = ErrorMessage(code=self.code, message=self.message)


@dataclass
class FlowStateMessage(OutboundMessage):
    """Message announcing a flow state change."""

    flow_state: FlowState
    reading_mode: ReadingMode
    sentence_index: int
    word_index: int
    target_text: Optional[str] = None
    narrating: bool = False
    update: FlowStateUpdate = field(init=False)

    def __post_init__(self):
        self.update = FlowStateUpdate(
            flow_state=self.flow_state,
            reading_mode=self.reading_mode,
            sentence_index=self.sentence_index,
            word_index=self.word_index,
            target_text=self.target_text,
            narrating=self.narrating,
        )


@dataclass
class FeedbackMessage(OutboundMessage):
    """Message containing the evaluation of an attempt."""

    outcome: Feedback
    similarity: float
    expected_text: str
    transcript: Optional[str] = None
    message: str = ""
    feedback: ResponseFeedback = field(init=False)

    def __post_init__(self):
        self.feedback = ResponseFeedback(
            outcome=self.outcome,
            similarity=self.similarity,
            expected_text=self.expected_text,
            transcript=self.transcript,
            message=self.message,
        )


@dataclass
class PhonemeMessage(OutboundMessage):
    """Message containing phoneme drill-down data."""

    word: str
    phonemes: list[str]
    highlighted_index: Optional[int] = None
    update: PhonemeUpdate = field(init=False)

    def __post_init__(self):
        self.update = PhonemeUpdate(
            word=self.word,
            phonemes=self.phonemes,
            highlighted_index=self.highlighted_index,
        )


@dataclass
class QuizOpenMessage(OutboundMessage):
    """Message opening the quiz."""

    questions: list[QuizQuestion]
    quiz: QuizOpen = field(init=False)

    def __post_init__(self):
        self.quiz = QuizOpen(questions=self.questions)


@dataclass
class CaptureControlMessage(OutboundMessage):
    """Message asking the client to start or stop microphone capture."""

    action: Literal["start", "stop"]
    control: CaptureControl = field(init=False)

    def __post_init__(self):
        self.control = CaptureControl(type=f"capture.{self.action}")


@dataclass
class PlaybackStopMessage(OutboundMessage):
    """Message asking the client to stop prompt playback."""

    clip: int = 0
    control: PlaybackStop = field(init=False)

    def __post_init__(self):
        self.control = PlaybackStop(clip=self.clip)


@dataclass
class SessionEndedMessage(OutboundMessage):
    """Message indicating session has ended."""

    reason: str
    session_ended: SessionEnded = field(init=False)

    def __post_init__(self):
        self.session_ended = SessionEnded(reason=self.reason)


@dataclass
class SessionReadyMessage(OutboundMessage):
    """Message indicating session is ready to accept events."""

    session_id: str
    story_id: int
    reading_mode: str
