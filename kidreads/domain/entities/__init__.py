"""Domain entities for the reading coach application."""

from .audio import PlaybackResult, RecorderStatus, TranscriptionAttempt
from .events import (
    BeginTurnEvent,
    CaptureDeniedEvent,
    ChangeModeEvent,
    FeedbackElapsedEvent,
    InboundEvent,
    LeaveEvent,
    LearnerDoneEvent,
    PhonemeDrillUpdatedEvent,
    PlaybackFinishedEvent,
    ReadFullStoryEvent,
    SelectWordEvent,
    StartReadingEvent,
    TranscriptionReceivedEvent,
)
from .messages import (
    AudioOutMessage,
    CaptureControlMessage,
    ErrorOutMessage,
    FeedbackMessage,
    FlowStateMessage,
    NoticeMessage,
    OutboundMessage,
    PhonemeMessage,
    PlaybackStopMessage,
    QuizOpenMessage,
    SessionEndedMessage,
    SessionReadyMessage,
)
from .reading_session import (
    Feedback,
    FlowState,
    PhonemeDrill,
    ReadingMode,
    ReadingSessionState,
    SessionStatus,
)
from .story import (
    BookReport,
    BookReportSource,
    QuizAnswer,
    QuizQuestion,
    QuizResult,
    Story,
    split_sentences,
    split_words,
)
from .user_preferences import UserPreferences, Voice
from .websocket_messages import (
    ClientMessage,
    ErrorCode,
    ErrorMessage,
    ServerMessage,
    SessionCreate,
    SessionCreated,
    client_message_adapter,
)

__all__ = [
    # Session entities
    "ReadingSessionState",
    "SessionStatus",
    "ReadingMode",
    "FlowState",
    "Feedback",
    "PhonemeDrill",
    # Story entities
    "Story",
    "QuizQuestion",
    "QuizAnswer",
    "QuizResult",
    "BookReport",
    "BookReportSource",
    "split_sentences",
    "split_words",
    # Preference entities
    "UserPreferences",
    "Voice",
    # Audio entities
    "PlaybackResult",
    "RecorderStatus",
    "TranscriptionAttempt",
    # Event entities
    "InboundEvent",
    "StartReadingEvent",
    "BeginTurnEvent",
    "PlaybackFinishedEvent",
    "CaptureDeniedEvent",
    "LearnerDoneEvent",
    "TranscriptionReceivedEvent",
    "FeedbackElapsedEvent",
    "ChangeModeEvent",
    "ReadFullStoryEvent",
    "SelectWordEvent",
    "PhonemeDrillUpdatedEvent",
    "LeaveEvent",
    # Message entities
    "OutboundMessage",
    "AudioOutMessage",
    "CaptureControlMessage",
    "ErrorOutMessage",
    "FeedbackMessage",
    "FlowStateMessage",
    "NoticeMessage",
    "PhonemeMessage",
    "PlaybackStopMessage",
    "QuizOpenMessage",
    "SessionEndedMessage",
    "SessionReadyMessage",
    # WebSocket message entities
    "ClientMessage",
    "ServerMessage",
    "SessionCreate",
    "SessionCreated",
    "ErrorMessage",
    "ErrorCode",
    "client_message_adapter",
]
