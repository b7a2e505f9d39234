"""Event entities for reading sessions.

Events drive the reading flow state machine. Events raised by adapter
callbacks carry the ``epoch`` they were issued under so the state machine can
drop them once the session has moved on.
"""

from dataclasses import dataclass
from typing import Optional

from .reading_session import PhonemeDrill, ReadingMode


class InboundEvent:
    """Base class for inbound events."""

    epoch: Optional[int] = None


@dataclass
class StartReadingEvent(InboundEvent):
    """Learner pressed "Start Reading" or "Read Again"."""

    pass


@dataclass
class BeginTurnEvent(InboundEvent):
    """Prompt the learner with the current item."""

    epoch: Optional[int] = None


@dataclass
class PlaybackFinishedEvent(InboundEvent):
    """Prompt playback ended and the microphone is capturing."""

    epoch: Optional[int] = None


@dataclass
class CaptureDeniedEvent(InboundEvent):
    """Microphone access was refused."""

    epoch: Optional[int] = None


@dataclass
class LearnerDoneEvent(InboundEvent):
    """Learner pressed "I'm Done"."""

    pass


@dataclass
class TranscriptionReceivedEvent(InboundEvent):
    """Transcription round-trip completed; ``transcript`` is None when nothing was heard."""

    transcript: Optional[str] = None
    epoch: Optional[int] = None


@dataclass
class FeedbackElapsedEvent(InboundEvent):
    """The visible feedback period is over."""

    epoch: Optional[int] = None


@dataclass
class ChangeModeEvent(InboundEvent):
    """Learner selected a reading mode."""

    mode: ReadingMode


@dataclass
class ReadFullStoryEvent(InboundEvent):
    """Learner asked to hear the whole story."""

    pass


@dataclass
class SelectWordEvent(InboundEvent):
    """Learner selected a word for phoneme drill-down."""

    word: str


@dataclass
class PhonemeDrillUpdatedEvent(InboundEvent):
    """The phoneme drill on screen changed: new word, lookup result or highlight."""

    drill: PhonemeDrill
    epoch: Optional[int] = None


@dataclass
class LeaveEvent(InboundEvent):
    """Learner left the story screen."""

    pass
