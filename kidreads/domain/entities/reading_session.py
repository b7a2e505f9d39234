"""Reading session entities for the reading coach application."""
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SessionStatus(str, Enum):
    """Session status enum."""
    INITIALIZING = "initializing"
    ACTIVE = "active"
    COMPLETED = "completed"


class ReadingMode(str, Enum):
    """Granularity at which the learner practices."""
    WORD = "Word"
    SENTENCE = "Sentence"
    PHONEME = "Phoneme"
    QUIZ = "Quiz"


class FlowState(str, Enum):
    """Phase of one reading turn."""
    INITIAL = "INITIAL"
    IDLE = "IDLE"
    SPEAKING = "SPEAKING"
    LISTENING = "LISTENING"
    TRANSCRIBING = "TRANSCRIBING"
    EVALUATING = "EVALUATING"
    FINISHED = "FINISHED"


class Feedback(str, Enum):
    """Outcome of the last evaluated attempt."""
    NONE = "none"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class PhonemeDrill(BaseModel):
    """Phoneme drill-down data for one selected word."""

    word: str
    phonemes: list[str] = Field(default_factory=list)
    highlighted_index: Optional[int] = None


class ReadingSessionState(BaseModel):
    """Transient state of a reading session, owned by the reading service.

    ``epoch`` increases whenever in-flight work is invalidated (mode change,
    leaving the screen); callbacks issued under an older epoch are ignored.
    """

    id: UUID = Field(default_factory=uuid.uuid4)
    user_id: Optional[str] = None
    story_id: int
    status: SessionStatus = SessionStatus.INITIALIZING
    reading_mode: ReadingMode = ReadingMode.SENTENCE
    flow_state: FlowState = FlowState.INITIAL
    sentence_index: int = Field(default=0, ge=0)
    word_index: int = Field(default=0, ge=0)
    feedback: Feedback = Feedback.NONE
    last_similarity: Optional[float] = None
    last_transcript: Optional[str] = None
    phoneme_drill: Optional[PhonemeDrill] = None
    permission_error: bool = False
    narrating: bool = False
    epoch: int = Field(default=0, ge=0)
    started_at: datetime = Field(default_factory=datetime.utcnow)
    last_activity_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        """Pydantic model configuration."""

        json_schema_extra = {
            "example": {
                "story_id": 1760000000000,
                "user_id": "abc123",
                "reading_mode": "Sentence",
                "flow_state": "INITIAL",
                "sentence_index": 0,
                "word_index": 0,
            }
        }
