"""User preference entities for the reading coach application."""

from enum import Enum

from pydantic import BaseModel, Field


class Voice(str, Enum):
    """Prebuilt synthesis voices offered to learners."""

    LEDA = "Leda"
    ORUS = "Orus"


class UserPreferences(BaseModel):
    """Per-user reading preferences."""

    voice: Voice = Voice.LEDA
    speaking_rate: float = Field(default=1.0, gt=0.0, le=2.0)
    story_length: int = Field(default=1, ge=1, le=3, description="Story length tier")

    class Config:
        """Pydantic model configuration."""

        use_enum_values = True
