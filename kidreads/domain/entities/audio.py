"""Audio-related entities."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class PlaybackResult:
    """Outcome of a speech playback request.

    A zero duration with no content means the audio could not be obtained
    or decoded.
    """

    duration: float
    audio_content: Optional[str]

    @classmethod
    def empty(cls) -> "PlaybackResult":
        return cls(duration=0.0, audio_content=None)

    @property
    def failed(self) -> bool:
        return self.audio_content is None


class RecorderStatus(str, Enum):
    """Audio capture adapter status."""

    INACTIVE = "inactive"
    RECORDING = "recording"
    STOPPED = "stopped"


@dataclass
class TranscriptionAttempt:
    """One captured utterance and its evaluation."""

    audio_payload: Optional[str]
    transcript: Optional[str] = None
    similarity: Optional[float] = None
