"""Audio device protocols used by the playback and capture adapters."""

from typing import Protocol

import numpy as np


class MicrophonePermissionError(PermissionError):
    """Raised when microphone access is denied or unavailable."""


class AudioSink(Protocol):
    """Somewhere synthesized audio can be played."""

    async def play(self, samples: np.ndarray, sample_rate: int) -> None:
        """Play float32 mono samples, returning once playback has ended or was stopped."""
        ...

    async def stop(self) -> None:
        """Stop any playback in progress."""
        ...


class MicrophoneSource(Protocol):
    """A microphone that records 16-bit mono PCM."""

    sample_rate: int

    async def open(self) -> None:
        """Acquire the microphone and start buffering.

        Raises:
            MicrophonePermissionError: If access is denied.
        """
        ...

    async def close(self) -> bytes:
        """Release the microphone and return the buffered PCM16LE bytes."""
        ...
