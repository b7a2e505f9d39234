"""Speech collaborator protocols."""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class SpeechSynthesizer(Protocol):
    """Protocol for text-to-speech backends."""

    async def synthesize(
        self,
        text: str,
        voice: str,
        is_word: bool = False,
        speaking_rate: float = 1.0,
    ) -> Optional[str]:
        """Synthesize speech for the given text.

        Args:
            text: The text to pronounce.
            voice: Voice identifier.
            is_word: True when ``text`` is a single word spoken in isolation.
            speaking_rate: Requested speaking rate multiplier.

        Returns:
            Optional[str]: Base64 encoded 16-bit mono PCM, or None if no
            audio was produced.
        """
        ...


@runtime_checkable
class Transcriber(Protocol):
    """Protocol for speech-to-text backends."""

    async def transcribe(self, audio_base64: str) -> Optional[str]:
        """Transcribe a captured utterance.

        Args:
            audio_base64: Base64 encoded WAV payload.

        Returns:
            Optional[str]: The transcript, or None when no speech was detected.
        """
        ...


@runtime_checkable
class PhonemeProvider(Protocol):
    """Protocol for phoneme lookup."""

    async def get_phonemes(self, word: str) -> list[str]:
        """Decompose a word into ordered phonetic units."""
        ...
