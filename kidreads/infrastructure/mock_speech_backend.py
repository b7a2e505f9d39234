"""Mock speech backend for development without the cloud functions."""

import asyncio
import base64
import logging
from collections import deque
from typing import Iterable, Optional

import numpy as np

from ..domain.entities.story import QuizQuestion, Story

logger = logging.getLogger(__name__)

VOWELS = "aeiouy"


class MockSpeechBackend:
    """Mock speech backend that simulates the cloud functions.

    Synthesis produces a short tone per word so playback takes realistic
    time. Transcription pops the next scripted transcript; when the script is
    empty it returns ``default_transcript`` (None means "no speech").
    """

    def __init__(
        self,
        sample_rate: int = 24000,
        seconds_per_word: float = 0.3,
        transcripts: Optional[Iterable[Optional[str]]] = None,
        default_transcript: Optional[str] = None,
        latency: float = 0.0,
    ):
        self.sample_rate = sample_rate
        self.seconds_per_word = seconds_per_word
        self.transcripts = deque(transcripts or [])
        self.default_transcript = default_transcript
        self.latency = latency
        self.synthesized: list[str] = []

    def script(self, *transcripts: Optional[str]) -> None:
        """Queue transcripts to be returned by the next transcribe calls."""
        self.transcripts.extend(transcripts)

    async def synthesize(
        self,
        text: str,
        voice: str = "Leda",
        is_word: bool = False,
        speaking_rate: float = 1.0,
    ) -> Optional[str]:
        await asyncio.sleep(self.latency)
        self.synthesized.append(text)
        words = max(1, len(text.split()))
        duration = words * self.seconds_per_word / speaking_rate
        t = np.arange(int(duration * self.sample_rate)) / self.sample_rate
        tone = 0.2 * np.sin(2 * np.pi * 440.0 * t)
        pcm = (tone * 32767).astype("<i2").tobytes()
        logger.info(f"🎭 MOCK: Synthesized {duration:.2f}s for {text[:40]!r} ({voice})")
        return base64.b64encode(pcm).decode("ascii")

    async def transcribe(self, audio_base64: str) -> Optional[str]:
        await asyncio.sleep(self.latency)
        transcript = self.transcripts.popleft() if self.transcripts else self.default_transcript
        logger.info(f"🎭 MOCK: Transcribed {len(audio_base64)} base64 chars as {transcript!r}")
        return transcript

    async def get_phonemes(self, word: str) -> list[str]:
        """Split a word into rough units: each vowel run closes a unit."""
        await asyncio.sleep(self.latency)
        cleaned = "".join(c for c in word.lower() if c.isalpha())
        if not cleaned:
            raise ValueError(f"Could not get phonemes for {word!r}")

        units, current = [], ""
        for i, char in enumerate(cleaned):
            current += char
            next_char = cleaned[i + 1] if i + 1 < len(cleaned) else ""
            if char in VOWELS and next_char not in VOWELS:
                units.append(current)
                current = ""
        if current:
            if units:
                units[-1] += current
            else:
                units.append(current)
        return units

    async def generate_story(self, topic: str, length: int = 1) -> Story:
        await asyncio.sleep(self.latency)
        subject = topic.strip() or "a friendly cat"
        sentences = [
            f"Once upon a time there was {subject}.",
            "Every morning it went to the park to play with its friends.",
            "They laughed and ran under the warm sun.",
            "At night everyone went home happy and sleepy.",
        ]
        text = " ".join(sentences[: 1 + length])
        quiz = [
            QuizQuestion(
                question="Where did they go to play?",
                options=["The park", "The beach", "School"],
                answer="The park",
            ),
        ]
        return Story(title=f"The Story of {subject.title()}", text=text, quiz=quiz)
