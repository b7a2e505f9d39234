"""Speech playback adapter: synthesize text and play it through an audio sink."""

import asyncio
import logging
from typing import Callable, Optional

import numpy as np

from ..entities.audio import PlaybackResult
from ..interfaces.audio_io import AudioSink
from ..interfaces.speech import SpeechSynthesizer
from .audio_codec import change_tempo, decode_base64_pcm

logger = logging.getLogger(__name__)

# Speaking rate requested from the synthesizer when slow speech is asked for.
SLOW_SPEAKING_RATE = 0.7


class SpeechPlaybackAdapter:
    """
    Plays synthesized speech, one utterance at a time.

    ``speak`` resolves as soon as the audio is decoded and playing, returning
    its duration; ``on_end`` fires later, when the sink reports the end of
    playback. Starting a new utterance stops and releases the previous one,
    and a cancelled utterance never fires ``on_end``.

    At a playback rate of 1.0 the decoded audio goes straight to the sink.
    Any other rate goes through ``change_tempo`` first so the tempo changes
    without the pitch following it.
    """

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        sink: AudioSink,
        sample_rate: int = 24000,
    ):
        self.synthesizer = synthesizer
        self.sink = sink
        self.sample_rate = sample_rate

        self.is_speaking = False
        self.is_loading = False

        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._samples: Optional[np.ndarray] = None

    async def speak(
        self,
        text: str,
        on_end: Optional[Callable[[], None]] = None,
        slow: bool = False,
        voice: str = "Leda",
        is_word: bool = False,
        playback_rate: float = 1.0,
        on_play: Optional[Callable[[float], None]] = None,
    ) -> PlaybackResult:
        """
        Synthesize and start playing ``text``.

        Args:
            text: Text to pronounce.
            on_end: Called once playback has finished (not when cancelled).
            slow: Ask the synthesizer for slow, deliberate speech.
            voice: Voice identifier.
            is_word: ``text`` is a single word.
            playback_rate: Tempo multiplier applied locally with pitch correction.
            on_play: Called with the duration when playback starts.

        Returns:
            PlaybackResult: Duration in seconds and the base64 audio, or the
            empty result if the audio could not be obtained or decoded.
        """
        await self.cancel()
        generation = self._generation
        self.is_loading = True

        try:
            audio_content = await self.synthesizer.synthesize(
                text,
                voice,
                is_word=is_word,
                speaking_rate=SLOW_SPEAKING_RATE if slow else 1.0,
            )
            if not audio_content:
                raise ValueError("No audio content received.")

            samples, sample_rate = decode_base64_pcm(audio_content, self.sample_rate)
            if playback_rate != 1.0:
                samples = await asyncio.get_running_loop().run_in_executor(
                    None, change_tempo, samples, sample_rate, playback_rate
                )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error preparing speech for {text[:40]!r}: {e}")
            if generation == self._generation:
                self.is_loading = False
            return PlaybackResult.empty()

        if generation != self._generation:
            # Superseded by a newer speak() or cancel() while loading.
            return PlaybackResult.empty()

        self.is_loading = False
        duration = len(samples) / sample_rate
        self._samples = samples
        self.is_speaking = True
        self._task = asyncio.create_task(
            self._play(samples, sample_rate, generation, on_end)
        )
        if on_play:
            on_play(duration)

        logger.debug(f"Playing {duration:.2f}s of speech at rate {playback_rate}")
        return PlaybackResult(duration=duration, audio_content=audio_content)

    async def _play(
        self,
        samples: np.ndarray,
        sample_rate: int,
        generation: int,
        on_end: Optional[Callable[[], None]],
    ) -> None:
        try:
            await self.sink.play(samples, sample_rate)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Audio playback error: {e}", exc_info=True)

        if generation != self._generation:
            return

        self.is_speaking = False
        self._samples = None
        self._task = None
        if on_end:
            on_end()

    async def cancel(self) -> None:
        """Stop playback in progress and release its buffers."""
        self._generation += 1
        task, self._task = self._task, None
        if self.is_speaking:
            try:
                await self.sink.stop()
            except Exception as e:
                logger.error(f"Error stopping audio sink: {e}")
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._samples = None
        self.is_speaking = False
        self.is_loading = False
