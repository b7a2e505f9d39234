"""Audio capture adapter: one microphone recording at a time."""

import asyncio
import base64
import logging
from typing import Optional

import numpy as np

from ..entities.audio import RecorderStatus
from ..interfaces.audio_io import MicrophonePermissionError, MicrophoneSource
from .audio_codec import encode_wav

logger = logging.getLogger(__name__)


class AudioCaptureAdapter:
    """
    Wraps a microphone source with start/stop semantics.

    A permission failure sets ``permission_error`` and leaves the adapter
    inactive. Stopping waits a short trailing delay first so the learner's
    last word is not cut off, then releases the microphone and returns the
    recording as a base64 WAV payload. A device that fails while closing loses
    the recording (None) instead of raising.
    """

    def __init__(self, microphone: MicrophoneSource, trailing_delay: float = 0.75):
        self.microphone = microphone
        self.trailing_delay = trailing_delay
        self.status = RecorderStatus.INACTIVE
        self.permission_error = False

    @property
    def is_recording(self) -> bool:
        return self.status == RecorderStatus.RECORDING

    async def start_recording(self) -> None:
        """Acquire the microphone and start buffering. No-op while recording."""
        if self.is_recording:
            return

        self.permission_error = False
        try:
            await self.microphone.open()
        except MicrophonePermissionError as e:
            logger.warning(f"Microphone access denied: {e}")
            self.permission_error = True
            return
        except Exception as e:
            logger.error(f"Could not open microphone: {e}", exc_info=True)
            self.permission_error = True
            return

        self.status = RecorderStatus.RECORDING
        logger.info("Recording started")

    async def stop_recording(self) -> Optional[str]:
        """Stop recording and return the base64 WAV payload.

        Returns:
            Optional[str]: The encoded recording, or None if nothing was
            being recorded or nothing was captured.
        """
        if not self.is_recording:
            return None

        await asyncio.sleep(self.trailing_delay)
        # Another stop or a cancel may have run during the trailing delay.
        if not self.is_recording:
            return None

        self.status = RecorderStatus.STOPPED
        try:
            pcm_bytes = await self.microphone.close()
        except Exception as e:
            logger.error(f"Microphone failed while stopping, recording lost: {e}", exc_info=True)
            return None
        logger.info(f"Recording stopped ({len(pcm_bytes)} bytes captured)")

        if not pcm_bytes:
            return None

        try:
            samples = np.frombuffer(pcm_bytes[: len(pcm_bytes) // 2 * 2], dtype="<i2")
            wav_bytes = encode_wav(samples, self.microphone.sample_rate)
        except Exception as e:
            logger.error(f"Could not encode recording: {e}", exc_info=True)
            return None
        return base64.b64encode(wav_bytes).decode("ascii")

    async def cancel_recording(self) -> None:
        """Release the microphone and discard anything recorded."""
        if not self.is_recording:
            return
        self.status = RecorderStatus.INACTIVE
        try:
            await self.microphone.close()
        except Exception as e:
            logger.error(f"Microphone failed while cancelling: {e}", exc_info=True)
            return
        logger.info("Recording cancelled")
