"""Audio devices backed by the learner's browser over the WebSocket.

The browser is both the speaker and the microphone: prompt audio goes out as
binary WAV frames, each preceded by a numbered ``playback.start``, and microphone audio comes back as binary PCM16LE frames.
The WebSocket handler routes the client's ``playback.ended``,
``capture.started`` and ``capture.denied`` acknowledgements straight to these
devices, bypassing the reading service's event queue.
"""

import asyncio
import logging
from typing import Optional

import numpy as np

from ..domain.entities.messages import (
    AudioOutMessage,
    CaptureControlMessage,
    OutboundMessage,
    PlaybackStopMessage,
)
from ..domain.interfaces.audio_io import MicrophonePermissionError
from ..domain.services.audio_codec import encode_wav

logger = logging.getLogger(__name__)


class WebSocketAudioSink:
    """Plays audio by sending WAV frames to the client.

    Each clip gets a number, announced by ``playback.start`` ahead of the
    binary frame. ``play`` resolves when the client reports ``playback.ended``
    for that number, or after the clip's duration plus ``end_grace`` if the
    client never reports it. Acknowledgements for any other clip are dropped.
    """

    def __init__(self, outbound_queue: asyncio.Queue[OutboundMessage], end_grace: float = 5.0):
        self.outbound_queue = outbound_queue
        self.end_grace = end_grace
        self._clip = 0
        self._ended: Optional[asyncio.Event] = None

    async def play(self, samples: np.ndarray, sample_rate: int) -> None:
        self._clip += 1
        clip = self._clip
        ended = asyncio.Event()
        self._ended = ended
        await self.outbound_queue.put(
            AudioOutMessage(wav_bytes=encode_wav(samples, sample_rate), clip=clip)
        )

        duration = len(samples) / sample_rate
        try:
            await asyncio.wait_for(ended.wait(), timeout=duration + self.end_grace)
        except asyncio.TimeoutError:
            logger.warning(f"No playback.ended from client for clip {clip} ({duration:.2f}s)")
        finally:
            if self._ended is ended:
                self._ended = None

    def playback_ended(self, clip: int) -> None:
        """Client finished playing ``clip``."""
        if self._ended is None or clip != self._clip:
            logger.debug(f"Ignoring playback.ended for clip {clip} (current {self._clip})")
            return
        self._ended.set()

    async def stop(self) -> None:
        await self.outbound_queue.put(PlaybackStopMessage(clip=self._clip))
        if self._ended is not None:
            self._ended.set()


class WebSocketMicrophone:
    """Microphone that asks the client to stream PCM16LE frames.

    ``open`` sends ``capture.start`` and waits for the client's answer;
    a denial (or no answer within ``ack_timeout``) raises
    ``MicrophonePermissionError``.
    """

    def __init__(
        self,
        outbound_queue: asyncio.Queue[OutboundMessage],
        sample_rate: int = 16000,
        ack_timeout: float = 10.0,
    ):
        self.outbound_queue = outbound_queue
        self.sample_rate = sample_rate
        self.ack_timeout = ack_timeout
        self._ack: Optional[asyncio.Future] = None
        self._buffer = bytearray()
        self._open = False

    async def open(self) -> None:
        ack = asyncio.get_running_loop().create_future()
        self._ack = ack
        await self.outbound_queue.put(CaptureControlMessage(action="start"))

        try:
            granted, reason = await asyncio.wait_for(ack, timeout=self.ack_timeout)
        except asyncio.TimeoutError:
            granted, reason = False, "no answer from client"
        finally:
            self._ack = None

        if not granted:
            raise MicrophonePermissionError(reason or "microphone access denied")

        self._buffer.clear()
        self._open = True

    def capture_started(self) -> None:
        if self._ack is not None and not self._ack.done():
            self._ack.set_result((True, None))

    def capture_denied(self, reason: Optional[str] = None) -> None:
        if self._ack is not None and not self._ack.done():
            self._ack.set_result((False, reason))

    def feed(self, pcm_bytes: bytes) -> None:
        """Append a binary frame received from the client."""
        if self._open:
            self._buffer.extend(pcm_bytes)
        else:
            logger.debug(f"Dropping {len(pcm_bytes)} bytes received while not capturing")

    async def close(self) -> bytes:
        was_open, self._open = self._open, False
        if was_open:
            await self.outbound_queue.put(CaptureControlMessage(action="stop"))
        data = bytes(self._buffer)
        self._buffer.clear()
        return data
