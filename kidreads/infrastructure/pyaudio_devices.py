"""Audio devices backed by the local sound card through PyAudio."""

import asyncio
import logging
import threading
from typing import Optional

import numpy as np
import pyaudio

from ..domain.interfaces.audio_io import MicrophonePermissionError

logger = logging.getLogger(__name__)

CHANNELS = 1
FORMAT = pyaudio.paInt16
CHUNK_SIZE = 1024


class PyAudioSink:
    """Plays float samples on the default output device.

    Audio is written in chunks from a worker thread so ``stop`` can cut a
    clip short between two chunks. Every clip gets its own stop flag, and
    ``stop`` returns only once the worker has let go of the device.
    """

    def __init__(self, pa: Optional[pyaudio.PyAudio] = None):
        self._pa = pa or pyaudio.PyAudio()
        self._stop: Optional[threading.Event] = None
        self._playing: Optional[asyncio.Future] = None

    def _write(self, pcm_bytes: bytes, sample_rate: int, stop: threading.Event) -> None:
        stream = self._pa.open(format=FORMAT, channels=CHANNELS, rate=sample_rate, output=True)
        try:
            step = CHUNK_SIZE * 2
            for offset in range(0, len(pcm_bytes), step):
                if stop.is_set():
                    break
                stream.write(pcm_bytes[offset:offset + step])
        finally:
            try:
                stream.stop_stream()
            finally:
                stream.close()

    async def play(self, samples: np.ndarray, sample_rate: int) -> None:
        await self.stop()
        stop = threading.Event()
        pcm_bytes = (np.clip(samples, -1.0, 1.0) * 32767).astype("<i2").tobytes()
        playing = asyncio.get_running_loop().run_in_executor(
            None, self._write, pcm_bytes, sample_rate, stop
        )
        self._stop, self._playing = stop, playing
        try:
            await asyncio.shield(playing)
        except asyncio.CancelledError:
            # The worker keeps running until it sees the flag; the next
            # play or stop waits for it.
            stop.set()
            raise
        if self._playing is playing:
            self._stop, self._playing = None, None

    async def stop(self) -> None:
        stop, playing = self._stop, self._playing
        if stop is None or playing is None:
            return
        stop.set()
        try:
            await playing
        except Exception as e:
            logger.warning(f"Output stream failed while stopping: {e}")


class PyAudioMicrophone:
    """Records 16-bit mono audio from the default input device."""

    def __init__(self, sample_rate: int = 16000, pa: Optional[pyaudio.PyAudio] = None):
        self.sample_rate = sample_rate
        self._pa = pa or pyaudio.PyAudio()
        self._stream = None
        self._chunks: list[bytes] = []
        self._lock = threading.Lock()

    def _record_callback(self, in_data, frame_count, time_info, status):
        with self._lock:
            self._chunks.append(in_data)
        return (None, pyaudio.paContinue)

    async def open(self) -> None:
        with self._lock:
            self._chunks = []
        try:
            self._stream = self._pa.open(
                format=FORMAT,
                channels=CHANNELS,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=CHUNK_SIZE,
                stream_callback=self._record_callback,
            )
        except OSError as e:
            self._stream = None
            raise MicrophonePermissionError(f"Could not open input device: {e}") from e
        logger.debug("Input stream opened")

    async def close(self) -> bytes:
        stream, self._stream = self._stream, None
        if stream is not None:
            try:
                stream.stop_stream()
            finally:
                stream.close()
        with self._lock:
            data = b"".join(self._chunks)
            self._chunks = []
        return data
