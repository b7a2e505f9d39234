"""Tests for the local sound card devices."""

import asyncio
import threading
import time

import numpy as np
import pytest

pytest.importorskip("pyaudio")

from kidreads.infrastructure.pyaudio_devices import CHUNK_SIZE, PyAudioMicrophone, PyAudioSink


class FakeOutputStream:
    def __init__(self, device):
        self.device = device
        self.writes = 0

    def write(self, data):
        with self.device.lock:
            assert self.device.open_streams == 1
        self.writes += 1
        time.sleep(0.005)

    def stop_stream(self):
        pass

    def close(self):
        with self.device.lock:
            self.device.open_streams -= 1


class FakePyAudio:
    """Output device that fails a write if two streams are open at once."""

    def __init__(self):
        self.lock = threading.Lock()
        self.open_streams = 0
        self.max_open_streams = 0
        self.streams: list[FakeOutputStream] = []

    def open(self, **kwargs):
        stream = FakeOutputStream(self)
        with self.lock:
            self.open_streams += 1
            self.max_open_streams = max(self.max_open_streams, self.open_streams)
        self.streams.append(stream)
        return stream


def clip(chunks: int) -> np.ndarray:
    return np.full(CHUNK_SIZE * chunks, 0.1, dtype=np.float32)


@pytest.mark.asyncio
async def test_new_clip_waits_for_previous_writer():
    device = FakePyAudio()
    sink = PyAudioSink(pa=device)

    first = asyncio.create_task(sink.play(clip(200), 16000))
    await asyncio.sleep(0.05)
    await sink.play(clip(3), 16000)

    assert first.done()
    assert device.max_open_streams == 1
    assert device.streams[0].writes < 200
    assert device.streams[1].writes == 3


@pytest.mark.asyncio
async def test_stop_returns_after_writer_closes():
    device = FakePyAudio()
    sink = PyAudioSink(pa=device)

    playing = asyncio.create_task(sink.play(clip(200), 16000))
    await asyncio.sleep(0.05)
    await sink.stop()

    assert device.open_streams == 0
    await asyncio.wait_for(playing, timeout=1)


@pytest.mark.asyncio
async def test_stop_before_any_clip_is_noop():
    await PyAudioSink(pa=FakePyAudio()).stop()


@pytest.mark.asyncio
async def test_microphone_close_releases_stream_when_stop_fails():
    stream = type("Stream", (), {})()
    stream.closed = False

    def stop_stream():
        raise OSError("device unplugged")

    def close():
        stream.closed = True

    stream.stop_stream = stop_stream
    stream.close = close
    microphone = PyAudioMicrophone(pa=FakePyAudio())
    microphone._stream = stream

    with pytest.raises(OSError):
        await microphone.close()
    assert stream.closed
    assert microphone._stream is None
