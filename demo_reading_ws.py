"""
Demo client for the KidReads reading coach.

This script provides two modes:

1. WebSocket Client (default):
   Reads a story through the FastAPI WebSocket endpoint.
   Usage: python demo_reading_ws.py

   Requirements:
   - Start the server first: python examples/setup_and_run.py
   - Press Enter when you have finished reading each sentence aloud
   - Audio flows: Microphone -> WebSocket -> Backend -> Transcriber, prompts come back as WAV

2. Local session:
   Runs the ReadingService in-process with the sound card as speaker and microphone.
   Usage: python demo_reading_ws.py --local

   Requirements:
   - No server needed
   - Uses the mock speech backend unless SPEECH_BACKEND=cloud is set
"""

import asyncio
import json
import logging
import sys
from datetime import datetime

import pyaudio
import websockets

from kidreads.application.config import settings
from kidreads.domain.entities import ReadingSessionState, Story
from kidreads.domain.entities.messages import (
    FeedbackMessage,
    FlowStateMessage,
    NoticeMessage,
    SessionEndedMessage,
)
from kidreads.domain.services import AudioCaptureAdapter, ReadingService, SpeechPlaybackAdapter
from kidreads.domain.services.audio_codec import decode_wav
from kidreads.infrastructure import CloudSpeechClient, MockSpeechBackend
from kidreads.infrastructure.pyaudio_devices import PyAudioMicrophone, PyAudioSink

# Configure logging
logging.basicConfig(level=logging.WARNING)

# Audio configuration
INPUT_SAMPLE_RATE = 16000
CHANNELS = 1
FORMAT = pyaudio.paInt16
CHUNK_SIZE = 1024

WS_URL = "ws://localhost:8000/ws"
USER_ID = "sample-reader"  # Seeded by examples/setup_and_run.py
STORY_ID = 1700000000000

DEMO_STORY = Story(
    title="Pip the Puppy",
    text="Pip the puppy found a red ball. He took it to the park. They played all day.",
)


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S.%f")[:-3]


async def _wait_for_enter(prompt: str) -> None:
    await asyncio.get_running_loop().run_in_executor(None, input, prompt)


async def test_websocket_client():
    """Read the sample story through the WebSocket API."""
    p = pyaudio.PyAudio()
    input_stream = p.open(
        format=FORMAT,
        channels=CHANNELS,
        rate=INPUT_SAMPLE_RATE,
        input=True,
        frames_per_buffer=CHUNK_SIZE
    )

    capturing = asyncio.Event()
    print(f"Connecting to WebSocket at {WS_URL}...")

    try:
        async with websockets.connect(WS_URL) as websocket:
            await websocket.send(json.dumps({
                "type": "session.create",
                "user_id": USER_ID,
                "story_id": STORY_ID,
                "sample_rate": INPUT_SAMPLE_RATE,
            }))
            response_data = json.loads(await websocket.recv())
            if response_data.get("type") != "session.created":
                print(f"✗ Could not create session: {response_data}")
                return
            print(f"✓ Session created: {response_data.get('session_id')}")

            await websocket.send(json.dumps({"type": "reading.start"}))

            async def send_audio():
                """Stream microphone frames while the server is capturing."""
                loop = asyncio.get_running_loop()
                while True:
                    await capturing.wait()
                    audio_data = await loop.run_in_executor(
                        None, lambda: input_stream.read(CHUNK_SIZE, exception_on_overflow=False)
                    )
                    if capturing.is_set():
                        await websocket.send(audio_data)

            speaker = PyAudioSink(p)
            clip = 0

            async def play_clip(wav_bytes: bytes, number: int):
                samples, sample_rate = decode_wav(wav_bytes)
                await speaker.play(samples, sample_rate)
                await websocket.send(json.dumps({"type": "playback.ended", "clip": number}))

            async def announce_done():
                await _wait_for_enter("   Press Enter when you have finished reading... ")
                await websocket.send(json.dumps({"type": "reading.done"}))

            send_task = asyncio.create_task(send_audio())
            try:
                async for message in websocket:
                    if isinstance(message, bytes):
                        print(f"[{_timestamp()}] 🔊 prompt audio ({len(message)} bytes)")
                        asyncio.create_task(play_clip(message, clip))
                        continue

                    data = json.loads(message)
                    msg_type = data.get("type")
                    if msg_type == "playback.start":
                        clip = data["clip"]
                    elif msg_type == "playback.stop":
                        await speaker.stop()
                    elif msg_type == "capture.start":
                        capturing.set()
                        await websocket.send(json.dumps({"type": "capture.started"}))
                    elif msg_type == "capture.stop":
                        capturing.clear()
                    elif msg_type == "flow.state":
                        print(f"[{_timestamp()}] 📖 {data['flow_state']}: {data.get('target_text') or ''}")
                        if data["flow_state"] == "LISTENING":
                            asyncio.create_task(announce_done())
                        elif data["flow_state"] == "FINISHED":
                            break
                    elif msg_type == "feedback":
                        print(f"[{_timestamp()}] ⭐ {data['message']} (heard {data.get('transcript')!r}, {data['similarity']:.0f}%)")
                    elif msg_type in ("notice", "error", "session.ended"):
                        print(f"[{_timestamp()}] 📨 {data}")
            finally:
                send_task.cancel()
                await asyncio.gather(send_task, return_exceptions=True)

    except websockets.exceptions.WebSocketException as e:
        print(f"❌ WebSocket error: {e}")
        print("\nMake sure the server is running:")
        print("  python examples/setup_and_run.py")
    finally:
        input_stream.stop_stream()
        input_stream.close()
        p.terminate()
        print("Session ended")


async def test_local_session():
    """Read a story with the sound card, no server involved."""
    if settings.speech_backend == "cloud":
        speech = CloudSpeechClient(settings.functions_base_url, api_key=settings.functions_api_key)
    else:
        speech = MockSpeechBackend(sample_rate=settings.tts_sample_rate)
        speech.script(*DEMO_STORY.sentences)

    pa = pyaudio.PyAudio()
    service = ReadingService(
        session=ReadingSessionState(user_id=USER_ID, story_id=DEMO_STORY.id),
        story=DEMO_STORY,
        playback=SpeechPlaybackAdapter(speech, PyAudioSink(pa), sample_rate=settings.tts_sample_rate),
        capture=AudioCaptureAdapter(PyAudioMicrophone(INPUT_SAMPLE_RATE, pa)),
        transcriber=speech,
        phoneme_provider=speech,
        config=settings.reading_config(),
    )
    await service.start()
    await service.start_reading()

    try:
        while True:
            item = await service.outbound_queue.get()
            if isinstance(item, FlowStateMessage):
                print(f"[{_timestamp()}] 📖 {item.flow_state.value}: {item.target_text or ''}")
                if item.flow_state.value == "LISTENING":
                    await _wait_for_enter("   Press Enter when you have finished reading... ")
                    await service.learner_done()
                elif item.flow_state.value == "FINISHED":
                    break
            elif isinstance(item, FeedbackMessage):
                print(f"[{_timestamp()}] ⭐ {item.message} ({item.similarity:.0f}%)")
            elif isinstance(item, (NoticeMessage, SessionEndedMessage)):
                print(f"[{_timestamp()}] 📨 {item}")
    finally:
        await service.stop()
        pa.terminate()


async def main():
    if "--local" in sys.argv:
        await test_local_session()
    else:
        await test_websocket_client()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nStopped")
