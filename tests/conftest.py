"""Shared fixtures for API, integration and end-to-end tests."""

import json

import pytest
from fastapi.testclient import TestClient

from kidreads.application import api
from kidreads.application.controller import StoryReadingController
from kidreads.domain.services import ReadingConfig
from kidreads.infrastructure import LocalPreferencesProvider, LocalStoryRepository, MockSpeechBackend

FAST_CONFIG = ReadingConfig(
    correct_feedback_delay=0.05,
    incorrect_feedback_delay=0.05,
    transcription_timeout=1.0,
    capture_trailing_delay=0.0,
)


@pytest.fixture
def speech():
    """Mock speech backend with short prompts."""
    return MockSpeechBackend(seconds_per_word=0.01)


@pytest.fixture
def controller(speech):
    """A controller on in-memory storage and the mock speech backend."""
    return StoryReadingController(
        story_repository=LocalStoryRepository(),
        preferences_provider=LocalPreferencesProvider(),
        story_generator=speech,
        synthesizer=speech,
        transcriber=speech,
        phoneme_provider=speech,
        reading_config=FAST_CONFIG,
    )


@pytest.fixture
def client(controller, monkeypatch):
    """Test client for the app, wired to the test controller."""
    monkeypatch.setattr(api, "controller", controller)
    with TestClient(api.app) as test_client:
        yield test_client


def receive_until(websocket, message_type: str, **fields) -> dict:
    """Read server messages until one matches, acting as the learner's browser.

    Each ``playback.start`` is acknowledged with ``playback.ended`` for its
    clip and ``capture.start`` with ``capture.started``, so the reading flow
    keeps moving. The binary WAV frames themselves are skipped.
    """
    while True:
        message = websocket.receive()
        if message.get("bytes") is not None:
            continue

        data = json.loads(message["text"])
        if data["type"] == "playback.start":
            websocket.send_text(json.dumps({"type": "playback.ended", "clip": data["clip"]}))
        if data["type"] == "capture.start":
            websocket.send_text(json.dumps({"type": "capture.started"}))
        if data["type"] == message_type and all(data.get(k) == v for k, v in fields.items()):
            return data


def open_session(websocket, user_id: str, story_id: int) -> dict:
    """Create a reading session and consume the greeting messages."""
    websocket.send_text(json.dumps({
        "type": "session.create",
        "user_id": user_id,
        "story_id": story_id,
    }))
    created = websocket.receive_json()
    assert created["type"] == "session.created"
    receive_until(websocket, "session.ready")
    receive_until(websocket, "flow.state", flow_state="INITIAL")
    return created
