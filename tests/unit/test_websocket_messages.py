"""Tests for WebSocket message models."""

import json

import pytest
from pydantic import ValidationError

from kidreads.domain.entities import FlowState, ReadingMode
from kidreads.domain.entities.messages import (
    AudioOutMessage,
    CaptureControlMessage,
    ErrorOutMessage,
    FlowStateMessage,
    PlaybackStopMessage,
)
from kidreads.domain.entities.websocket_messages import (
    CaptureDenied,
    ErrorCode,
    PhonemeSelect,
    ReadingModeChange,
    ReadingStart,
    SessionCreate,
    client_message_adapter,
)


class TestClientMessages:
    def test_session_create_defaults(self):
        message = SessionCreate.model_validate_json(
            '{"type": "session.create", "user_id": "u1", "story_id": 42}'
        )
        assert message.story_id == 42
        assert message.sample_rate == 16000

    def test_session_create_requires_story(self):
        with pytest.raises(ValidationError):
            SessionCreate.model_validate_json('{"type": "session.create", "user_id": "u1"}')

    @pytest.mark.parametrize(
        "payload, expected",
        [
            ({"type": "reading.start"}, ReadingStart),
            ({"type": "reading.mode", "mode": "Word"}, ReadingModeChange),
            ({"type": "phoneme.select", "word": "cat"}, PhonemeSelect),
            ({"type": "capture.denied"}, CaptureDenied),
        ],
    )
    def test_dispatch_on_type(self, payload, expected):
        message = client_message_adapter.validate_json(json.dumps(payload))
        assert isinstance(message, expected)

    def test_mode_is_parsed(self):
        message = client_message_adapter.validate_json('{"type": "reading.mode", "mode": "Phoneme"}')
        assert message.mode == ReadingMode.PHONEME

    @pytest.mark.parametrize(
        "raw",
        [
            '{"type": "reading.dance"}',
            '{"type": "reading.mode", "mode": "Paragraph"}',
            '{"type": "phoneme.select", "word": ""}',
            "not json",
        ],
    )
    def test_invalid_messages(self, raw):
        with pytest.raises(ValidationError):
            client_message_adapter.validate_json(raw)


class TestServerMessages:
    def test_flow_state_wire_format(self):
        message = FlowStateMessage(
            flow_state=FlowState.LISTENING,
            reading_mode=ReadingMode.SENTENCE,
            sentence_index=1,
            word_index=4,
            target_text="Pip sat.",
        )
        data = json.loads(message.update.model_dump_json())

        assert data["type"] == "flow.state"
        assert data["flow_state"] == "LISTENING"
        assert data["reading_mode"] == "Sentence"
        assert data["target_text"] == "Pip sat."

    def test_capture_control(self):
        assert CaptureControlMessage(action="start").control.type == "capture.start"
        assert CaptureControlMessage(action="stop").control.type == "capture.stop"

    def test_playback_stop(self):
        control = PlaybackStopMessage(clip=3).control
        assert json.loads(control.model_dump_json()) == {"type": "playback.stop", "clip": 3}

    def test_audio_frame_announced_with_clip(self):
        message = AudioOutMessage(wav_bytes=b"RIFF", clip=4)
        assert json.loads(message.start.model_dump_json()) == {"type": "playback.start", "clip": 4}

    def test_playback_ended_requires_clip(self):
        with pytest.raises(ValidationError):
            client_message_adapter.validate_json('{"type": "playback.ended"}')
        ended = client_message_adapter.validate_json('{"type": "playback.ended", "clip": 2}')
        assert ended.clip == 2

    def test_error(self):
        message = ErrorOutMessage(ErrorCode.STORY_NOT_FOUND, "missing")
        data = json.loads(message.error.model_dump_json())
        assert data == {"type": "error", "code": "STORY_NOT_FOUND", "message": "missing"}
