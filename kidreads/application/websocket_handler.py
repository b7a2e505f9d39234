import asyncio
import json
import logging
from dataclasses import asdict

from pydantic import ValidationError
from starlette.websockets import WebSocket, WebSocketDisconnect

from ..domain.entities import (
    AudioOutMessage,
    OutboundMessage,
)
from ..domain.entities.messages import (
    CaptureControlMessage,
    ErrorOutMessage,
    FeedbackMessage,
    FlowStateMessage,
    NoticeMessage,
    PhonemeMessage,
    PlaybackStopMessage,
    QuizOpenMessage,
    SessionEndedMessage,
    SessionReadyMessage,
)
from ..domain.entities.websocket_messages import (
    CaptureDenied,
    CaptureStarted,
    ClientMessage,
    ErrorCode,
    PhonemeSelect,
    PlaybackEnded,
    ReadingDone,
    ReadingFullStory,
    ReadingModeChange,
    ReadingStart,
    client_message_adapter,
)
from ..domain.services import ReadingService
from ..infrastructure.websocket_audio import WebSocketAudioSink, WebSocketMicrophone

logger = logging.getLogger(__name__)


class WebSocketHandler:
    """Bridges one WebSocket connection and one ReadingService.

    Binary frames from the client are microphone audio; text frames are JSON
    control messages. Device acknowledgements go straight to the audio
    devices, everything else becomes a reading service call.
    """

    def __init__(
        self,
        reading_service: ReadingService,
        sink: WebSocketAudioSink,
        microphone: WebSocketMicrophone,
    ):
        self._reading_service = reading_service
        self._sink = sink
        self._microphone = microphone

    async def handle_websocket(self, websocket: WebSocket) -> None:
        # Note: websocket.accept() is called by the API endpoint before this
        send_task = asyncio.create_task(self._send_loop(websocket))
        receive_task = asyncio.create_task(self._receive_loop(websocket))
        done, pending = await asyncio.wait(
            {send_task, receive_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
        try:
            for task in done:
                exc = task.exception()
                if exc:
                    raise exc
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected: {websocket.client}")
        except Exception as e:
            logger.error(f"WebSocket error: {e}", exc_info=True)
        finally:
            await self._reading_service.stop()
            for t in (send_task, receive_task):
                if not t.done():
                    t.cancel()
            await asyncio.gather(send_task, receive_task, return_exceptions=True)

            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")
            logger.info(f"WebSocket connection closed: {websocket.client}")

    async def _send_loop(self, websocket: WebSocket) -> None:
        service = self._reading_service
        while service._running or not service.outbound_queue.empty():
            item: OutboundMessage = await service.outbound_queue.get()

            match item:
                case AudioOutMessage():
                    # Numbered announcement, then the clip as a binary WAV frame
                    await websocket.send_text(item.start.model_dump_json())
                    await websocket.send_bytes(item.wav_bytes)

                case SessionReadyMessage():
                    data = {"type": "session.ready", **asdict(item)}
                    await websocket.send_text(json.dumps(data))

                case FlowStateMessage() | PhonemeMessage():
                    await websocket.send_text(item.update.model_dump_json())

                case FeedbackMessage():
                    await websocket.send_text(item.feedback.model_dump_json())

                case NoticeMessage():
                    await websocket.send_text(item.notice.model_dump_json())

                case QuizOpenMessage():
                    await websocket.send_text(item.quiz.model_dump_json())

                case CaptureControlMessage() | PlaybackStopMessage():
                    await websocket.send_text(item.control.model_dump_json())

                case ErrorOutMessage():
                    await websocket.send_text(item.error.model_dump_json())

                case SessionEndedMessage():
                    await websocket.send_text(item.session_ended.model_dump_json())

                case _:
                    # Unknown message type
                    raise ValueError(f"Unknown OutboundMessage type: {type(item)}")

    async def _receive_loop(self, websocket: WebSocket) -> None:
        """Receive messages from client and forward them."""
        while True:
            data = await websocket.receive()

            if data.get("type") == "websocket.receive" and data.get("bytes") is not None:
                self._microphone.feed(data["bytes"])

            elif data.get("type") == "websocket.receive" and data.get("text") is not None:
                try:
                    message = client_message_adapter.validate_json(data["text"])
                except ValidationError as e:
                    logger.warning(f"Invalid client message: {e.errors()[:1]}")
                    await self._reading_service.outbound_queue.put(
                        ErrorOutMessage(ErrorCode.INVALID_MESSAGE, "Unrecognised or malformed message")
                    )
                    continue
                await self._handle_control_message(message)

            elif data.get("type") == "websocket.disconnect":
                logger.info("Client disconnected, leaving the story")
                await self._reading_service.leave()
                break

    async def _handle_control_message(self, message: ClientMessage) -> None:
        """Route a parsed control message."""
        match message:
            case PlaybackEnded(clip=clip):
                self._sink.playback_ended(clip)
            case CaptureStarted():
                self._microphone.capture_started()
            case CaptureDenied(reason=reason):
                self._microphone.capture_denied(reason)
            case ReadingStart():
                await self._reading_service.start_reading()
            case ReadingDone():
                await self._reading_service.learner_done()
            case ReadingModeChange(mode=mode):
                await self._reading_service.change_mode(mode)
            case ReadingFullStory():
                await self._reading_service.read_full_story()
            case PhonemeSelect(word=word):
                await self._reading_service.select_word(word)
