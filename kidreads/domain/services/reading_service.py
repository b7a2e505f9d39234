"""Reading service: runs the reading flow for one learner and one story."""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from ..entities.audio import TranscriptionAttempt
from ..entities.events import (
    BeginTurnEvent,
    CaptureDeniedEvent,
    ChangeModeEvent,
    FeedbackElapsedEvent,
    InboundEvent,
    LeaveEvent,
    LearnerDoneEvent,
    PhonemeDrillUpdatedEvent,
    PlaybackFinishedEvent,
    ReadFullStoryEvent,
    SelectWordEvent,
    StartReadingEvent,
    TranscriptionReceivedEvent,
)
from ..entities.messages import (
    ErrorOutMessage,
    FeedbackMessage,
    FlowStateMessage,
    NoticeMessage,
    OutboundMessage,
    PhonemeMessage,
    QuizOpenMessage,
    SessionEndedMessage,
    SessionReadyMessage,
)
from ..entities.reading_session import (
    Feedback,
    FlowState,
    PhonemeDrill,
    ReadingMode,
    ReadingSessionState,
    SessionStatus,
)
from ..entities.story import Story
from ..entities.user_preferences import UserPreferences
from ..entities.websocket_messages import ErrorCode
from ..interfaces.speech import PhonemeProvider, Transcriber
from .audio_capture import AudioCaptureAdapter
from .reading_flow import (
    DEFAULT_CONFIG,
    ReadingConfig,
    phoneme_highlight_offsets,
    transition,
)
from .speech_playback import SpeechPlaybackAdapter
from .story_walker import StoryWalker
from .text_matching import normalize_text

logger = logging.getLogger(__name__)

CORRECT_MESSAGE = "Great job!"
RETRY_MESSAGE = "Not quite. Let's try that one again!"
PERMISSION_NOTICE = (
    "I can't hear you yet. Please allow microphone access so you can read "
    "along, then press Start Reading."
)
FINISHED_NOTICE = "You did it! You read the whole story!"
PHONEME_ERROR_NOTICE = "I couldn't break that word into sounds. Let's try another one!"


class ReadingService:
    """
    Per-session service that runs the reading flow.

    This service owns:
    - The reading session state and the story walker position
    - The speech playback and audio capture adapters (microphone and speaker)
    - Reacting to each state transition with the matching side effect
    - Emitting events to the WebSocket layer via async queue

    Every state change goes through ``transition``; the work triggered by a
    state (playback, transcription, feedback timers) runs in background tasks
    that report back by enqueueing events stamped with the current epoch.
    The service is unit-testable without sockets or audio hardware.
    """

    def __init__(
        self,
        session: ReadingSessionState,
        story: Story,
        playback: SpeechPlaybackAdapter,
        capture: AudioCaptureAdapter,
        transcriber: Transcriber,
        phoneme_provider: PhonemeProvider,
        preferences: Optional[UserPreferences] = None,
        config: ReadingConfig = DEFAULT_CONFIG,
        outbound_queue: Optional[asyncio.Queue] = None,
    ):
        self.session: ReadingSessionState = session
        self.story = story
        self.playback = playback
        self.capture = capture
        self.transcriber = transcriber
        self.phoneme_provider = phoneme_provider
        self.preferences = preferences or UserPreferences()
        self.config = config

        # Asyncio queues for communication
        self.inbound_queue: asyncio.Queue[InboundEvent] = asyncio.Queue()
        # The outbound queue may be shared with client-side audio devices.
        self.outbound_queue: asyncio.Queue[OutboundMessage] = outbound_queue or asyncio.Queue()

        self.last_attempt: Optional[TranscriptionAttempt] = None

        self._pending: set[asyncio.Task] = set()
        self._loading_phonemes = False
        self._drill_task: Optional[asyncio.Task] = None
        self._permission_notice_sent = False

        # Service state
        self._running = False
        self._task: Optional[asyncio.Task] = None

        logger.info(f"ReadingService created for session {session.id}")

    async def start(self):
        """Start the event loop and emit the session ready message."""
        if self._running:
            logger.warning(f"Service {self.session.id} already running")
            return

        self._running = True
        self.session.status = SessionStatus.ACTIVE
        self.session.last_activity_at = datetime.utcnow()

        self._task = asyncio.create_task(self._process_inbound_events())

        await self._emit_session_ready()
        await self._emit_flow_state()

        logger.info(f"ReadingService {self.session.id} started")

    async def stop(self):
        """Stop the event loop and release the microphone and speaker."""
        if not self._running and self._task is None:
            return

        self._running = False
        self.session.status = SessionStatus.COMPLETED
        self.session.last_activity_at = datetime.utcnow()

        if self._task and self._task is not asyncio.current_task():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

        await self._cancel_in_flight()
        logger.info(f"ReadingService {self.session.id} stopped")

    async def _process_inbound_events(self):
        """Main event processing loop."""
        logger.info(f"Event processing started for session {self.session.id}")

        try:
            while self._running:
                try:
                    event = await asyncio.wait_for(self.inbound_queue.get(), timeout=1.0)
                    await self._handle_event(event)
                except asyncio.TimeoutError:
                    continue
                except Exception as e:
                    logger.error(f"Error processing event: {e}", exc_info=True)
                    await self._emit_error(
                        ErrorCode.INTERNAL_ERROR,
                        f"Internal processing error: {str(e)}"
                    )
        finally:
            logger.info(f"Event processing ended for session {self.session.id}")

    async def _handle_event(self, event: InboundEvent):
        """Apply an event to the state machine and react to the result."""
        if isinstance(event, SelectWordEvent):
            await self._handle_select_word(event)
            return

        if isinstance(event, PlaybackFinishedEvent):
            event = await self._open_microphone(event)

        old_state = self.session
        new_state = transition(old_state, event, self.story, self.config)
        if new_state is old_state:
            return

        new_state.last_activity_at = datetime.utcnow()
        self.session = new_state
        if isinstance(event, PhonemeDrillUpdatedEvent):
            await self._emit_phonemes(new_state.phoneme_drill)
            return
        await self._react(old_state, new_state)

        if isinstance(event, LeaveEvent):
            await self._emit_session_ended("learner left the story")
            self._running = False
            self.session.status = SessionStatus.COMPLETED

    async def _open_microphone(self, event: PlaybackFinishedEvent) -> InboundEvent:
        """Acquire the microphone once a prompt has been played.

        The flow only enters LISTENING with a live microphone; a denial turns
        the playback completion into a CaptureDeniedEvent.
        """
        state = self.session
        if (
            event.epoch not in (None, state.epoch)
            or state.flow_state != FlowState.SPEAKING
            or state.narrating
        ):
            return event

        await self.capture.start_recording()
        if self.capture.permission_error:
            return CaptureDeniedEvent(epoch=event.epoch)
        return event

    async def _react(self, old: ReadingSessionState, new: ReadingSessionState):
        """Issue the side effects for the state just entered."""
        if new.epoch != old.epoch:
            await self._cancel_in_flight()
            if new.reading_mode == ReadingMode.QUIZ:
                await self.outbound_queue.put(QuizOpenMessage(questions=self.story.quiz))

        await self._emit_flow_state()

        state = new.flow_state
        if state == FlowState.IDLE:
            self._enqueue(BeginTurnEvent(epoch=new.epoch))

        elif state == FlowState.SPEAKING:
            if new.narrating:
                self._spawn(self._speak(self.story.text, new.epoch, is_word=False))
            else:
                target = StoryWalker.from_state(self.story, new).current_text() or ""
                is_word = new.reading_mode == ReadingMode.WORD
                self._spawn(self._speak(target, new.epoch, is_word=is_word))

        elif state == FlowState.TRANSCRIBING:
            self._spawn(self._transcribe(new.epoch))

        elif state == FlowState.EVALUATING:
            if self.last_attempt is not None:
                self.last_attempt.similarity = new.last_similarity
            await self._emit_feedback(new)
            delay = self.config.feedback_delay(new.feedback)
            self._spawn(self._feedback_timer(delay, new.epoch))

        elif state == FlowState.INITIAL:
            if new.permission_error and not self._permission_notice_sent:
                self._permission_notice_sent = True
                await self._emit_notice(PERMISSION_NOTICE)

        elif state == FlowState.FINISHED and old.flow_state != FlowState.FINISHED:
            await self._emit_notice(FINISHED_NOTICE)

    # ===== Background work =====

    async def _speak(self, text: str, epoch: int, is_word: bool):
        """Play a prompt; a failed playback counts as finished so the flow never stalls."""
        try:
            result = await self.playback.speak(
                text,
                on_end=lambda: self._enqueue(PlaybackFinishedEvent(epoch=epoch)),
                voice=self.preferences.voice,
                is_word=is_word,
                playback_rate=self.preferences.speaking_rate,
            )
        except Exception as e:
            logger.error(f"Speaker failed for session {self.session.id}: {e}", exc_info=True)
            self._enqueue(PlaybackFinishedEvent(epoch=epoch))
            return
        if result.failed:
            logger.warning(f"Playback failed for session {self.session.id}, skipping prompt audio")
            self._enqueue(PlaybackFinishedEvent(epoch=epoch))

    async def _transcribe(self, epoch: int):
        """Stop capture and transcribe; timeouts and failures become an empty transcript.

        The transcript event is always enqueued, so the flow leaves
        TRANSCRIBING even when the microphone or the encoder breaks.
        """
        payload = None
        transcript = None
        try:
            payload = await self.capture.stop_recording()
            if payload:
                transcript = await asyncio.wait_for(
                    self.transcriber.transcribe(payload),
                    timeout=self.config.transcription_timeout,
                )
            else:
                logger.info("No audio captured, treating as empty transcript")
        except asyncio.TimeoutError:
            logger.warning(f"Transcription timed out after {self.config.transcription_timeout}s")
        except Exception as e:
            logger.error(f"Transcription failed: {e}", exc_info=True)

        self.last_attempt = TranscriptionAttempt(audio_payload=payload, transcript=transcript)
        self._enqueue(TranscriptionReceivedEvent(transcript=transcript, epoch=epoch))

    async def _feedback_timer(self, delay: float, epoch: int):
        await asyncio.sleep(delay)
        self._enqueue(FeedbackElapsedEvent(epoch=epoch))

    async def _handle_select_word(self, event: SelectWordEvent):
        """Start a phoneme drill for a word; ignored while anything else is playing."""
        state = self.session
        if (
            state.reading_mode != ReadingMode.PHONEME
            or state.flow_state != FlowState.INITIAL
            or self.playback.is_speaking
            or self.playback.is_loading
            or self._loading_phonemes
        ):
            logger.debug(f"Ignoring word selection {event.word!r}")
            return
        self._drill_task = self._spawn(self._drill_phonemes(event.word, state.epoch))

    async def _drill_phonemes(self, word: str, epoch: int):
        """Look up a word's phonemes, say it slowly and highlight each unit in time.

        Every change to the drill goes through the state machine as a
        PhonemeDrillUpdatedEvent, so a mode change drops the stale updates.
        """
        self._loading_phonemes = True
        self._show_drill(word, ["..."], None, epoch)

        try:
            try:
                phonemes = await self.phoneme_provider.get_phonemes(normalize_text(word))
            except Exception as e:
                logger.error(f"Phoneme lookup failed for {word!r}: {e}")
                self._show_drill(word, [], None, epoch)
                await self._emit_notice(PHONEME_ERROR_NOTICE)
                return

            self._show_drill(word, phonemes, None, epoch)

            result = await self.playback.speak(
                word,
                on_end=lambda: self._show_drill(word, phonemes, None, epoch),
                slow=True,
                voice=self.preferences.voice,
                is_word=True,
                playback_rate=self.config.phoneme_playback_rate,
            )
        finally:
            self._loading_phonemes = False

        loop = asyncio.get_running_loop()
        started = loop.time()
        for index, offset in enumerate(phoneme_highlight_offsets(result.duration, len(phonemes))):
            await asyncio.sleep(max(0.0, started + offset - loop.time()))
            if asyncio.current_task() is not self._drill_task or not self.playback.is_speaking:
                break
            self._show_drill(word, phonemes, index, epoch)

    def _show_drill(self, word: str, phonemes: list[str], highlighted: Optional[int], epoch: int):
        drill = PhonemeDrill(word=word, phonemes=list(phonemes), highlighted_index=highlighted)
        self._enqueue(PhonemeDrillUpdatedEvent(drill=drill, epoch=epoch))

    def _enqueue(self, event: InboundEvent):
        self.inbound_queue.put_nowait(event)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        task.add_done_callback(self._log_failure)
        return task

    def _log_failure(self, task: asyncio.Task):
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                f"Background task failed for session {self.session.id}",
                exc_info=task.exception(),
            )

    async def _cancel_in_flight(self):
        """Cancel background work and release the speaker and microphone."""
        tasks = [t for t in self._pending if t is not asyncio.current_task()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._loading_phonemes = False
        await self.playback.cancel()
        await self.capture.cancel_recording()

    # ===== Public API methods (called by WebSocket handler) =====

    async def start_reading(self):
        """Start (or restart) reading from the first item of the current mode."""
        await self.inbound_queue.put(StartReadingEvent())

    async def learner_done(self):
        """The learner has finished reading the current item aloud."""
        await self.inbound_queue.put(LearnerDoneEvent())

    async def change_mode(self, mode: ReadingMode):
        """Switch reading mode, discarding any turn in progress."""
        await self.inbound_queue.put(ChangeModeEvent(mode=mode))

    async def read_full_story(self):
        """Narrate the whole story."""
        await self.inbound_queue.put(ReadFullStoryEvent())

    async def select_word(self, word: str):
        """Drill the phonemes of a word (Phoneme mode only)."""
        await self.inbound_queue.put(SelectWordEvent(word=word))

    async def leave(self):
        """Leave the story screen and end the session."""
        await self.inbound_queue.put(LeaveEvent())

    # ===== Outbound message helpers =====

    async def _emit_session_ready(self):
        """Emit session ready message to the client."""
        message = SessionReadyMessage(
            session_id=str(self.session.id),
            story_id=self.story.id,
            reading_mode=self.session.reading_mode.value,
        )
        await self.outbound_queue.put(message)
        logger.info(f"Emitted session ready for session {self.session.id}")

    async def _emit_flow_state(self):
        state = self.session
        target = None
        if state.flow_state not in (FlowState.INITIAL, FlowState.FINISHED):
            target = StoryWalker.from_state(self.story, state).current_text()
        await self.outbound_queue.put(FlowStateMessage(
            flow_state=state.flow_state,
            reading_mode=state.reading_mode,
            sentence_index=state.sentence_index,
            word_index=state.word_index,
            target_text=target,
            narrating=state.narrating,
        ))

    async def _emit_feedback(self, state: ReadingSessionState):
        """Emit feedback; a silent attempt gets the same retry prompt as a misread one."""
        correct = state.feedback == Feedback.CORRECT
        await self.outbound_queue.put(FeedbackMessage(
            outcome=state.feedback,
            similarity=max(0.0, state.last_similarity or 0.0),
            expected_text=StoryWalker.from_state(self.story, state).current_text() or "",
            transcript=state.last_transcript,
            message=CORRECT_MESSAGE if correct else RETRY_MESSAGE,
        ))
        logger.info(f"Emitted feedback: {state.feedback.value}")

    async def _emit_phonemes(self, drill: PhonemeDrill):
        await self.outbound_queue.put(PhonemeMessage(
            word=drill.word,
            phonemes=list(drill.phonemes),
            highlighted_index=drill.highlighted_index,
        ))

    async def _emit_notice(self, text: str):
        """Emit a notice message to the client."""
        await self.outbound_queue.put(NoticeMessage(text))

    async def _emit_error(self, code: ErrorCode, text: str):
        """Emit an error message to the client."""
        await self.outbound_queue.put(ErrorOutMessage(code, text))

    async def _emit_session_ended(self, reason: str):
        """Emit a session ended message to the client."""
        await self.outbound_queue.put(SessionEndedMessage(reason=reason))
        logger.info(f"Emitted session ended: {reason}")

    def get_session_state(self) -> dict:
        """Get the current session state as a dictionary."""
        state = self.session
        return {
            "session_id": str(state.id),
            "story_id": state.story_id,
            "user_id": state.user_id,
            "status": state.status.value,
            "reading_mode": state.reading_mode.value,
            "flow_state": state.flow_state.value,
            "sentence_index": state.sentence_index,
            "word_index": state.word_index,
            "feedback": state.feedback.value,
            "permission_error": state.permission_error,
            "epoch": state.epoch,
            "last_activity": state.last_activity_at.isoformat() if state.last_activity_at else None,
        }
