"""Reading flow state machine.

``transition`` is a pure function ``(state, event) -> state'``. It never
performs I/O; the reading service reacts to the resulting state by starting
playback, capture, transcription or feedback timers.

Events that arrive in a state that does not accept them are ignored, and
events stamped with an epoch older than the session's current epoch are
dropped. That is what keeps a late playback or transcription callback from
mutating a session that has already changed mode.
"""

import logging
from dataclasses import dataclass

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
    StartReadingEvent,
    TranscriptionReceivedEvent,
)
from ..entities.reading_session import (
    Feedback,
    FlowState,
    ReadingMode,
    ReadingSessionState,
)
from ..entities.story import Story
from .story_walker import StoryWalker
from .text_matching import ACCEPTANCE_THRESHOLD, is_accepted, score_attempt

logger = logging.getLogger(__name__)

READING_MODES = (ReadingMode.WORD, ReadingMode.SENTENCE)
RESTARTABLE_STATES = (FlowState.INITIAL, FlowState.FINISHED)


@dataclass(frozen=True)
class ReadingConfig:
    """Tunable constants of a reading session (seconds and percentages)."""

    acceptance_threshold: float = ACCEPTANCE_THRESHOLD
    correct_feedback_delay: float = 1.5
    incorrect_feedback_delay: float = 2.0
    transcription_timeout: float = 15.0
    capture_trailing_delay: float = 0.75
    phoneme_playback_rate: float = 1.0

    def feedback_delay(self, feedback: Feedback) -> float:
        if feedback == Feedback.CORRECT:
            return self.correct_feedback_delay
        return self.incorrect_feedback_delay


DEFAULT_CONFIG = ReadingConfig()


def transition(
    state: ReadingSessionState,
    event: InboundEvent,
    story: Story,
    config: ReadingConfig = DEFAULT_CONFIG,
) -> ReadingSessionState:
    """Apply an event to the session state.

    Args:
        state: Current state; never mutated.
        event: The event to apply.
        story: The story being read.
        config: Acceptance threshold used when evaluating transcripts.

    Returns:
        ReadingSessionState: The next state (``state`` itself when ignored).
    """
    if event.epoch is not None and event.epoch != state.epoch:
        logger.debug(
            f"Dropping stale {type(event).__name__} (epoch {event.epoch}, "
            f"session epoch {state.epoch})"
        )
        return state

    handler = _HANDLERS.get(type(event))
    if handler is None:
        return state

    new_state = handler(state.model_copy(deep=True), event, story, config)
    if new_state is None:
        logger.debug(f"Ignoring {type(event).__name__} in {state.flow_state.value}")
        return state

    if new_state.flow_state != state.flow_state:
        logger.info(
            f"Flow {state.flow_state.value} -> {new_state.flow_state.value} "
            f"({type(event).__name__})"
        )
    return new_state


def _reset_session(state: ReadingSessionState) -> None:
    state.flow_state = FlowState.INITIAL
    state.sentence_index = 0
    state.word_index = 0
    state.feedback = Feedback.NONE
    state.last_similarity = None
    state.last_transcript = None
    state.phoneme_drill = None
    state.narrating = False
    state.epoch += 1


def _on_change_mode(state, event: ChangeModeEvent, story, config):
    _reset_session(state)
    state.reading_mode = event.mode
    return state


def _on_leave(state, event, story, config):
    _reset_session(state)
    return state


def _on_start_reading(state, event, story, config):
    if state.flow_state not in RESTARTABLE_STATES or state.reading_mode not in READING_MODES:
        return None
    walker = StoryWalker(story, state.reading_mode)
    walker.apply_to(state)
    state.feedback = Feedback.NONE
    state.last_similarity = None
    state.last_transcript = None
    state.flow_state = FlowState.FINISHED if walker.is_empty else FlowState.IDLE
    return state


def _on_read_full_story(state, event, story, config):
    if state.flow_state not in RESTARTABLE_STATES:
        return None
    state.flow_state = FlowState.SPEAKING
    state.narrating = True
    return state


def _on_begin_turn(state, event, story, config):
    if state.flow_state != FlowState.IDLE:
        return None
    state.flow_state = FlowState.SPEAKING
    return state


def _on_playback_finished(state, event, story, config):
    if state.flow_state != FlowState.SPEAKING:
        return None
    if state.narrating:
        state.narrating = False
        state.flow_state = FlowState.INITIAL
        return state
    state.permission_error = False
    state.flow_state = FlowState.LISTENING
    return state


def _on_capture_denied(state, event, story, config):
    if state.flow_state != FlowState.SPEAKING or state.narrating:
        return None
    state.permission_error = True
    state.flow_state = FlowState.INITIAL
    return state


def _on_learner_done(state, event, story, config):
    if state.flow_state != FlowState.LISTENING:
        return None
    state.flow_state = FlowState.TRANSCRIBING
    return state


def _on_transcription(state, event: TranscriptionReceivedEvent, story, config):
    if state.flow_state != FlowState.TRANSCRIBING:
        return None
    expected = StoryWalker.from_state(story, state).current_text() or ""
    similarity = score_attempt(expected, event.transcript)
    state.last_transcript = event.transcript
    state.last_similarity = similarity
    if is_accepted(similarity, config.acceptance_threshold):
        state.feedback = Feedback.CORRECT
    else:
        state.feedback = Feedback.INCORRECT
    state.flow_state = FlowState.EVALUATING
    return state


def _on_feedback_elapsed(state, event, story, config):
    if state.flow_state != FlowState.EVALUATING:
        return None
    if state.feedback == Feedback.CORRECT:
        walker = StoryWalker.from_state(story, state)
        if walker.advance():
            walker.apply_to(state)
            state.flow_state = FlowState.IDLE
        else:
            state.flow_state = FlowState.FINISHED
    else:
        # Same item again, no cursor movement.
        state.flow_state = FlowState.IDLE
    state.feedback = Feedback.NONE
    return state


def _on_phoneme_drill(state, event: PhonemeDrillUpdatedEvent, story, config):
    if state.reading_mode != ReadingMode.PHONEME or state.flow_state != FlowState.INITIAL:
        return None
    state.phoneme_drill = event.drill.model_copy(deep=True)
    return state


_HANDLERS = {
    ChangeModeEvent: _on_change_mode,
    LeaveEvent: _on_leave,
    StartReadingEvent: _on_start_reading,
    ReadFullStoryEvent: _on_read_full_story,
    BeginTurnEvent: _on_begin_turn,
    PlaybackFinishedEvent: _on_playback_finished,
    CaptureDeniedEvent: _on_capture_denied,
    LearnerDoneEvent: _on_learner_done,
    TranscriptionReceivedEvent: _on_transcription,
    FeedbackElapsedEvent: _on_feedback_elapsed,
    PhonemeDrillUpdatedEvent: _on_phoneme_drill,
}


def phoneme_highlight_offsets(duration: float, count: int) -> list[float]:
    """Start offsets (seconds) for highlighting each phoneme of a word.

    The audio duration is divided evenly across the phonemes.
    """
    if duration <= 0 or count <= 0:
        return []
    step = duration / count
    return [i * step for i in range(count)]
