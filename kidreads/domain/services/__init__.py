"""Domain services for the reading coach application."""

from .audio_capture import AudioCaptureAdapter
from .quiz import grade_quiz, record_quiz_result
from .reading_flow import DEFAULT_CONFIG, ReadingConfig, phoneme_highlight_offsets, transition
from .reading_service import ReadingService
from .speech_playback import SLOW_SPEAKING_RATE, SpeechPlaybackAdapter
from .story_walker import StoryWalker
from .text_matching import (
    ACCEPTANCE_THRESHOLD,
    calculate_similarity,
    is_accepted,
    levenshtein_distance,
    normalize_text,
    score_attempt,
)

__all__ = [
    "AudioCaptureAdapter",
    "SpeechPlaybackAdapter",
    "SLOW_SPEAKING_RATE",
    "ReadingService",
    "ReadingConfig",
    "DEFAULT_CONFIG",
    "transition",
    "phoneme_highlight_offsets",
    "StoryWalker",
    "grade_quiz",
    "record_quiz_result",
    "ACCEPTANCE_THRESHOLD",
    "calculate_similarity",
    "is_accepted",
    "levenshtein_distance",
    "normalize_text",
    "score_attempt",
]
