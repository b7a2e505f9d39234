"""Domain interfaces for the reading coach application."""

from .audio_io import AudioSink, MicrophonePermissionError, MicrophoneSource
from .preferences_provider import PreferencesProvider
from .speech import PhonemeProvider, SpeechSynthesizer, Transcriber
from .story_generator import StoryGenerator
from .story_repository import StoryRepository

__all__ = [
    "AudioSink",
    "MicrophoneSource",
    "MicrophonePermissionError",
    "PreferencesProvider",
    "PhonemeProvider",
    "SpeechSynthesizer",
    "Transcriber",
    "StoryGenerator",
    "StoryRepository",
]
