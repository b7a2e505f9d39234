"""Infrastructure layer components."""

from .cloud_speech_client import CloudSpeechClient
from .dynamodb_preferences_provider import DynamoDBPreferencesProvider
from .dynamodb_story_repository import DynamoDBStoryRepository
from .local_preferences_provider import LocalPreferencesProvider
from .local_story_repository import LocalStoryRepository
from .mock_speech_backend import MockSpeechBackend

__all__ = [
    "CloudSpeechClient",
    "DynamoDBPreferencesProvider",
    "DynamoDBStoryRepository",
    "LocalPreferencesProvider",
    "LocalStoryRepository",
    "MockSpeechBackend",
]
