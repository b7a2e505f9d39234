"""User preferences provider protocol."""

from typing import Protocol, runtime_checkable

from ..entities.user_preferences import UserPreferences


@runtime_checkable
class PreferencesProvider(Protocol):
    """Protocol for user preference storage."""

    async def get_preferences(self, user_id: str) -> UserPreferences:
        """Retrieve preferences for a user, defaults when none are stored."""
        ...

    async def update_preferences(self, user_id: str, preferences: UserPreferences) -> None:
        """Store preferences for a user."""
        ...
