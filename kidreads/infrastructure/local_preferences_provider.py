"""Local in-memory implementation of PreferencesProvider."""

from typing import Dict, Optional

from ..domain.entities.user_preferences import UserPreferences
from ..domain.interfaces.preferences_provider import PreferencesProvider


class LocalPreferencesProvider(PreferencesProvider):
    """Local in-memory implementation of the PreferencesProvider protocol.

    Users without stored preferences get the defaults.
    """

    def __init__(self, defaults: Optional[UserPreferences] = None):
        self.defaults = defaults or UserPreferences()
        self._preferences: Dict[str, UserPreferences] = {}

    async def get_preferences(self, user_id: str) -> UserPreferences:
        return self._preferences.get(user_id, self.defaults)

    async def update_preferences(self, user_id: str, preferences: UserPreferences) -> None:
        self._preferences[user_id] = preferences

    def clear(self) -> None:
        """Clear all stored preferences."""
        self._preferences.clear()
