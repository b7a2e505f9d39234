"""DynamoDB implementation of PreferencesProvider."""

import asyncio
from decimal import Decimal
from typing import Any, Dict, Optional

import boto3

from ..domain.entities.user_preferences import UserPreferences
from ..domain.interfaces.preferences_provider import PreferencesProvider


class DynamoDBPreferencesProvider(PreferencesProvider):
    """DynamoDB implementation of the PreferencesProvider protocol."""

    def __init__(
        self,
        table_name: str,
        region_name: str = "us-east-1",
        defaults: Optional[UserPreferences] = None,
    ):
        """Initialize the DynamoDB preferences provider.

        Args:
            table_name: The name of the DynamoDB table.
            region_name: AWS region name (default: us-east-1).
            defaults: Preferences for users with nothing stored.
        """
        self.defaults = defaults or UserPreferences()
        self.table_name = table_name
        self.dynamodb = boto3.resource("dynamodb", region_name=region_name)
        self.table = self.dynamodb.Table(table_name)

    async def get_preferences(self, user_id: str) -> UserPreferences:
        """Retrieve a user's preferences, defaults when none are stored."""
        response = await asyncio.to_thread(self.table.get_item, Key={"id": user_id})

        if "Item" not in response:
            return self.defaults

        return self._item_to_preferences(response["Item"])

    async def update_preferences(self, user_id: str, preferences: UserPreferences) -> None:
        """Store a user's preferences."""
        item = {
            "id": user_id,
            "voice": preferences.voice,
            # DynamoDB numbers must be Decimal, not float.
            "speaking_rate": Decimal(str(preferences.speaking_rate)),
            "story_length": preferences.story_length,
        }
        await asyncio.to_thread(self.table.put_item, Item=item)

    def _item_to_preferences(self, item: Dict[str, Any]) -> UserPreferences:
        """Convert a DynamoDB item to a UserPreferences entity."""
        return UserPreferences(
            voice=item.get("voice", self.defaults.voice),
            speaking_rate=float(item.get("speaking_rate", self.defaults.speaking_rate)),
            story_length=int(item.get("story_length", self.defaults.story_length)),
        )
