"""Tests for preference providers."""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from kidreads.domain.entities import UserPreferences
from kidreads.domain.interfaces import PreferencesProvider
from kidreads.infrastructure.dynamodb_preferences_provider import DynamoDBPreferencesProvider
from kidreads.infrastructure.local_preferences_provider import LocalPreferencesProvider


class TestLocalPreferencesProvider:
    """Test cases for LocalPreferencesProvider."""

    def test_satisfies_protocol(self):
        assert isinstance(LocalPreferencesProvider(), PreferencesProvider)

    @pytest.mark.asyncio
    async def test_defaults_for_unknown_user(self):
        provider = LocalPreferencesProvider(defaults=UserPreferences(speaking_rate=0.8))
        prefs = await provider.get_preferences("new-user")
        assert prefs.speaking_rate == 0.8

    @pytest.mark.asyncio
    async def test_update_and_get(self):
        provider = LocalPreferencesProvider()
        await provider.update_preferences("user-1", UserPreferences(voice="Orus", story_length=3))
        prefs = await provider.get_preferences("user-1")
        assert prefs.voice == "Orus"
        assert prefs.story_length == 3


@pytest.fixture
def mock_table():
    with patch("kidreads.infrastructure.dynamodb_preferences_provider.boto3.resource") as mock_resource:
        table = MagicMock()
        mock_resource.return_value.Table.return_value = table
        yield table


class TestDynamoDBPreferencesProvider:
    """Test cases for DynamoDBPreferencesProvider."""

    @pytest.mark.asyncio
    async def test_get_preferences(self, mock_table):
        mock_table.get_item.return_value = {
            "Item": {"id": "user-1", "voice": "Orus", "speaking_rate": Decimal("0.8"), "story_length": 2}
        }
        provider = DynamoDBPreferencesProvider("prefs")

        prefs = await provider.get_preferences("user-1")

        assert prefs == UserPreferences(voice="Orus", speaking_rate=0.8, story_length=2)
        mock_table.get_item.assert_called_once_with(Key={"id": "user-1"})

    @pytest.mark.asyncio
    async def test_missing_item_returns_defaults(self, mock_table):
        mock_table.get_item.return_value = {}
        provider = DynamoDBPreferencesProvider("prefs")
        assert await provider.get_preferences("user-1") == UserPreferences()

    @pytest.mark.asyncio
    async def test_update_stores_decimal_rate(self, mock_table):
        provider = DynamoDBPreferencesProvider("prefs")

        await provider.update_preferences("user-1", UserPreferences(speaking_rate=1.25))

        item = mock_table.put_item.call_args.kwargs["Item"]
        assert item == {"id": "user-1", "voice": "Leda", "speaking_rate": Decimal("1.25"), "story_length": 1}
