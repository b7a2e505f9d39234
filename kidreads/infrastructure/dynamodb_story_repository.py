"""DynamoDB implementation of Story Repository."""

import logging
from typing import Any, Dict

import aioboto3
from boto3.dynamodb.conditions import Key

from ..domain.entities.story import Story
from ..domain.interfaces.story_repository import StoryRepository
from .local_story_repository import MAX_STORIES_PER_USER

logger = logging.getLogger(__name__)


class DynamoDBStoryRepository(StoryRepository):
    """DynamoDB repository for saved stories.

    Table layout: partition key ``user_id`` (string), sort key ``story_id``
    (number). The story itself is stored as a JSON document so nested quiz
    data and floats never need converting to DynamoDB types.
    """

    def __init__(
        self,
        table_name: str,
        region_name: str = "us-east-1",
        max_stories: int = MAX_STORIES_PER_USER,
    ):
        """Initialize the DynamoDB story repository.

        Args:
            table_name: The name of the DynamoDB table.
            region_name: AWS region name (default: us-east-1).
            max_stories: Stories kept per user before the oldest is evicted.
        """
        self.table_name = table_name
        self.region_name = region_name
        self.max_stories = max_stories
        self._session = aioboto3.Session()

    async def save_story(self, user_id: str, story: Story) -> None:
        """Save a story and evict the oldest ones over the limit.

        Args:
            user_id: Owner of the story.
            story: The story entity to save.
        """
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            await table.put_item(Item=self._story_to_item(user_id, story))

            response = await table.query(
                KeyConditionExpression=Key("user_id").eq(user_id),
                ProjectionExpression="story_id",
                ScanIndexForward=True,
            )
            story_ids = [int(item["story_id"]) for item in response.get("Items", [])]
            for story_id in story_ids[: max(0, len(story_ids) - self.max_stories)]:
                await table.delete_item(Key={"user_id": user_id, "story_id": story_id})
                logger.info(f"Evicted story {story_id} for user {user_id} (limit {self.max_stories})")

    async def get_story(self, user_id: str, story_id: int) -> Story:
        """Retrieve a story by ID from DynamoDB.

        Raises:
            ValueError: If the story is not found.
        """
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            response = await table.get_item(Key={"user_id": user_id, "story_id": story_id})

            if "Item" not in response:
                raise ValueError(f"Story with id {story_id} not found")

            return self._item_to_story(response["Item"])

    async def list_stories(self, user_id: str) -> list[Story]:
        """List a user's stories, newest first."""
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            response = await table.query(
                KeyConditionExpression=Key("user_id").eq(user_id),
                ScanIndexForward=False,
            )
            return [self._item_to_story(item) for item in response.get("Items", [])]

    async def update_story(self, user_id: str, story: Story) -> None:
        """Update an existing story in DynamoDB.

        Raises:
            ValueError: If the story is not found.
        """
        await self.get_story(user_id, story.id)
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            await table.put_item(Item=self._story_to_item(user_id, story))

    async def delete_story(self, user_id: str, story_id: int) -> None:
        """Delete a story from DynamoDB.

        Raises:
            ValueError: If the story is not found.
        """
        await self.get_story(user_id, story_id)
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            await table.delete_item(Key={"user_id": user_id, "story_id": story_id})

    def _story_to_item(self, user_id: str, story: Story) -> Dict[str, Any]:
        """Convert a Story entity to a DynamoDB item."""
        return {
            "user_id": user_id,
            "story_id": story.id,
            "title": story.title,
            "story": story.model_dump_json(),
        }

    def _item_to_story(self, item: Dict[str, Any]) -> Story:
        """Convert a DynamoDB item to a Story entity."""
        return Story.model_validate_json(item["story"])
