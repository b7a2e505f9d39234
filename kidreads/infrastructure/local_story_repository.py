"""Local in-memory implementation of Story Repository."""

import logging
from typing import Dict

from ..domain.entities.story import Story
from ..domain.interfaces.story_repository import StoryRepository

logger = logging.getLogger(__name__)

MAX_STORIES_PER_USER = 10


class LocalStoryRepository(StoryRepository):
    """Local in-memory implementation of the Story Repository.

    Stores stories in a dictionary per user for testing and development
    purposes. Saving beyond ``max_stories`` evicts the oldest story.
    """

    def __init__(self, max_stories: int = MAX_STORIES_PER_USER):
        """Initialize the local story repository with an empty dictionary."""
        self.max_stories = max_stories
        self._stories: Dict[str, Dict[int, Story]] = {}

    async def save_story(self, user_id: str, story: Story) -> None:
        """Save a story, evicting the oldest ones over the limit.

        Args:
            user_id: Owner of the story.
            story: The story entity to save.
        """
        stories = self._stories.setdefault(user_id, {})
        stories[story.id] = story

        while len(stories) > self.max_stories:
            oldest = min(stories)
            del stories[oldest]
            logger.info(f"Evicted story {oldest} for user {user_id} (limit {self.max_stories})")

    async def get_story(self, user_id: str, story_id: int) -> Story:
        """Retrieve a story by ID.

        Raises:
            ValueError: If the story is not found.
        """
        stories = self._stories.get(user_id, {})
        if story_id not in stories:
            raise ValueError(f"Story with id {story_id} not found")

        return stories[story_id]

    async def list_stories(self, user_id: str) -> list[Story]:
        """List a user's stories, newest first."""
        stories = self._stories.get(user_id, {})
        return sorted(stories.values(), key=lambda s: s.id, reverse=True)

    async def update_story(self, user_id: str, story: Story) -> None:
        """Update an existing story.

        Raises:
            ValueError: If the story is not found.
        """
        stories = self._stories.get(user_id, {})
        if story.id not in stories:
            raise ValueError(f"Story with id {story.id} not found")

        stories[story.id] = story

    async def delete_story(self, user_id: str, story_id: int) -> None:
        """Delete a story.

        Raises:
            ValueError: If the story is not found.
        """
        stories = self._stories.get(user_id, {})
        if story_id not in stories:
            raise ValueError(f"Story with id {story_id} not found")

        del stories[story_id]

    def clear(self) -> None:
        """Clear all stories."""
        self._stories.clear()
