"""Story repository interface."""

from typing import Protocol

from ..entities.story import Story


class StoryRepository(Protocol):
    """Protocol defining the interface for saved-story storage.

    Implementations keep a bounded number of stories per user and evict the
    oldest one when a new story would exceed the limit.
    """

    async def save_story(self, user_id: str, story: Story) -> None:
        """Save a story for a user.

        Args:
            user_id: Owner of the story.
            story: The story entity to save.
        """
        ...

    async def get_story(self, user_id: str, story_id: int) -> Story:
        """Retrieve a story by ID.

        Raises:
            ValueError: If the story is not found.
        """
        ...

    async def list_stories(self, user_id: str) -> list[Story]:
        """List a user's stories, newest first."""
        ...

    async def update_story(self, user_id: str, story: Story) -> None:
        """Update an existing story (book report, quiz results).

        Raises:
            ValueError: If the story is not found.
        """
        ...

    async def delete_story(self, user_id: str, story_id: int) -> None:
        """Delete a story.

        Raises:
            ValueError: If the story is not found.
        """
        ...
