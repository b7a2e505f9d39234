"""Story generator protocol."""

from typing import Protocol, runtime_checkable

from ..entities.story import Story


@runtime_checkable
class StoryGenerator(Protocol):
    """Protocol for the story generation backend."""

    async def generate_story(self, topic: str, length: int) -> Story:
        """Generate a story for a topic.

        Args:
            topic: What the story should be about.
            length: Story length tier (1 = shortest).

        Returns:
            Story: Title, text, illustration and quiz.
        """
        ...
