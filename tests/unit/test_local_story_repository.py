"""Tests for LocalStoryRepository."""

import pytest

from kidreads.domain.entities import BookReport, Story
from kidreads.infrastructure.local_story_repository import LocalStoryRepository


@pytest.fixture
def repository():
    """Create a fresh LocalStoryRepository for each test."""
    return LocalStoryRepository()


def make_story(story_id: int) -> Story:
    return Story(id=story_id, title=f"Story {story_id}", text="Pip ran. Pip sat.")


@pytest.mark.asyncio
async def test_save_and_get_story(repository):
    story = make_story(1)
    await repository.save_story("user-1", story)
    assert await repository.get_story("user-1", 1) == story


@pytest.mark.asyncio
async def test_stories_are_per_user(repository):
    await repository.save_story("user-1", make_story(1))
    with pytest.raises(ValueError, match="Story with id 1 not found"):
        await repository.get_story("user-2", 1)


@pytest.mark.asyncio
async def test_list_newest_first(repository):
    for story_id in (3, 1, 2):
        await repository.save_story("user-1", make_story(story_id))
    stories = await repository.list_stories("user-1")
    assert [s.id for s in stories] == [3, 2, 1]


@pytest.mark.asyncio
async def test_list_unknown_user_is_empty(repository):
    assert await repository.list_stories("nobody") == []


@pytest.mark.asyncio
async def test_oldest_story_evicted_past_limit(repository):
    for story_id in range(1, 12):
        await repository.save_story("user-1", make_story(story_id))

    stories = await repository.list_stories("user-1")
    assert len(stories) == 10
    assert 1 not in [s.id for s in stories]
    assert stories[0].id == 11


@pytest.mark.asyncio
async def test_custom_limit():
    repository = LocalStoryRepository(max_stories=2)
    for story_id in range(1, 4):
        await repository.save_story("user-1", make_story(story_id))
    assert [s.id for s in await repository.list_stories("user-1")] == [3, 2]


@pytest.mark.asyncio
async def test_update_story(repository):
    story = make_story(1)
    await repository.save_story("user-1", story)

    updated = story.model_copy(update={"book_report": BookReport(text="Fun!")})
    await repository.update_story("user-1", updated)

    assert (await repository.get_story("user-1", 1)).book_report.text == "Fun!"


@pytest.mark.asyncio
async def test_update_nonexistent_story(repository):
    with pytest.raises(ValueError, match="Story with id .* not found"):
        await repository.update_story("user-1", make_story(5))


@pytest.mark.asyncio
async def test_delete_story(repository):
    await repository.save_story("user-1", make_story(1))
    await repository.delete_story("user-1", 1)
    with pytest.raises(ValueError):
        await repository.get_story("user-1", 1)


@pytest.mark.asyncio
async def test_delete_nonexistent_story(repository):
    with pytest.raises(ValueError, match="Story with id 9 not found"):
        await repository.delete_story("user-1", 9)
