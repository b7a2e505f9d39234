"""Progress cursor over a story's words and sentences."""

from typing import Optional

from ..entities.reading_session import ReadingMode, ReadingSessionState
from ..entities.story import Story


class StoryWalker:
    """Tracks which word or sentence is being practiced.

    Word mode walks the global word index, Sentence mode walks the sentence
    index; the other index is left untouched. Indices are clamped to the
    sequence and never wrap: advancing past the last item is refused so the
    caller can finish the session instead.
    """

    def __init__(
        self,
        story: Story,
        mode: ReadingMode,
        sentence_index: int = 0,
        word_index: int = 0,
    ):
        self.story = story
        self.mode = mode
        self.sentence_index = self._clamp(sentence_index, len(story.sentences))
        self.word_index = self._clamp(word_index, len(story.words))

    @classmethod
    def from_state(cls, story: Story, state: ReadingSessionState) -> "StoryWalker":
        return cls(story, state.reading_mode, state.sentence_index, state.word_index)

    @staticmethod
    def _clamp(index: int, length: int) -> int:
        if length == 0:
            return 0
        return max(0, min(index, length - 1))

    @property
    def items(self) -> list[str]:
        if self.mode == ReadingMode.WORD:
            return self.story.words
        if self.mode == ReadingMode.SENTENCE:
            return self.story.sentences
        return []

    @property
    def index(self) -> int:
        return self.word_index if self.mode == ReadingMode.WORD else self.sentence_index

    @property
    def is_empty(self) -> bool:
        return not self.items

    def current_text(self) -> Optional[str]:
        """Text the learner should read next, or None outside Word/Sentence mode."""
        if self.is_empty:
            return None
        return self.items[self.index]

    def is_last(self) -> bool:
        return self.is_empty or self.index >= len(self.items) - 1

    def advance(self) -> bool:
        """Move to the next item of the active mode.

        Returns:
            bool: False when already on the last item (the cursor stays put).
        """
        if self.is_last():
            return False
        if self.mode == ReadingMode.WORD:
            self.word_index += 1
        else:
            self.sentence_index += 1
        return True

    def reset(self) -> None:
        self.sentence_index = 0
        self.word_index = 0

    def apply_to(self, state: ReadingSessionState) -> None:
        """Write the cursor back into the session state."""
        state.sentence_index = self.sentence_index
        state.word_index = self.word_index
