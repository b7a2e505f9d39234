"""Tests for story and preference entities."""

import pytest
from pydantic import ValidationError

from kidreads.domain.entities.story import (
    BookReport,
    BookReportSource,
    QuizQuestion,
    Story,
    split_sentences,
    split_words,
)
from kidreads.domain.entities.user_preferences import UserPreferences, Voice


class TestSplitSentences:
    """Test cases for the abbreviation-aware sentence splitter."""

    def test_basic_split_keeps_punctuation(self):
        assert split_sentences("The cat sat. The dog ran! Did it stop?") == [
            "The cat sat.",
            "The dog ran!",
            "Did it stop?",
        ]

    def test_title_abbreviation_not_split(self):
        assert split_sentences("Dr. Smith went home. He slept.") == [
            "Dr. Smith went home.",
            "He slept.",
        ]

    @pytest.mark.parametrize("abbr", ["Mr", "Mrs", "Ms", "St", "Capt", "Sgt"])
    def test_other_abbreviations(self, abbr):
        text = f"We met {abbr}. Brown today. It was fun."
        assert split_sentences(text)[0] == f"We met {abbr}. Brown today."

    def test_no_terminal_punctuation(self):
        assert split_sentences("Once upon a time") == ["Once upon a time"]

    def test_empty_text(self):
        assert split_sentences("") == []
        assert split_sentences("   ") == []

    def test_sentence_words_cover_story_words(self):
        text = "Dr. Lee has a red hat.  She likes it a lot! The end."
        words = split_words(text)
        assert sum(len(split_words(s)) for s in split_sentences(text)) == len(words)


class TestStory:
    """Test cases for the Story entity."""

    def test_derives_sentences_and_words(self):
        story = Story(title="Pip", text="Pip ran. Pip sat.")
        assert story.sentences == ["Pip ran.", "Pip sat."]
        assert story.words == ["Pip", "ran.", "Pip", "sat."]

    def test_creation_ordered_id(self):
        story = Story(title="Pip", text="Pip ran.")
        assert story.id > 1_600_000_000_000

    def test_explicit_sentences_are_kept(self):
        story = Story(title="Pip", text="Pip ran. Pip sat.", sentences=["Pip ran. Pip sat."])
        assert story.sentences == ["Pip ran. Pip sat."]

    def test_title_required(self):
        with pytest.raises(ValidationError):
            Story(title="", text="Pip ran.")

    def test_round_trips_quiz_and_report_through_json(self):
        story = Story(
            title="Pip",
            text="Pip ran.",
            quiz=[QuizQuestion(question="Who ran?", options=["Pip", "Max"], answer="Pip")],
            book_report=BookReport(text="Pip is fast.", source=BookReportSource.EDITED),
        )
        restored = Story.model_validate_json(story.model_dump_json())
        assert restored == story


class TestUserPreferences:
    """Test cases for UserPreferences."""

    def test_defaults(self):
        prefs = UserPreferences()
        assert prefs.voice == "Leda"
        assert prefs.speaking_rate == 1.0
        assert prefs.story_length == 1

    def test_voice_stored_as_value(self):
        assert UserPreferences(voice=Voice.ORUS).voice == "Orus"

    @pytest.mark.parametrize("rate", [0.0, -1.0, 2.5])
    def test_invalid_speaking_rate(self, rate):
        with pytest.raises(ValidationError):
            UserPreferences(speaking_rate=rate)

    def test_invalid_story_length(self):
        with pytest.raises(ValidationError):
            UserPreferences(story_length=4)
