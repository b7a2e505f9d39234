"""Story entities for the reading coach application."""

import re
import time
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

TITLE_ABBREVIATIONS = (
    "Dr", "Mr", "Mrs", "Ms", "Jr", "Sr", "St", "Ave", "Blvd", "Capt",
    "Col", "Gen", "Gov", "Lt", "Pres", "Rep", "Rev", "Sgt",
)

# Python look-behinds must be fixed width, so each abbreviation gets its own.
_SENTENCE_BREAK = re.compile(
    "".join(rf"(?<!\b{abbr})" for abbr in TITLE_ABBREVIATIONS) + r"[.!?]\s+"
)


def split_sentences(text: str) -> list[str]:
    """Split narrative text into sentences without breaking on title abbreviations.

    Terminal punctuation stays attached to its sentence.

    Args:
        text: The narrative text.

    Returns:
        list[str]: Trimmed, non-empty sentences in order.
    """
    if not text:
        return []

    sentences = []
    start = 0
    for match in _SENTENCE_BREAK.finditer(text):
        # Keep the punctuation mark, drop the whitespace that follows it.
        sentences.append(text[start:match.start() + 1])
        start = match.end()
    sentences.append(text[start:])

    return [s.strip() for s in sentences if s.strip()]


def split_words(text: str) -> list[str]:
    """Split text into words on whitespace."""
    return text.split()


def _new_story_id() -> int:
    return int(time.time() * 1000)


class QuizQuestion(BaseModel):
    """A single comprehension question with its options and correct answer."""

    model_config = ConfigDict(frozen=True)

    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=1)
    answer: str


class QuizAnswer(BaseModel):
    """The learner's answer to one quiz question."""

    question: str
    selected: str
    correct: str


class QuizResult(BaseModel):
    """Outcome of one quiz attempt."""

    score: int = Field(ge=0)
    date: datetime = Field(default_factory=datetime.utcnow)
    answers: list[QuizAnswer] = Field(default_factory=list)


class BookReportSource(str, Enum):
    """Where a book report's text came from."""

    TRANSCRIBED = "transcribed"
    GENERATED = "generated"
    EDITED = "edited"


class BookReport(BaseModel):
    """Free-text book report attached to a story."""

    text: str
    source: BookReportSource = BookReportSource.TRANSCRIBED


class Story(BaseModel):
    """Story entity: the unit of reading material.

    ``sentences`` and ``words`` are derived from ``text`` when they are not
    supplied, so a story built from generated text is always consistent.
    """

    id: int = Field(default_factory=_new_story_id, description="Creation-ordered identifier")
    title: str = Field(min_length=1, max_length=200)
    text: str
    illustration: Optional[str] = Field(None, description="Illustration URI")
    sentences: list[str] = Field(default_factory=list)
    words: list[str] = Field(default_factory=list)
    quiz: list[QuizQuestion] = Field(default_factory=list)
    book_report: Optional[BookReport] = None
    quiz_results: Optional[QuizResult] = None

    @model_validator(mode="after")
    def _derive_structure(self) -> "Story":
        if not self.sentences:
            self.sentences = split_sentences(self.text)
        if not self.words:
            self.words = split_words(self.text)
        return self
