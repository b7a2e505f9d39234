"""HTTP client for the cloud story and speech functions."""

import logging
from typing import Any, Dict, Optional

import httpx

from ..domain.entities.story import QuizQuestion, Story

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "Leda"


class CloudSpeechClient:
    """
    Client for the hosted functions that wrap the generative speech models.

    One client implements every speech collaborator of the domain:
    ``SpeechSynthesizer``, ``Transcriber``, ``PhonemeProvider`` and
    ``StoryGenerator``. Each operation is a JSON POST to
    ``{base_url}/{function_name}``.

    Synthesis and transcription never raise; they log and return None so the
    reading flow can treat the failure as a missing result. Phoneme lookup and
    story generation raise, since their callers report the error to the learner.
    """

    def __init__(self, base_url: str, timeout: float = 30.0, api_key: Optional[str] = None):
        if not base_url:
            raise ValueError("Functions base URL is not configured")
        self.base_url = base_url.rstrip("/")
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers)

    async def _post(self, function_name: str, payload: Dict[str, Any]) -> Any:
        r = await self._client.post(f"{self.base_url}/{function_name}", json=payload)
        r.raise_for_status()
        return r.json()

    async def synthesize(
        self,
        text: str,
        voice: str = DEFAULT_VOICE,
        is_word: bool = False,
        speaking_rate: float = 1.0,
    ) -> Optional[str]:
        """Return base64 PCM16 (24 kHz mono) for ``text``, or None on failure."""
        payload = {
            "text": text,
            "voice": voice,
            "isWord": is_word,
            "speakingRate": speaking_rate,
        }
        try:
            data = await self._post("geminiTTS", payload)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Speech synthesis failed for {text[:40]!r}: {e}")
            return None
        return data.get("audioContent") or None

    async def transcribe(self, audio_base64: str) -> Optional[str]:
        """Return the transcript of a base64 WAV payload, or None when nothing was heard."""
        try:
            data = await self._post("transcribeAudio", {"audio": audio_base64})
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Transcription request failed: {e}")
            return None
        transcription = (data.get("transcription") or "").strip()
        return transcription or None

    async def get_phonemes(self, word: str) -> list[str]:
        """Return the phonetic units of ``word``.

        Raises:
            httpx.HTTPError: If the request fails.
            ValueError: If the response holds no phonemes.
        """
        data = await self._post("getPhonemesForWord", {"word": word})
        phonemes = [p for p in data if p] if isinstance(data, list) else []
        if not phonemes:
            raise ValueError(f"No phonemes returned for {word!r}")
        return phonemes

    async def generate_story(self, topic: str, length: int = 1) -> Story:
        """Generate a story, illustration and quiz for ``topic``.

        Raises:
            httpx.HTTPError: If the request fails.
            ValueError: If the response holds no story text.
        """
        data = await self._post(
            "generateStoryAndIllustration", {"topic": topic, "length": length}
        )
        text = (data.get("text") or "").strip()
        if not text:
            raise ValueError("Failed to generate story text")

        quiz = [QuizQuestion.model_validate(q) for q in data.get("quiz") or []]
        story = Story(
            title=data.get("title") or topic.strip().capitalize(),
            text=text,
            illustration=data.get("illustration"),
            quiz=quiz,
        )
        logger.info(f"Generated story {story.id} ({len(story.sentences)} sentences) about {topic!r}")
        return story

    async def aclose(self) -> None:
        await self._client.aclose()
