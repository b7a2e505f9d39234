"""Tests for the cloud speech client and the mock speech backend."""

import base64
import json

import httpx
import pytest

from kidreads.domain.interfaces import PhonemeProvider, SpeechSynthesizer, StoryGenerator, Transcriber
from kidreads.infrastructure.cloud_speech_client import CloudSpeechClient
from kidreads.infrastructure.mock_speech_backend import MockSpeechBackend

BASE_URL = "https://functions.example.test"


def make_client(handler) -> CloudSpeechClient:
    client = CloudSpeechClient(BASE_URL)
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client


class TestCloudSpeechClient:
    def test_requires_base_url(self):
        with pytest.raises(ValueError):
            CloudSpeechClient("")

    @pytest.mark.asyncio
    async def test_synthesize(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"audioContent": "AAAA"})

        client = make_client(handler)
        audio = await client.synthesize("Cat", voice="Orus", is_word=True, speaking_rate=0.7)

        assert audio == "AAAA"
        assert str(requests[0].url) == f"{BASE_URL}/geminiTTS"
        assert json.loads(requests[0].content) == {
            "text": "Cat",
            "voice": "Orus",
            "isWord": True,
            "speakingRate": 0.7,
        }

    @pytest.mark.asyncio
    async def test_synthesize_failure_returns_none(self):
        client = make_client(lambda request: httpx.Response(500))
        assert await client.synthesize("Cat") is None

    @pytest.mark.asyncio
    async def test_transcribe_strips_and_maps_empty_to_none(self):
        replies = iter([{"transcription": "  the cat sat  "}, {"transcription": ""}])
        client = make_client(lambda request: httpx.Response(200, json=next(replies)))

        assert await client.transcribe("UklGRg==") == "the cat sat"
        assert await client.transcribe("UklGRg==") is None

    @pytest.mark.asyncio
    async def test_get_phonemes(self):
        client = make_client(lambda request: httpx.Response(200, json=["c", "a", "t"]))
        assert await client.get_phonemes("cat") == ["c", "a", "t"]

    @pytest.mark.asyncio
    async def test_get_phonemes_empty_raises(self):
        client = make_client(lambda request: httpx.Response(200, json=[]))
        with pytest.raises(ValueError):
            await client.get_phonemes("cat")

    @pytest.mark.asyncio
    async def test_get_phonemes_http_error_raises(self):
        client = make_client(lambda request: httpx.Response(503))
        with pytest.raises(httpx.HTTPError):
            await client.get_phonemes("cat")

    @pytest.mark.asyncio
    async def test_generate_story(self):
        body = {
            "text": "Pip ran. Pip sat.",
            "illustration": "https://img.example.test/pip.png",
            "quiz": [{"question": "Who ran?", "options": ["Pip", "Max"], "answer": "Pip"}],
        }
        client = make_client(lambda request: httpx.Response(200, json=body))

        story = await client.generate_story("a puppy", length=2)

        assert story.title == "A puppy"
        assert story.sentences == ["Pip ran.", "Pip sat."]
        assert story.quiz[0].answer == "Pip"

    @pytest.mark.asyncio
    async def test_generate_story_without_text_raises(self):
        client = make_client(lambda request: httpx.Response(200, json={"text": ""}))
        with pytest.raises(ValueError, match="Failed to generate story text"):
            await client.generate_story("a puppy")


class TestMockSpeechBackend:
    def test_satisfies_protocols(self):
        backend = MockSpeechBackend()
        for protocol in (SpeechSynthesizer, Transcriber, PhonemeProvider, StoryGenerator):
            assert isinstance(backend, protocol)

    @pytest.mark.asyncio
    async def test_synthesize_length_follows_words(self):
        backend = MockSpeechBackend(sample_rate=1000, seconds_per_word=0.5)

        audio = await backend.synthesize("the cat sat")

        assert len(base64.b64decode(audio)) == 2 * 1500
        assert backend.synthesized == ["the cat sat"]

    @pytest.mark.asyncio
    async def test_transcripts_follow_script(self):
        backend = MockSpeechBackend(default_transcript="hello")
        backend.script("one", None)

        assert await backend.transcribe("") == "one"
        assert await backend.transcribe("") is None
        assert await backend.transcribe("") == "hello"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "word, units",
        [("happy", ["ha", "ppy"]), ("cat", ["cat"]), ("Banana!", ["ba", "na", "na"])],
    )
    async def test_phonemes(self, word, units):
        assert await MockSpeechBackend().get_phonemes(word) == units

    @pytest.mark.asyncio
    async def test_phonemes_of_nothing_raise(self):
        with pytest.raises(ValueError):
            await MockSpeechBackend().get_phonemes("123")

    @pytest.mark.asyncio
    async def test_generate_story_length(self):
        story = await MockSpeechBackend().generate_story("a dragon", length=3)
        assert len(story.sentences) == 4
        assert story.quiz
