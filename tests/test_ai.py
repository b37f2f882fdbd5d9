"""Tests for the generative-AI layer: parsing, Gemini provider, matcher, recommendations."""

import json

import httpx
import pytest

from reelmatch.ai import AIContentMatcher, RecommendationGenerator, extract_json, parse_numbered_titles
from reelmatch.ai.llm_providers import BaseLLMProvider, GeminiProvider, LLMConfig, LLMResponse
from reelmatch.ai.matcher import build_match_prompt, parse_match_response
from reelmatch.errors import AIMatchError
from reelmatch.records import ContentRecord, MediaType, Recommendation


class FakeProvider(BaseLLMProvider):
    """Provider returning canned responses and recording prompts."""

    def __init__(self, text=None, error=None):
        super().__init__(LLMConfig(base_url="http://fake"))
        self.text = text
        self.error = error
        self.prompts = []

    @property
    def name(self) -> str:
        return "fake"

    async def initialize(self) -> None:
        pass

    async def cleanup(self) -> None:
        pass

    async def complete(self, prompt, system_prompt=None, **kwargs):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return LLMResponse(content=self.text, model="fake")

    async def complete_json(self, prompt, system_prompt=None, **kwargs):
        response = await self.complete(prompt, system_prompt, **kwargs)
        return extract_json(response.content)


@pytest.fixture
def candidates():
    return [
        ContentRecord(id="tt0113277", title="Heat", year="1995", plot="Bank robbers and a detective."),
        ContentRecord(id="tt0093164", title="Heat", year="1986"),
    ]


# ============================================================================
# Parsing
# ============================================================================


class TestParsing:
    """Tests for free-text response parsers."""

    def test_parse_numbered_titles(self):
        text = (
            "Here are some picks:\n"
            "1. The Matrix (1999) [tt0133093]\n"
            "2. Dark City (1998)\n"
            "3. **Inception (2010) [tt1375666]**\n"
            "- Not numbered (2000)\n"
            "4. Westworld (2016–2022)\n"
        )
        recs = parse_numbered_titles(text)

        assert [r.title for r in recs] == ["The Matrix", "Dark City", "Inception", "Westworld"]
        assert recs[0].year == "1999"
        assert recs[0].imdb_id == "tt0133093"
        assert recs[1].imdb_id is None
        assert recs[2].imdb_id == "tt1375666"
        assert recs[3].year == "2016"

    def test_parse_numbered_titles_without_year(self):
        recs = parse_numbered_titles("1. Ghost in the Shell [tt0113568]")
        assert recs[0].title == "Ghost in the Shell"
        assert recs[0].year is None
        assert recs[0].imdb_id == "tt0113568"

    def test_parse_numbered_titles_empty(self):
        assert parse_numbered_titles("No list here.") == []

    def test_extract_json_plain(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_extract_json_code_block(self):
        assert extract_json('```json\n{"a": 1}\n```') == {"a": 1}

    def test_extract_json_embedded(self):
        assert extract_json('Sure! {"a": [1, 2]} Hope that helps.') == {"a": [1, 2]}

    def test_extract_json_failure(self):
        with pytest.raises(ValueError):
            extract_json("definitely not json")


# ============================================================================
# Match response handling
# ============================================================================


class TestMatchResponse:
    """Tests for interpreting the matcher's JSON."""

    def test_prompt_lists_every_candidate(self, candidates):
        prompt = build_match_prompt(Recommendation(title="Heat", year="1995"), candidates)
        assert "tt0113277" in prompt
        assert "tt0093164" in prompt
        assert "matchedResult" in prompt

    def test_confident_match(self, candidates):
        payload = {"matchedResult": {"imdbID": "tt0113277", "confidence": 0.92, "reasonForMatch": "Year"}}
        result = parse_match_response(payload, candidates)
        assert result.matched_id == "tt0113277"
        assert result.is_match
        assert result.confidence == pytest.approx(0.92)

    def test_low_confidence_is_no_match(self, candidates):
        payload = {"matchedResult": {"imdbID": "tt0113277", "confidence": 0.5, "reasonForMatch": "?"}}
        result = parse_match_response(payload, candidates)
        assert result.matched_id is None
        assert not result.is_match

    def test_threshold_is_inclusive(self, candidates):
        payload = {"matchedResult": {"imdbID": "tt0113277", "confidence": 0.7, "reasonForMatch": ""}}
        assert parse_match_response(payload, candidates).matched_id == "tt0113277"

    def test_explicit_no_match(self, candidates):
        result = parse_match_response({"matchedResult": None, "reason": "None fit"}, candidates)
        assert result.matched_id is None
        assert result.reason == "None fit"

    def test_unknown_id_is_no_match(self, candidates):
        payload = {"matchedResult": {"imdbID": "tt9999999", "confidence": 0.99}}
        assert parse_match_response(payload, candidates).matched_id is None

    def test_malformed_payload(self, candidates):
        with pytest.raises(AIMatchError):
            parse_match_response({"answer": "Heat"}, candidates)
        with pytest.raises(AIMatchError):
            parse_match_response(["tt0113277"], candidates)


# ============================================================================
# AIContentMatcher
# ============================================================================


class TestAIContentMatcher:
    """Tests for the matcher against a fake provider."""

    @pytest.mark.asyncio
    async def test_match_best_result(self, candidates):
        provider = FakeProvider(json.dumps({
            "matchedResult": {"imdbID": "tt0093164", "confidence": 0.8, "reasonForMatch": "1986 film"}
        }))
        matcher = AIContentMatcher(provider)

        result = await matcher.match_best_result(Recommendation(title="Heat", year="1986"), candidates)

        assert result.matched_id == "tt0093164"
        assert "Heat" in provider.prompts[0]

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self, candidates):
        matcher = AIContentMatcher(FakeProvider(error=httpx.ConnectError("down")))
        with pytest.raises(AIMatchError):
            await matcher.match_best_result(Recommendation(title="Heat"), candidates)

    @pytest.mark.asyncio
    async def test_invalid_json_wrapped(self, candidates):
        matcher = AIContentMatcher(FakeProvider("I think it's the first one"))
        with pytest.raises(AIMatchError):
            await matcher.match_best_result(Recommendation(title="Heat"), candidates)

    @pytest.mark.asyncio
    async def test_no_candidates(self):
        provider = FakeProvider("{}")
        result = await AIContentMatcher(provider).match_best_result(Recommendation(title="Heat"), [])
        assert result.matched_id is None
        assert provider.prompts == []


# ============================================================================
# RecommendationGenerator
# ============================================================================


class TestRecommendationGenerator:
    """Tests for AI recommendation requests."""

    @pytest.mark.asyncio
    async def test_similar_titles(self):
        provider = FakeProvider("1. Dark City (1998) [tt0118929]\n2. eXistenZ (1999)\n3. Extra (2000)")
        generator = RecommendationGenerator(provider)

        recs = await generator.similar_titles("The Matrix", "A hacker...", MediaType.MOVIE, limit=2)

        assert [r.title for r in recs] == ["Dark City", "eXistenZ"]
        assert "movies similar to \"The Matrix\"" in provider.prompts[0]

    @pytest.mark.asyncio
    async def test_similar_titles_series_prompt(self):
        provider = FakeProvider("")
        await RecommendationGenerator(provider).similar_titles("Lost", media_type=MediaType.SERIES)
        assert "TV series" in provider.prompts[0]

    @pytest.mark.asyncio
    async def test_recommend_json(self):
        provider = FakeProvider(json.dumps({"recommendations": [
            {"title": "Heat", "year": "1995", "imdb_id": "tt0113277", "reason": "Crime epic"},
            {"year": "2000"},
        ]}))
        recs = await RecommendationGenerator(provider).recommend({"genres": "crime"}, limit=5)
        assert len(recs) == 1
        assert recs[0].imdb_id == "tt0113277"
        assert recs[0].synopsis is None

    @pytest.mark.asyncio
    async def test_recommend_falls_back_to_numbered_list(self):
        provider = FakeProvider("1. Heat (1995)\n2. Ronin (1998)")
        recs = await RecommendationGenerator(provider).recommend({"mood": "tense"})
        assert [r.title for r in recs] == ["Heat", "Ronin"]

    @pytest.mark.asyncio
    async def test_provider_failure(self):
        generator = RecommendationGenerator(FakeProvider(error=RuntimeError("boom")))
        with pytest.raises(AIMatchError):
            await generator.similar_titles("Heat")


# ============================================================================
# GeminiProvider
# ============================================================================


def gemini_reply(text):
    return {
        "candidates": [{
            "content": {"role": "model", "parts": [{"text": text}]},
            "finishReason": "STOP",
        }],
        "usageMetadata": {"promptTokenCount": 12, "candidatesTokenCount": 5},
        "modelVersion": "gemini-1.5-flash",
    }


class TestGeminiProvider:
    """Tests for the Gemini REST provider using a mock transport."""

    @pytest.mark.asyncio
    async def test_complete_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=gemini_reply("Hello"))

        config = LLMConfig(
            base_url="https://generativelanguage.googleapis.com",
            api_key="secret",
            model="gemini-1.5-flash",
            temperature=0.2,
            max_tokens=1024,
        )
        provider = GeminiProvider(config, transport=httpx.MockTransport(handler))

        async with provider:
            response = await provider.complete("Say hello", system_prompt="Be brief")

        assert response.content == "Hello"
        assert response.finish_reason == "STOP"
        assert response.usage == {"prompt_tokens": 12, "completion_tokens": 5}

        assert seen["url"].path == "/v1beta/models/gemini-1.5-flash:generateContent"
        assert seen["url"].params["key"] == "secret"
        body = seen["body"]
        assert body["contents"][0]["parts"][0]["text"] == "Say hello"
        assert body["systemInstruction"]["parts"][0]["text"] == "Be brief"
        assert body["generationConfig"]["temperature"] == 0.2
        assert body["generationConfig"]["maxOutputTokens"] == 1024

    @pytest.mark.asyncio
    async def test_complete_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert body["generationConfig"]["responseMimeType"] == "application/json"
            return httpx.Response(200, json=gemini_reply('```json\n{"matchedResult": null}\n```'))

        provider = GeminiProvider(
            LLMConfig(base_url="https://example.test", api_key="k", model="m"),
            transport=httpx.MockTransport(handler),
        )
        async with provider:
            assert await provider.complete_json("?") == {"matchedResult": None}

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        provider = GeminiProvider(
            LLMConfig(base_url="https://example.test", api_key="k", model="m"),
            transport=httpx.MockTransport(lambda request: httpx.Response(429, json={"error": {}})),
        )
        async with provider:
            with pytest.raises(httpx.HTTPStatusError):
                await provider.complete("?")

    @pytest.mark.asyncio
    async def test_no_candidates_raises(self):
        provider = GeminiProvider(
            LLMConfig(base_url="https://example.test", api_key="k", model="m"),
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"candidates": []})),
        )
        async with provider:
            with pytest.raises(ValueError):
                await provider.complete("?")

    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        provider = GeminiProvider(LLMConfig(base_url="https://example.test"))
        with pytest.raises(ValueError):
            await provider.initialize()

    def test_from_api_key(self):
        provider = GeminiProvider.from_api_key("k", model="gemini-2.0-flash", temperature=0.2)
        assert provider.name == "gemini"
        assert provider.config.base_url == "https://generativelanguage.googleapis.com"
        assert provider.config.model == "gemini-2.0-flash"
