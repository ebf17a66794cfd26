"""Unit tests for the research service, its cache and providers."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from pelican_intake.config.errors import ErrorCode, ResearchProviderError
from pelican_intake.models.intake import Jurisdiction, ResearchCategory, ResearchSource
from pelican_intake.services.research_service import (
    AnthropicResearchProvider,
    CallableProvider,
    OpenAIResearchProvider,
    ResearchService,
    TTLCache,
    build_cache_key,
    build_prompt,
    parse_llm_json,
    to_snippets,
)
from tests.fixtures.sample_research import (
    MALFORMED_RESEARCH_RESPONSES,
    RESEARCH_PAYLOAD,
    RESEARCH_RESPONSE,
    WRAPPED_RESEARCH_RESPONSE,
)


SCOPE = "Replace boiler in historic building"

DEEPLY_NESTED_RESPONSE = '{"a":' * 100000 + "1" + "}" * 100000


# =============================================================================
# TTL cache
# =============================================================================


class TestTTLCache:
    """Tests for the bounded TTL cache."""

    def test_get_within_ttl(self, research_cache, monotonic_clock):
        """Entries are returned until the TTL elapses."""
        research_cache.set("k", [1])
        monotonic_clock.advance(59)
        assert research_cache.get("k") == [1]

    def test_expired_entry_dropped(self, research_cache, monotonic_clock):
        """Expired entries read as missing and are removed."""
        research_cache.set("k", [1])
        monotonic_clock.advance(60)
        assert research_cache.get("k") is None
        assert len(research_cache) == 0

    def test_evicts_oldest_insert(self, monotonic_clock):
        """A full cache drops the entry inserted longest ago."""
        cache = TTLCache(capacity=2, ttl_seconds=60, clock=monotonic_clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        cache.set("c", 3)

        assert cache.get("b") is None
        assert cache.get("a") == 10
        assert cache.get("c") == 3

    def test_capacity_must_be_positive(self):
        """A zero-capacity cache is rejected."""
        with pytest.raises(ValueError):
            TTLCache(capacity=0)

    def test_clear(self, research_cache):
        """clear empties the cache."""
        research_cache.set("k", [])
        research_cache.clear()
        assert len(research_cache) == 0


# =============================================================================
# Prompt and parsing
# =============================================================================


class TestPromptAndParsing:
    """Tests for prompt building and response parsing."""

    def test_prompt_contains_query(self):
        """The prompt ends with the job details."""
        prompt = build_prompt(SCOPE, "hvacRepair", "NewOrleans")
        assert prompt.startswith("You are a Louisiana construction compliance expert.")
        assert prompt.endswith(f"Jurisdiction: NewOrleans\nJob Type: hvacRepair\nScope: {SCOPE}")

    def test_cache_key_truncates_scope(self):
        """Cache keys use the lowercased first 120 characters of scope."""
        key = build_cache_key("A" * 200, "roofing", "Louisiana")
        assert key == f"roofing-Louisiana-{'a' * 120}"

    def test_parse_plain_json(self):
        """Plain JSON parses."""
        assert parse_llm_json(RESEARCH_RESPONSE) == RESEARCH_PAYLOAD

    def test_parse_wrapped_json(self):
        """Prose around the object is ignored."""
        assert parse_llm_json(WRAPPED_RESEARCH_RESPONSE) == RESEARCH_PAYLOAD

    @pytest.mark.parametrize("text", MALFORMED_RESEARCH_RESPONSES)
    def test_parse_malformed(self, text):
        """Malformed responses parse to None."""
        assert parse_llm_json(text) is None

    def test_parse_non_object(self):
        """Only objects are accepted."""
        assert parse_llm_json("[1, 2]") is None

    def test_parse_deeply_nested(self):
        """Nesting beyond the decoder's recursion limit parses to None."""
        assert parse_llm_json(DEEPLY_NESTED_RESPONSE) is None


class TestToSnippets:
    """Tests for payload conversion."""

    def test_snippet_ids_and_confidences(self):
        """Each entry kind has its own id prefix and confidence."""
        snippets = to_snippets(RESEARCH_PAYLOAD, "Louisiana")

        assert [s.id for s in snippets] == [
            "llm-permit-0",
            "llm-permit-1",
            "llm-code-0",
            "llm-consideration-0",
        ]
        assert [s.confidence for s in snippets] == [0.7, 0.7, 0.65, 0.6]
        assert all(s.source == ResearchSource.LLM for s in snippets)
        assert all(s.jurisdiction == Jurisdiction.LOUISIANA for s in snippets)

    def test_permit_content(self):
        """Fees are appended and optional permits flagged for verification."""
        required, optional = to_snippets(RESEARCH_PAYLOAD, "Louisiana")[:2]

        assert required.title == "Mechanical (Louisiana)"
        assert required.content == "Boiler replacement needs a mechanical permit. Fee: $150-$300"
        assert optional.content == "SHPO review for visible changes. (verification required)"

    def test_code_and_consideration(self):
        """Code snippets join code and section; considerations are Material."""
        snippets = to_snippets(RESEARCH_PAYLOAD, "Louisiana")
        code, consideration = snippets[2], snippets[3]

        assert code.category == ResearchCategory.CODE
        assert code.title == "IMC 2021 Ch. 10"
        assert consideration.category == ResearchCategory.MATERIAL
        assert consideration.title == "Field Consideration"

    def test_unknown_jurisdiction_kept_in_title_only(self):
        """Jurisdictions outside the enum are not set on snippets."""
        snippet = to_snippets({"permits": [{"type": "Building", "required": True}]}, "Lafayette")[0]
        assert snippet.title == "Building (Lafayette)"
        assert snippet.jurisdiction is None

    def test_missing_sections(self):
        """Missing or malformed sections are skipped."""
        assert to_snippets({"permits": "none", "codeReferences": [None]}, "Louisiana") == []


# =============================================================================
# Research service
# =============================================================================


class TestResearchService:
    """Tests for ResearchService.get_research_snippets."""

    def test_injected_cache_and_timeout_kept(self, research_cache):
        """An empty injected cache and a zero timeout are used as given."""
        service = ResearchService(providers=[], cache=research_cache, timeout_seconds=0)

        assert service.cache is research_cache
        assert service.timeout_seconds == 0

    @pytest.mark.asyncio
    async def test_cache_shared_between_services(self, research_provider, research_cache):
        """Services built on one cache share its entries."""
        first = ResearchService(providers=[research_provider], cache=research_cache, timeout_seconds=1)
        second = ResearchService(providers=[research_provider], cache=research_cache, timeout_seconds=1)

        await first.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")
        await second.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")

        assert research_provider.await_count == 1
        assert len(research_cache) == 1

    @pytest.mark.asyncio
    async def test_returns_snippets(self, research_service, research_provider):
        """Provider output becomes snippets."""
        snippets = await research_service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")

        assert len(snippets) == 4
        research_provider.assert_awaited_once()
        prompt = research_provider.call_args.args[0]
        assert prompt.endswith(f"Scope: {SCOPE}")

    @pytest.mark.asyncio
    async def test_cache_hit_within_ttl(self, research_service, research_provider, monotonic_clock):
        """Identical queries within the TTL call the provider once."""
        first = await research_service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")
        monotonic_clock.advance(30)
        second = await research_service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")

        assert first == second
        assert research_provider.await_count == 1

    @pytest.mark.asyncio
    async def test_cache_expires(self, research_service, research_provider, monotonic_clock):
        """Queries after the TTL call the provider again."""
        await research_service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")
        monotonic_clock.advance(61)
        await research_service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")

        assert research_provider.await_count == 2

    @pytest.mark.asyncio
    async def test_different_jurisdiction_misses(self, research_service, research_provider):
        """The cache key includes the jurisdiction."""
        await research_service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")
        await research_service.get_research_snippets(SCOPE, "hvacRepair", "NewOrleans")

        assert research_provider.await_count == 2

    @pytest.mark.asyncio
    async def test_empty_scope_skips_providers(self, research_service, research_provider):
        """Empty scope returns nothing without calling a provider."""
        assert await research_service.get_research_snippets("", "hvacRepair", "Louisiana") == []
        research_provider.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failing_provider_returns_empty(self, failing_provider, research_cache):
        """A provider that always throws yields an empty list."""
        service = ResearchService(providers=[failing_provider], cache=research_cache, timeout_seconds=1)

        assert await service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana") == []
        assert await service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana") == []
        # Total failure is not cached
        assert failing_provider.await_count == 2
        assert len(research_cache) == 0

    @pytest.mark.asyncio
    async def test_falls_back_to_next_provider(self, failing_provider, research_provider, research_cache):
        """The next provider is tried after a failure."""
        service = ResearchService(
            providers=[failing_provider, research_provider],
            cache=research_cache,
            timeout_seconds=1,
        )

        snippets = await service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")

        assert len(snippets) == 4
        failing_provider.assert_awaited_once()
        research_provider.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_provider_error_falls_back(self, research_provider, research_cache):
        """ResearchProviderError is logged and the next provider used."""
        broken = AsyncMock(side_effect=ResearchProviderError(
            code=ErrorCode.PROVIDER_ERROR,
            message="rate limited",
            provider="openai",
        ))
        service = ResearchService(providers=[broken, research_provider], cache=research_cache, timeout_seconds=1)

        assert len(await service.get_research_snippets(SCOPE, "roofing", "Louisiana")) == 4

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self, research_provider, research_cache):
        """Slow providers are abandoned after the timeout."""
        async def slow(prompt):
            await asyncio.sleep(5)
            return RESEARCH_RESPONSE

        service = ResearchService(providers=[slow, research_provider], cache=research_cache, timeout_seconds=0.01)

        with patch("pelican_intake.services.research_service.logger") as mock_logger:
            snippets = await service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")

        assert len(snippets) == 4
        research_provider.assert_awaited_once()
        event, = [c for c in mock_logger.warning.call_args_list if c.args[0] == "research_provider_timeout"]
        assert event.kwargs["code"] == ErrorCode.PROVIDER_TIMEOUT

    @pytest.mark.asyncio
    async def test_unavailable_provider_skipped(self, research_provider, research_cache):
        """Providers returning None are skipped."""
        unavailable = AsyncMock(return_value=None)
        service = ResearchService(
            providers=[unavailable, research_provider],
            cache=research_cache,
            timeout_seconds=1,
        )

        assert len(await service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")) == 4

    @pytest.mark.asyncio
    async def test_invalid_json_falls_back(self, research_provider, research_cache):
        """Unparseable output counts as failure."""
        chatty = AsyncMock(return_value="Sorry, I cannot help with permits.")
        service = ResearchService(providers=[chatty, research_provider], cache=research_cache, timeout_seconds=1)

        assert len(await service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")) == 4

    @pytest.mark.asyncio
    async def test_deeply_nested_output_falls_back(self, research_provider, research_cache):
        """Output too deeply nested to decode counts as an invalid response."""
        nested = AsyncMock(return_value=DEEPLY_NESTED_RESPONSE)
        service = ResearchService(providers=[nested, research_provider], cache=research_cache, timeout_seconds=1)

        with patch("pelican_intake.services.research_service.logger") as mock_logger:
            snippets = await service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")

        assert len(snippets) == 4
        invalid = [c for c in mock_logger.warning.call_args_list if c.args[0] == "research_provider_invalid_response"]
        assert invalid[0].kwargs["code"] == ErrorCode.PROVIDER_INVALID_RESPONSE

    @pytest.mark.asyncio
    async def test_deeply_nested_output_alone_returns_empty(self, research_cache):
        """A lone provider with undecodable output yields an empty list."""
        nested = AsyncMock(return_value=DEEPLY_NESTED_RESPONSE)
        service = ResearchService(providers=[nested], cache=research_cache, timeout_seconds=1)

        assert await service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana") == []

    @pytest.mark.asyncio
    async def test_empty_result_is_cached(self, empty_research_provider, research_cache):
        """A successful empty answer is cached as an empty list."""
        service = ResearchService(providers=[empty_research_provider], cache=research_cache, timeout_seconds=1)

        assert await service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana") == []
        assert await service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana") == []
        assert empty_research_provider.await_count == 1

    @pytest.mark.asyncio
    async def test_no_providers(self, offline_research_service):
        """No configured providers yields an empty list."""
        assert await offline_research_service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana") == []

    @pytest.mark.asyncio
    async def test_returned_list_is_a_copy(self, research_service):
        """Mutating a result does not change the cached entry."""
        first = await research_service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")
        first.clear()
        second = await research_service.get_research_snippets(SCOPE, "hvacRepair", "Louisiana")
        assert len(second) == 4

    def test_callables_wrapped(self, research_provider):
        """Plain callables become CallableProvider strategies."""
        service = ResearchService(providers=[research_provider], timeout_seconds=1)
        assert isinstance(service.providers[0], CallableProvider)


# =============================================================================
# Providers
# =============================================================================


class TestOpenAIResearchProvider:
    """Tests for the LangChain OpenAI provider."""

    @pytest.mark.asyncio
    async def test_no_api_key(self):
        """Without a key the provider is unavailable."""
        with patch("pelican_intake.services.research_service.settings") as mock_settings:
            mock_settings.openai_api_key = None
            mock_settings.openai_model = "gpt-4o-mini"
            mock_settings.llm_temperature = 0.2
            mock_settings.llm_max_tokens = 800
            provider = OpenAIResearchProvider()

        assert await provider.complete("prompt") is None

    @pytest.mark.asyncio
    async def test_complete(self):
        """Model content is returned as text."""
        mock_client = AsyncMock()
        mock_client.ainvoke.return_value = MagicMock(content=RESEARCH_RESPONSE)

        with patch("pelican_intake.services.research_service.ChatOpenAI", return_value=mock_client):
            provider = OpenAIResearchProvider(api_key="test-key")
            text = await provider.complete("prompt")

        assert text == RESEARCH_RESPONSE
        messages = mock_client.ainvoke.call_args.args[0]
        assert messages[0].content == "prompt"

    @pytest.mark.asyncio
    async def test_api_failure_wrapped(self):
        """Client failures surface as ResearchProviderError."""
        mock_client = AsyncMock()
        mock_client.ainvoke.side_effect = RuntimeError("boom")

        with patch("pelican_intake.services.research_service.ChatOpenAI", return_value=mock_client):
            provider = OpenAIResearchProvider(api_key="test-key")
            with pytest.raises(ResearchProviderError) as exc_info:
                await provider.complete("prompt")

        assert exc_info.value.provider == "openai"
        assert exc_info.value.code == ErrorCode.PROVIDER_ERROR


class TestAnthropicResearchProvider:
    """Tests for the Anthropic provider."""

    @pytest.mark.asyncio
    async def test_complete(self):
        """Text blocks are joined into the response."""
        mock_client = MagicMock()
        mock_client.messages.create = AsyncMock(return_value=MagicMock(content=[MagicMock(text=RESEARCH_RESPONSE)]))

        provider = AnthropicResearchProvider(api_key="test-key", model="claude-test")
        provider._client = mock_client
        text = await provider.complete("prompt")

        assert text == RESEARCH_RESPONSE
        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]
        assert provider.name == "anthropic"
