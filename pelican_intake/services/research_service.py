"""External research service for Pelican intake.

Asks text-generation providers for jurisdiction-specific permit and code
guidance and turns the JSON they return into research snippets.

Architecture:
- Ordered provider strategies (OpenAI via LangChain, Anthropic), tried in turn
- Each call bounded by a timeout; timeouts count as provider failure
- JSON located between the first "{" and last "}" so prose wrappers are tolerated
- Results cached per (job type, jurisdiction, scope prefix) with a TTL

Never raises. Total failure yields an empty list, which callers treat as
"no AI-sourced snippets available".
"""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar

import anthropic
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI
import structlog

from pelican_intake.config.errors import ErrorCode, ResearchProviderError
from pelican_intake.config.settings import settings
from pelican_intake.models.intake import IntakeResearchSnippet, Jurisdiction, ResearchCategory, ResearchSource

logger = structlog.get_logger(__name__)

V = TypeVar("V")


# =============================================================================
# Constants
# =============================================================================

PROMPT_TEMPLATE = """You are a Louisiana construction compliance expert. Given the following project details, respond with strict JSON.

Fields:
- permits: array of { "type": string, "required": boolean, "description": string, "feeEstimate": string }
- codeReferences: array of { "code": string, "section": string, "relevance": string }
- keyConsiderations: array of strings

Always reference Louisiana, New Orleans, or Baton Rouge regulations as appropriate. If uncertain, note "verification required" in the description.
"""

CACHE_KEY_SCOPE_LENGTH = 120

PERMIT_CONFIDENCE = 0.7
CODE_CONFIDENCE = 0.65
CONSIDERATION_CONFIDENCE = 0.6


# =============================================================================
# Bounded TTL cache
# =============================================================================


class TTLCache(Generic[V]):
    """Bounded cache with per-entry expiry.

    When full, the entry inserted longest ago is evicted. Expired entries
    are dropped on read.

    Args:
        capacity: Maximum number of entries.
        ttl_seconds: Entry lifetime.
        clock: Monotonic seconds source.
    """

    def __init__(self, capacity: int = 256, ttl_seconds: float = 3600, clock: Callable[[], float] = time.monotonic):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: "OrderedDict[str, tuple[V, float]]" = OrderedDict()

    def get(self, key: str) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self.clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: V) -> None:
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.capacity:
            self._entries.popitem(last=False)
        self._entries[key] = (value, self.clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# Prompt and response handling
# =============================================================================


def build_prompt(scope: str, job_type: str, jurisdiction: str) -> str:
    """Fill the research prompt for one query."""
    return f"{PROMPT_TEMPLATE}\nJurisdiction: {jurisdiction}\nJob Type: {job_type}\nScope: {scope}"


def build_cache_key(scope: str, job_type: str, jurisdiction: str) -> str:
    return f"{job_type}-{jurisdiction}-{scope.lower()[:CACHE_KEY_SCOPE_LENGTH]}"


def parse_llm_json(response_text: str) -> Optional[Dict[str, Any]]:
    """Extract the JSON object from a model response.

    Takes the text from the first "{" to the last "}". Returns None when
    there is no object or it does not decode.
    """
    start = response_text.find("{")
    end = response_text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    try:
        payload = json.loads(response_text[start:end + 1])
    except (ValueError, RecursionError) as e:
        # RecursionError comes from pathologically nested output
        logger.warning("research_response_unparseable", error=str(e)[:200])
        return None
    return payload if isinstance(payload, dict) else None


def _entries(payload: Dict[str, Any], key: str) -> List[Any]:
    value = payload.get(key)
    return value if isinstance(value, list) else []


def to_snippets(payload: Dict[str, Any], jurisdiction: Optional[str]) -> List[IntakeResearchSnippet]:
    """Convert a parsed research payload into LLM-sourced snippets."""
    try:
        snippet_jurisdiction = Jurisdiction(jurisdiction) if jurisdiction else None
    except ValueError:
        snippet_jurisdiction = None
    label = jurisdiction or ""

    snippets = []
    for idx, permit in enumerate(_entries(payload, "permits")):
        if not isinstance(permit, dict):
            continue
        content = str(permit.get("description", ""))
        if permit.get("feeEstimate"):
            content += f" Fee: {permit['feeEstimate']}"
        if not permit.get("required"):
            content += " (verification required)"
        snippets.append(IntakeResearchSnippet(
            id=f"llm-permit-{idx}",
            category=ResearchCategory.PERMIT,
            title=f"{permit.get('type', 'Permit')} ({label})",
            content=content,
            jurisdiction=snippet_jurisdiction,
            source=ResearchSource.LLM,
            confidence=PERMIT_CONFIDENCE,
        ))

    for idx, ref in enumerate(_entries(payload, "codeReferences")):
        if not isinstance(ref, dict):
            continue
        section = f" {ref['section']}" if ref.get("section") else ""
        snippets.append(IntakeResearchSnippet(
            id=f"llm-code-{idx}",
            category=ResearchCategory.CODE,
            title=f"{ref.get('code', 'Code')}{section}",
            content=str(ref.get("relevance", "")),
            jurisdiction=snippet_jurisdiction,
            source=ResearchSource.LLM,
            confidence=CODE_CONFIDENCE,
        ))

    for idx, item in enumerate(_entries(payload, "keyConsiderations")):
        snippets.append(IntakeResearchSnippet(
            id=f"llm-consideration-{idx}",
            category=ResearchCategory.MATERIAL,
            title="Field Consideration",
            content=str(item),
            jurisdiction=snippet_jurisdiction,
            source=ResearchSource.LLM,
            confidence=CONSIDERATION_CONFIDENCE,
        ))
    return snippets


# =============================================================================
# Providers
# =============================================================================


class ResearchProvider(ABC):
    """Text-generation provider used for research."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging (e.g. 'openai', 'anthropic')."""

    @abstractmethod
    async def complete(self, prompt: str) -> Optional[str]:
        """Return the model's text for a prompt, or None when unavailable.

        Raises:
            ResearchProviderError: On API failures.
        """


class OpenAIResearchProvider(ResearchProvider):
    """OpenAI chat model through LangChain."""

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        api_key: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ):
        self.model = model or settings.openai_model
        self.temperature = temperature if temperature is not None else settings.llm_temperature
        self.api_key = api_key or settings.openai_api_key
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self._client: Optional[ChatOpenAI] = None

    @property
    def name(self) -> str:
        return "openai"

    @property
    def client(self) -> ChatOpenAI:
        """Get LangChain ChatOpenAI client (lazy initialization)."""
        if self._client is None:
            self._client = ChatOpenAI(
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                api_key=self.api_key,
            )
        return self._client

    async def complete(self, prompt: str) -> Optional[str]:
        if not self.api_key:
            return None
        try:
            response = await self.client.ainvoke([HumanMessage(content=prompt)])
        except Exception as e:
            raise ResearchProviderError(
                code=ErrorCode.PROVIDER_ERROR,
                message=f"OpenAI research failed: {e}",
                provider=self.name,
                details={"original_error": str(e)},
            ) from e
        content = response.content
        if isinstance(content, list):
            content = "\n".join(part if isinstance(part, str) else str(part.get("text", "")) for part in content)
        return content or None


class AnthropicResearchProvider(ResearchProvider):
    """Anthropic Claude messages API."""

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        api_key: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ):
        self.model = model or settings.anthropic_model
        self.temperature = temperature if temperature is not None else settings.llm_temperature
        self.api_key = api_key or settings.anthropic_api_key
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self._client: Optional[anthropic.AsyncAnthropic] = None

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def complete(self, prompt: str) -> Optional[str]:
        if not self.api_key:
            return None
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise ResearchProviderError(
                code=ErrorCode.PROVIDER_ERROR,
                message=f"Anthropic research failed: {e}",
                provider=self.name,
                details={"original_error": str(e)},
            ) from e
        text = "\n".join(getattr(block, "text", "") for block in response.content)
        return text or None


class CallableProvider(ResearchProvider):
    """Wraps a plain async function ``(prompt) -> Optional[str]``."""

    def __init__(self, func: Callable[[str], Awaitable[Optional[str]]], name: str = "callable"):
        self._func = func
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def complete(self, prompt: str) -> Optional[str]:
        return await self._func(prompt)


def default_providers() -> List[ResearchProvider]:
    """Providers with configured API keys, OpenAI first."""
    if not settings.research_enabled:
        return []
    providers: List[ResearchProvider] = []
    if settings.openai_api_key:
        providers.append(OpenAIResearchProvider())
    if settings.anthropic_api_key:
        providers.append(AnthropicResearchProvider())
    return providers


# =============================================================================
# Research Service
# =============================================================================


class ResearchService:
    """Cached, fault-tolerant research lookups.

    Args:
        providers: Ordered providers or plain async callables. Defaults to
            the providers with configured API keys.
        cache: Snippet cache. Defaults to a TTLCache sized from settings.
        timeout_seconds: Per-provider call limit.
    """

    def __init__(
        self,
        providers: Optional[List[Any]] = None,
        cache: Optional[TTLCache] = None,
        timeout_seconds: Optional[float] = None,
    ):
        raw = default_providers() if providers is None else providers
        self.providers: List[ResearchProvider] = [
            p if isinstance(p, ResearchProvider) else CallableProvider(p, name=getattr(p, "__name__", "callable"))
            for p in raw
        ]
        if cache is None:
            cache = TTLCache(
                capacity=settings.research_cache_capacity,
                ttl_seconds=settings.research_cache_ttl_seconds,
            )
        self.cache: TTLCache[List[IntakeResearchSnippet]] = cache
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.research_timeout_seconds

    async def _query_provider(
        self, provider: ResearchProvider, prompt: str, jurisdiction: str
    ) -> Optional[List[IntakeResearchSnippet]]:
        """Snippets from one provider, or None if it produced nothing usable."""
        try:
            text = await asyncio.wait_for(provider.complete(prompt), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "research_provider_timeout",
                provider=provider.name,
                code=ErrorCode.PROVIDER_TIMEOUT,
                timeout_seconds=self.timeout_seconds,
            )
            return None
        except ResearchProviderError as e:
            logger.warning("research_provider_failed", provider=provider.name, code=e.code, error=e.message)
            return None
        except Exception as e:
            logger.warning("research_provider_failed", provider=provider.name, error=str(e))
            return None

        if not text:
            logger.debug("research_provider_unavailable", provider=provider.name, code=ErrorCode.PROVIDER_UNAVAILABLE)
            return None
        payload = parse_llm_json(text)
        if payload is None:
            logger.warning(
                "research_provider_invalid_response",
                provider=provider.name,
                code=ErrorCode.PROVIDER_INVALID_RESPONSE,
            )
            return None
        return to_snippets(payload, jurisdiction)

    async def get_research_snippets(self, scope: str, job_type: str, jurisdiction: str) -> List[IntakeResearchSnippet]:
        """Get AI-sourced research snippets for a job.

        Args:
            scope: Scope text. Empty scope returns [] without any provider call.
            job_type: Template id.
            jurisdiction: Jurisdiction name.

        Returns:
            Snippets from the first provider that yields any, else from the
            last provider attempted. Empty on total failure.
        """
        if not scope:
            return []
        job_type = getattr(job_type, "value", job_type)
        jurisdiction = getattr(jurisdiction, "value", jurisdiction)

        cache_key = build_cache_key(scope, job_type, jurisdiction)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("research_cache_hit", job_type=job_type, jurisdiction=jurisdiction)
            return list(cached)
        logger.debug("research_cache_miss", job_type=job_type, jurisdiction=jurisdiction)

        prompt = build_prompt(scope, job_type, jurisdiction)
        snippets: Optional[List[IntakeResearchSnippet]] = None
        for provider in self.providers:
            snippets = await self._query_provider(provider, prompt, jurisdiction)
            if snippets:
                break

        if snippets is None:
            logger.info("research_unavailable", job_type=job_type, jurisdiction=jurisdiction)
            return []

        self.cache.set(cache_key, snippets)
        logger.info(
            "research_snippets_fetched",
            job_type=job_type,
            jurisdiction=jurisdiction,
            snippet_count=len(snippets),
        )
        return list(snippets)


# Singleton instance
_research_service: Optional[ResearchService] = None


def get_research_service() -> ResearchService:
    """Get the shared ResearchService instance (process-wide cache)."""
    global _research_service
    if _research_service is None:
        _research_service = ResearchService()
    return _research_service
