"""
Embedding/completion provider adapter (OpenAI HTTP API).

Callers construct one ``OpenAIProvider`` per credential and receive
``ProviderResult`` values instead of raw JSON, so the memory services never
inspect response shapes themselves.
"""

from __future__ import annotations

import asyncio
import hashlib
import random
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Generic, List, Optional, Protocol, TypeVar

import httpx

import agentmem.config as config
from agentmem.errors import ApiKeyRequiredError, ProviderUnavailableError, ValidationIssue
from agentmem.validators import validate_embedding_text

logger = config.logger

T = TypeVar("T")

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
# Rejected credentials say nothing about upstream health.
CREDENTIAL_STATUS_CODES = {401, 403}


class ProviderErrorKind(str, Enum):
    transport = "transport"
    rate_limited = "rate_limited"
    http_error = "http_error"
    malformed = "malformed"
    unavailable = "unavailable"


@dataclass(frozen=True)
class ProviderResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[ProviderErrorKind] = None
    detail: Optional[str] = None
    raw: Optional[dict] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, raw: Optional[dict] = None) -> "ProviderResult[T]":
        return cls(value=value, raw=raw)

    @classmethod
    def failure(cls, kind: ProviderErrorKind, detail: Optional[str] = None) -> "ProviderResult[T]":
        return cls(error=kind, detail=detail)

    def unwrap(self) -> T:
        if self.error is not None:
            raise ProviderUnavailableError(self.error.value, self.detail)
        return self.value


class MemoryProvider(Protocol):
    """What the memory services need from a provider."""

    completion_model: str

    async def embed(self, text: str) -> ProviderResult[List[float]]:
        ...

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> ProviderResult[str]:
        ...


class ProviderCircuitBreaker:
    def __init__(self, failure_threshold: int, cooldown_seconds: int):
        self._failure_threshold = max(1, failure_threshold)
        self._cooldown_seconds = max(1, cooldown_seconds)
        self._lock = threading.Lock()
        self._consecutive_failures = 0
        self._cooldown_until = 0.0
        self._last_error: Optional[str] = None
        self._last_failure_ts: Optional[float] = None
        self._last_success_ts: Optional[float] = None

    def is_open(self) -> bool:
        with self._lock:
            return time.time() < self._cooldown_until

    def record_success(self) -> None:
        with self._lock:
            self._consecutive_failures = 0
            self._cooldown_until = 0.0
            self._last_success_ts = time.time()

    def record_failure(self, error: str) -> None:
        with self._lock:
            self._consecutive_failures += 1
            self._last_error = error
            self._last_failure_ts = time.time()
            if self._consecutive_failures >= self._failure_threshold:
                self._cooldown_until = time.time() + self._cooldown_seconds

    def status(self) -> dict:
        with self._lock:
            return {
                "open": time.time() < self._cooldown_until,
                "consecutive_failures": self._consecutive_failures,
                "cooldown_until_epoch": int(self._cooldown_until) if self._cooldown_until else None,
                "last_error": self._last_error,
                "last_failure_epoch": int(self._last_failure_ts) if self._last_failure_ts else None,
                "last_success_epoch": int(self._last_success_ts) if self._last_success_ts else None,
            }


class ProviderCircuitBreakers:
    """One breaker per credential, keyed by a digest of the API key."""

    def __init__(self, failure_threshold: int, cooldown_seconds: int):
        self._failure_threshold = failure_threshold
        self._cooldown_seconds = cooldown_seconds
        self._lock = threading.Lock()
        self._breakers: dict[str, ProviderCircuitBreaker] = {}

    @staticmethod
    def _key(api_key: str) -> str:
        return hashlib.sha256(api_key.encode("utf-8")).hexdigest()

    def get(self, api_key: str) -> ProviderCircuitBreaker:
        key = self._key(api_key)
        with self._lock:
            breaker = self._breakers.get(key)
            if breaker is None:
                breaker = ProviderCircuitBreaker(self._failure_threshold, self._cooldown_seconds)
                self._breakers[key] = breaker
            return breaker

    def status(self) -> dict:
        with self._lock:
            breakers = list(self._breakers.values())
        open_count = sum(1 for breaker in breakers if breaker.is_open())
        return {
            "open": open_count > 0,
            "open_count": open_count,
            "tracked": len(breakers),
        }


provider_circuit_breakers = ProviderCircuitBreakers(
    failure_threshold=config.PROVIDER_FAILURE_THRESHOLD,
    cooldown_seconds=config.PROVIDER_COOLDOWN_SECONDS,
)


async def _async_sleep_backoff(attempt: int) -> None:
    base = config.PROVIDER_RETRY_BACKOFF_SECONDS * (2 ** attempt)
    jitter = random.uniform(0, config.PROVIDER_RETRY_JITTER_SECONDS)
    await asyncio.sleep(base + jitter)


class OpenAIProvider:
    def __init__(
        self,
        api_key: str,
        *,
        base_url: Optional[str] = None,
        embedding_model: Optional[str] = None,
        completion_model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        circuit_breaker: Optional[ProviderCircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key or not api_key.strip():
            raise ApiKeyRequiredError()
        self._api_key = api_key.strip()
        self._base_url = (base_url or config.OPENAI_BASE_URL).rstrip("/")
        self.embedding_model = embedding_model or config.EMBEDDING_MODEL
        self.completion_model = completion_model or config.MEMORY_MODEL
        self._timeout = httpx.Timeout(timeout_seconds or config.PROVIDER_TIMEOUT_SECONDS)
        self._breaker = circuit_breaker or provider_circuit_breakers.get(self._api_key)
        self._transport = transport

    async def embed(self, text: str) -> ProviderResult[List[float]]:
        """Generate an embedding vector for ``text``."""
        try:
            validate_embedding_text(text)
        except ValidationIssue as exc:
            return ProviderResult.failure(ProviderErrorKind.malformed, str(exc))

        result = await self._post(
            "/embeddings",
            {
                "model": self.embedding_model,
                "input": text,
                "dimensions": config.EMBEDDING_DIM,
            },
        )
        if not result.ok:
            return result

        try:
            embedding = result.value["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError):
            return ProviderResult.failure(ProviderErrorKind.malformed, "no embedding in response")
        if not isinstance(embedding, list) or not embedding:
            return ProviderResult.failure(ProviderErrorKind.malformed, "empty embedding")
        if len(embedding) != config.EMBEDDING_DIM:
            logger.warning(
                f"Expected embedding dimension {config.EMBEDDING_DIM}, got {len(embedding)}"
            )
        return ProviderResult.success([float(value) for value in embedding])

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> ProviderResult[str]:
        """Run one chat completion and return the first choice's text."""
        result = await self._post(
            "/chat/completions",
            {
                "model": self.completion_model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )
        if not result.ok:
            return result

        data = result.value
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return ProviderResult.failure(ProviderErrorKind.malformed, "no choices in response")
        if not isinstance(content, str) or not content.strip():
            return ProviderResult.failure(ProviderErrorKind.malformed, "empty completion")
        return ProviderResult.success(content, raw=data)

    async def _post(self, path: str, payload: dict) -> ProviderResult[dict]:
        if self._breaker.is_open():
            return ProviderResult.failure(ProviderErrorKind.unavailable, "circuit breaker open")

        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            transport=self._transport,
        ) as client:
            attempt = 0
            while True:
                try:
                    response = await client.post(path, json=payload)
                except httpx.RequestError as exc:
                    if attempt >= config.PROVIDER_RETRY_MAX:
                        self._breaker.record_failure(str(exc))
                        logger.warning(f"Provider request failed: {exc}")
                        return ProviderResult.failure(ProviderErrorKind.transport, str(exc))
                    await _async_sleep_backoff(attempt)
                    attempt += 1
                    continue

                status = response.status_code
                if status in RETRYABLE_STATUS_CODES and attempt < config.PROVIDER_RETRY_MAX:
                    await _async_sleep_backoff(attempt)
                    attempt += 1
                    continue
                if status >= 400:
                    if status not in CREDENTIAL_STATUS_CODES:
                        self._breaker.record_failure(f"status {status}")
                    logger.warning(f"Provider returned status {status} for {path}")
                    kind = (
                        ProviderErrorKind.rate_limited
                        if status == 429
                        else ProviderErrorKind.http_error
                    )
                    return ProviderResult.failure(kind, f"status {status}")

                try:
                    data = response.json()
                except ValueError:
                    self._breaker.record_failure("invalid json")
                    return ProviderResult.failure(ProviderErrorKind.malformed, "invalid json")
                self._breaker.record_success()
                return ProviderResult.success(data)
