"""Async clients for hosted text-generation services.

Every backend turns ``(prompt, parameters, model_id)`` into the raw completion
string and reports failures through the ``UpstreamError`` family only:

=====================================  ==========================
failure                                exception
=====================================  ==========================
connect/transport error, 5xx, other    ``UpstreamUnavailable``
HTTP 401 / 403                         ``UpstreamAuthError``
missing or blank generated text        ``UpstreamEmptyResponse``
request exceeds the client timeout     ``UpstreamTimeout``
=====================================  ==========================

Nothing is retried here.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Mapping, Optional

import httpx

from ..domain.errors import (
    UpstreamAuthError,
    UpstreamEmptyResponse,
    UpstreamError,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from ..observability.logging_utils import log_error_event, log_event, summarize_text
from ..observability.otel import build_span_attributes, record_exception, start_span
from ..schemas import GenerationParameters, UpstreamHealth


DEFAULT_TIMEOUT_SECONDS = 30.0
AUTH_STATUSES = (401, 403)
HEALTH_PROMPT = "Reply with the single word OK."


class TextGenerationClient(ABC):
    backend: str = "unknown"

    def __init__(
        self,
        *,
        default_model: str,
        default_parameters: GenerationParameters,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.default_model = default_model
        self.default_parameters = default_parameters
        self.timeout = timeout
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout, trust_env=False)

    @abstractmethod
    async def _generate(
        self, prompt: str, params: GenerationParameters, model_id: str
    ) -> str:
        raise NotImplementedError

    async def generate(
        self,
        prompt: str,
        params: Optional[GenerationParameters] = None,
        model_id: Optional[str] = None,
    ) -> str:
        model = model_id or self.default_model
        resolved = (params or GenerationParameters()).merged_over(
            self.default_parameters
        )
        log_event(
            "llm.request",
            backend=self.backend,
            model=model,
            prompt_chars=len(prompt),
            prompt=summarize_text(prompt, 200),
            max_new_tokens=resolved.max_new_tokens,
        )
        attributes = {"llm.backend": self.backend, "llm.model": model}
        attributes.update(build_span_attributes("llm.prompt", prompt, limit=500))
        with start_span("llm.generate", attributes) as span:
            try:
                completion = await asyncio.wait_for(
                    self._generate(prompt, resolved, model), timeout=self.timeout
                )
            except asyncio.TimeoutError as exc:
                error = UpstreamTimeout(
                    f"{self.backend} did not answer within {self.timeout:g}s",
                    backend=self.backend,
                )
                self._report_failure(span, error, model)
                raise error from exc
            except UpstreamError as exc:
                self._report_failure(span, exc, model)
                raise
            span.set_attribute("llm.completion.size", len(completion))
        log_event(
            "llm.response",
            backend=self.backend,
            model=model,
            completion_chars=len(completion),
            completion=summarize_text(completion, 200),
        )
        return completion

    def _report_failure(self, span: object, exc: UpstreamError, model: str) -> None:
        record_exception(span, exc)
        log_error_event(
            "llm.error",
            backend=self.backend,
            model=model,
            reason=exc.reason,
            status_code=exc.status_code,
            error=str(exc),
        )

    async def _post_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str],
        json: Any = None,
        data: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, str]] = None,
        auth_statuses: Iterable[int] = AUTH_STATUSES,
    ) -> Any:
        try:
            response = await self._http.post(
                url, headers=dict(headers), json=json, data=data, params=params
            )
        except httpx.TimeoutException as exc:
            raise UpstreamTimeout(
                f"{self.backend} request timed out: {type(exc).__name__}",
                backend=self.backend,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(
                f"{self.backend} is unreachable: {type(exc).__name__}",
                backend=self.backend,
            ) from exc

        status = response.status_code
        if status in tuple(auth_statuses):
            raise UpstreamAuthError(
                f"{self.backend} rejected the credentials (HTTP {status})",
                backend=self.backend,
                status_code=status,
            )
        if not response.is_success:
            raise UpstreamUnavailable(
                f"{self.backend} returned HTTP {status}",
                backend=self.backend,
                status_code=status,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamEmptyResponse(
                f"{self.backend} returned a non-JSON body",
                backend=self.backend,
                status_code=status,
            ) from exc

    def _require_text(self, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise UpstreamEmptyResponse(
                f"{self.backend} response has no generated text",
                backend=self.backend,
            )
        return value.strip()

    async def health_check(self) -> UpstreamHealth:
        health_params = GenerationParameters(max_new_tokens=5, min_new_tokens=0)
        try:
            await self.generate(HEALTH_PROMPT, health_params)
        except UpstreamError as exc:
            return UpstreamHealth(
                available=False,
                backend=self.backend,
                model=self.default_model,
                error=exc.reason,
            )
        return UpstreamHealth(
            available=True, backend=self.backend, model=self.default_model
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()


def json_headers(token: Optional[str] = None) -> Dict[str, str]:
    headers = {"Accept": "application/json", "Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers
