from __future__ import annotations

from typing import Any, Dict, Optional, Union

from ...domain.confidence import estimate_confidence
from ...domain.enums import AnalysisKind
from ...domain.errors import UpstreamError, ValidationError
from ...domain.interpreter import interpret
from ...domain.normalizers import EnumNormalizer
from ...infra.text_generation import TextGenerationClient
from ...observability.logging_utils import log_error_event, log_event
from ...observability.otel import record_exception, start_span
from ...schemas import ResponseEnvelope, UpstreamHealth
from ..handlers import HANDLER_SPECS, HandlerSpec, parse_request
from ..model_routing import resolve_model


def coerce_kind(kind: Union[AnalysisKind, str]) -> AnalysisKind:
    if isinstance(kind, AnalysisKind):
        return kind
    return AnalysisKind(EnumNormalizer.normalize(AnalysisKind, kind))


class AnalysisService:
    """Validate, prompt, generate, interpret and wrap one analysis request.

    The text client is injected so tests can substitute a fake. Validation
    failures are raised before the client is touched, and upstream failures
    propagate unchanged for the HTTP layer to map.
    """

    def __init__(
        self,
        client: TextGenerationClient,
        *,
        specs: Optional[Dict[AnalysisKind, HandlerSpec]] = None,
    ):
        self._client = client
        self._specs = specs or HANDLER_SPECS

    @property
    def client(self) -> TextGenerationClient:
        return self._client

    async def handle(
        self, kind: Union[AnalysisKind, str], payload: Any
    ) -> ResponseEnvelope:
        kind = coerce_kind(kind)
        spec = self._specs[kind]
        fields = sorted(payload.keys()) if isinstance(payload, dict) else None
        log_event("analysis.start", kind=kind.value, fields=fields)
        with start_span("analysis.handle", {"analysis.kind": kind.value}) as span:
            try:
                request = parse_request(spec, payload)
            except ValidationError as exc:
                span.set_attribute("analysis.rejected", True)
                log_event(
                    "analysis.rejected",
                    kind=kind.value,
                    missing_fields=exc.missing_fields,
                    error=str(exc),
                )
                raise

            model_id = resolve_model(kind, self._client.default_model)
            prompt = spec.to_prompt(request)
            try:
                raw = await self._client.generate(prompt, spec.parameters, model_id)
            except UpstreamError as exc:
                record_exception(span, exc)
                log_error_event(
                    "analysis.upstream_error",
                    kind=kind.value,
                    backend=exc.backend,
                    reason=exc.reason,
                    status_code=exc.status_code,
                )
                raise

            result = interpret(raw)
            assessment = (
                spec.local_assessment(request) if spec.local_assessment else None
            )
            completeness = (
                getattr(assessment, "data_completeness", None)
                if assessment is not None
                else None
            )
            if completeness is None:
                completeness = request.completeness()
            confidence = estimate_confidence(kind, result, completeness=completeness)
            span.set_attribute("analysis.structured", result.structured)
            span.set_attribute("analysis.strategy", result.strategy.value)

        envelope = ResponseEnvelope(
            message=spec.message,
            kind=kind,
            data=result.data if result.structured else result.text,
            structured=result.structured,
            interpretation=result.strategy,
            raw_response=result.text,
            confidence=confidence,
            source=spec.source,
            model=model_id,
            assessment=(
                assessment.model_dump(mode="json") if assessment is not None else None
            ),
        )
        log_event(
            "analysis.completed",
            kind=kind.value,
            model=model_id,
            structured=result.structured,
            strategy=result.strategy.value,
            confidence=confidence,
        )
        return envelope

    async def health(self) -> UpstreamHealth:
        return await self._client.health_check()
