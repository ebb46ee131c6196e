from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from typing import Dict, Optional

from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Status, StatusCode


_OTEL_INITIALIZED = False
_OTEL_INSTRUMENTED = False
_OTEL_ATTR_MAX_LEN = int(os.getenv("OTEL_ATTR_MAX_LEN", "2000"))
_DEFAULT_SERVICE_NAME = "anndata-ai"


def _parse_pairs(raw: Optional[str]) -> Dict[str, str]:
    # "k1=v1,k2=v2" as used by OTEL_EXPORTER_OTLP_HEADERS / OTEL_RESOURCE_ATTRIBUTES
    if not raw:
        return {}
    pairs: Dict[str, str] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item or "=" not in item:
            continue
        key, value = item.split("=", 1)
        key = key.strip()
        value = value.strip()
        if key and value:
            pairs[key] = value
    return pairs


def _safe_serialize(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


def build_span_attributes(
    prefix: str, payload: object, limit: Optional[int] = None
) -> Dict[str, object]:
    text = _safe_serialize(payload)
    size = len(text)
    max_len = _OTEL_ATTR_MAX_LEN if limit is None else limit
    truncated = bool(max_len) and size > max_len
    if truncated:
        text = text[:max_len] + "..."
    return {
        prefix: text,
        f"{prefix}.size": size,
        f"{prefix}.truncated": truncated,
    }


def _set_span_attributes(span: object, attributes: Optional[Dict[str, object]]) -> None:
    if not span or not attributes:
        return None
    for key, value in attributes.items():
        if value is None:
            continue
        if not isinstance(value, (str, bool, int, float)):
            value = str(value)
        span.set_attribute(key, value)


def _service_name(service_name: Optional[str] = None) -> str:
    return service_name or os.getenv("OTEL_SERVICE_NAME") or _DEFAULT_SERVICE_NAME


@contextmanager
def start_span(name: str, attributes: Optional[Dict[str, object]] = None):
    tracer = trace.get_tracer(_service_name())
    with tracer.start_as_current_span(name) as span:
        _set_span_attributes(span, attributes)
        yield span


def record_exception(span: object, exc: Exception) -> None:
    if not span:
        return None
    span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR, type(exc).__name__))


def _resolve_http_endpoint(
    base: Optional[str], signal: str, override: Optional[str]
) -> Optional[str]:
    endpoint = (override or base or "").strip()
    if not endpoint:
        return None
    if "/v1/" in endpoint:
        return endpoint
    return endpoint.rstrip("/") + f"/v1/{signal}"


def _should_enable_exporter(name: Optional[str]) -> bool:
    if not name:
        return True
    return name.strip().lower() not in {"none", "off", "false", "0"}


def init_otel(service_name: Optional[str] = None) -> bool:
    """Configure OTLP/HTTP export of traces and logs from the standard OTEL_* env.

    Returns False and leaves the no-op global providers in place when no
    endpoint is configured.
    """
    global _OTEL_INITIALIZED
    if _OTEL_INITIALIZED:
        return True
    base_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    traces_endpoint_env = os.getenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")
    logs_endpoint_env = os.getenv("OTEL_EXPORTER_OTLP_LOGS_ENDPOINT")
    headers = _parse_pairs(os.getenv("OTEL_EXPORTER_OTLP_HEADERS"))
    enable_traces = _should_enable_exporter(os.getenv("OTEL_TRACES_EXPORTER", "otlp"))
    enable_logs = _should_enable_exporter(os.getenv("OTEL_LOGS_EXPORTER", "otlp"))
    if not (enable_traces or enable_logs):
        return False
    if not (base_endpoint or traces_endpoint_env or logs_endpoint_env):
        return False

    resource = Resource.create(
        {
            "service.name": _service_name(service_name),
            **_parse_pairs(os.getenv("OTEL_RESOURCE_ATTRIBUTES")),
        }
    )

    configured = False
    traces_endpoint = (
        _resolve_http_endpoint(base_endpoint, "traces", traces_endpoint_env)
        if enable_traces
        else None
    )
    if traces_endpoint:
        tracer_provider = TracerProvider(resource=resource)
        tracer_provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(endpoint=traces_endpoint, headers=headers)
            )
        )
        trace.set_tracer_provider(tracer_provider)
        configured = True

    logs_endpoint = (
        _resolve_http_endpoint(base_endpoint, "logs", logs_endpoint_env)
        if enable_logs
        else None
    )
    if logs_endpoint:
        logger_provider = LoggerProvider(resource=resource)
        logger_provider.add_log_record_processor(
            BatchLogRecordProcessor(
                OTLPLogExporter(endpoint=logs_endpoint, headers=headers)
            )
        )
        set_logger_provider(logger_provider)
        logging.getLogger().addHandler(
            LoggingHandler(level=logging.INFO, logger_provider=logger_provider)
        )
        configured = True

    if not configured:
        return False
    _OTEL_INITIALIZED = True
    return True


def instrument_fastapi(app: object) -> bool:
    global _OTEL_INSTRUMENTED
    if _OTEL_INSTRUMENTED:
        return True
    FastAPIInstrumentor.instrument_app(app)
    HTTPXClientInstrumentor().instrument()
    _OTEL_INSTRUMENTED = True
    return True
