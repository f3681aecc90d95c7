"""OpenTelemetry wiring for the report API and its CoinGecko traffic."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlsplit

from fastapi import FastAPI
from opentelemetry import metrics, trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.semconv.resource import ResourceAttributes

from app.config import AppSettings

logger = logging.getLogger(__name__)

SERVICE_NAMESPACE = "satsfolio"
PRICE_PROVIDER = "coingecko"
# Health checks are not traced
EXCLUDED_URLS = "health"

_TELEMETRY_INITIALISED = False
_METRIC_EXPORT_INTERVAL_MS = 10000


def build_resource(settings: AppSettings, *, version: str | None = None) -> Resource:
    """Service identity plus the pricing configuration every report depends on."""

    attributes: dict[str, Any] = {
        ResourceAttributes.SERVICE_NAME: settings.telemetry_service_name or settings.app_name,
        ResourceAttributes.SERVICE_NAMESPACE: SERVICE_NAMESPACE,
        "satsfolio.price_provider": PRICE_PROVIDER,
        "satsfolio.price_provider.host": urlsplit(settings.coingecko_base_url).hostname or "",
        "satsfolio.display_currency": settings.default_display_currency,
        "satsfolio.quote_gap_policy": settings.quote_gap_policy,
    }
    if version:
        attributes[ResourceAttributes.SERVICE_VERSION] = version
    return Resource.create(attributes)


def build_exporter_options(settings: AppSettings) -> dict[str, Any]:
    options: dict[str, Any] = {"insecure": settings.telemetry_otlp_insecure}
    if settings.telemetry_otlp_endpoint:
        options["endpoint"] = settings.telemetry_otlp_endpoint
    return options


def tag_price_request(span: Any, request: Any, *, provider_host: str) -> None:
    """Mark outbound spans that hit the price provider with the endpoint path.

    The query string is left out so API keys and date windows never land in
    span attributes.
    """

    if span is None or not span.is_recording():
        return
    url = request[1]
    if getattr(url, "host", None) != provider_host:
        return
    span.set_attribute("satsfolio.price_provider", PRICE_PROVIDER)
    span.set_attribute("satsfolio.price_provider.endpoint", url.path)


def setup_telemetry(app: FastAPI, settings: AppSettings) -> None:
    """Configure OTLP exporters and instrument FastAPI plus CoinGecko calls."""

    global _TELEMETRY_INITIALISED  # noqa: PLW0603 - single initialisation guard

    if _TELEMETRY_INITIALISED:
        return

    if not settings.telemetry_enabled:
        logger.info("Telemetry disabled via configuration")
        return

    resource = build_resource(settings, version=app.version)
    sampler = ParentBased(TraceIdRatioBased(settings.telemetry_sample_ratio))
    exporter_options = build_exporter_options(settings)

    tracer_provider = TracerProvider(resource=resource, sampler=sampler)
    tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(**exporter_options)))
    trace.set_tracer_provider(tracer_provider)

    meter_provider = MeterProvider(
        resource=resource,
        metric_readers=[
            PeriodicExportingMetricReader(
                OTLPMetricExporter(**exporter_options),
                export_interval_millis=_METRIC_EXPORT_INTERVAL_MS,
            )
        ],
    )
    metrics.set_meter_provider(meter_provider)

    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(BatchLogRecordProcessor(OTLPLogExporter(**exporter_options)))
    set_logger_provider(logger_provider)
    LoggingInstrumentor().instrument(set_logging_format=False)

    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=tracer_provider,
        meter_provider=meter_provider,
        excluded_urls=EXCLUDED_URLS,
    )

    provider_host = urlsplit(settings.coingecko_base_url).hostname or ""

    def request_hook(span: Any, request: Any) -> None:
        tag_price_request(span, request, provider_host=provider_host)

    async def async_request_hook(span: Any, request: Any) -> None:
        tag_price_request(span, request, provider_host=provider_host)

    HTTPXClientInstrumentor().instrument(
        tracer_provider=tracer_provider,
        meter_provider=meter_provider,
        request_hook=request_hook,
        async_request_hook=async_request_hook,
    )

    _TELEMETRY_INITIALISED = True
    logger.info("Telemetry exporting to %s", exporter_options.get("endpoint", "the default OTLP endpoint"))


__all__ = ["build_exporter_options", "build_resource", "setup_telemetry", "tag_price_request"]
