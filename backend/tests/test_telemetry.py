"""Telemetry configuration tests."""

from __future__ import annotations

import httpx
from fastapi import FastAPI
from opentelemetry.semconv.resource import ResourceAttributes

from app.config import AppSettings
from app.core import telemetry
from app.core.telemetry import build_exporter_options, build_resource, setup_telemetry, tag_price_request


class RecordingSpan:
    def __init__(self, recording: bool = True) -> None:
        self.recording = recording
        self.attributes: dict[str, object] = {}

    def is_recording(self) -> bool:
        return self.recording

    def set_attribute(self, key: str, value: object) -> None:
        self.attributes[key] = value


def _request(url: str) -> tuple:
    return ("GET", httpx.URL(url), httpx.Headers(), None, {})


def test_resource_describes_pricing_configuration():
    settings = AppSettings(
        telemetry_service_name="satsfolio-api",
        coingecko_base_url="https://pro-api.coingecko.com/api/v3",
        default_display_currency="BRL",
        quote_gap_policy="nearest",
    )

    attributes = build_resource(settings, version="0.1.0").attributes

    assert attributes[ResourceAttributes.SERVICE_NAME] == "satsfolio-api"
    assert attributes[ResourceAttributes.SERVICE_NAMESPACE] == "satsfolio"
    assert attributes[ResourceAttributes.SERVICE_VERSION] == "0.1.0"
    assert attributes["satsfolio.price_provider.host"] == "pro-api.coingecko.com"
    assert attributes["satsfolio.display_currency"] == "BRL"
    assert attributes["satsfolio.quote_gap_policy"] == "nearest"


def test_exporter_options_only_set_configured_endpoint():
    assert build_exporter_options(AppSettings(telemetry_otlp_insecure=False)) == {"insecure": False}
    assert build_exporter_options(AppSettings(telemetry_otlp_endpoint="http://collector:4317")) == {
        "insecure": True,
        "endpoint": "http://collector:4317",
    }


def test_price_requests_are_tagged_without_query_string():
    span = RecordingSpan()

    tag_price_request(
        span,
        _request("https://api.coingecko.com/api/v3/simple/price?ids=bitcoin&x_cg_demo_api_key=secret"),
        provider_host="api.coingecko.com",
    )

    assert span.attributes == {
        "satsfolio.price_provider": "coingecko",
        "satsfolio.price_provider.endpoint": "/api/v3/simple/price",
    }


def test_other_hosts_and_unsampled_spans_are_left_alone():
    other = RecordingSpan()
    unsampled = RecordingSpan(recording=False)

    tag_price_request(other, _request("https://example.test/status"), provider_host="api.coingecko.com")
    tag_price_request(unsampled, _request("https://api.coingecko.com/api/v3/ping"), provider_host="api.coingecko.com")

    assert other.attributes == {}
    assert unsampled.attributes == {}


def test_disabled_telemetry_leaves_app_uninstrumented(monkeypatch):
    monkeypatch.setattr(telemetry, "_TELEMETRY_INITIALISED", False)
    app = FastAPI()

    setup_telemetry(app, AppSettings(telemetry_enabled=False))

    assert telemetry._TELEMETRY_INITIALISED is False
    assert not getattr(app, "_is_instrumented_by_opentelemetry", False)
