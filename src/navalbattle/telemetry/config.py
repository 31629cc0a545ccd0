"""Telemetry configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict

from pydantic import BaseModel, Field

from .logger import init_logging
from .metrics import init_metrics
from .tracer import init_tracing

_TRUE_VALUES = {"1", "true", "yes", "on"}
_SIGNAL_FLAGS = {"traces": "enable_tracing", "metrics": "enable_metrics", "logs": "enable_logging"}


def env_flag(*names: str) -> bool | None:
    """Return the first boolean found among the given environment variables."""
    for name in names:
        value = os.getenv(name)
        if value is not None:
            return value.strip().lower() in _TRUE_VALUES
    return None


class TelemetryConfig(BaseModel):
    """Runtime configuration for telemetry exporters."""

    enable_tracing: bool = False
    enable_metrics: bool = False
    enable_logging: bool = False
    otlp_traces_endpoint: str | None = None
    otlp_metrics_endpoint: str | None = None
    otlp_logs_endpoint: str | None = None
    service_name: str = "navalbattle"
    service_namespace: str = "game"
    resource_attributes: dict[str, str] = Field(default_factory=dict)

    def resource(self) -> dict[str, str]:
        """Resource attributes shared by every signal provider."""
        attributes = {
            "service.name": self.service_name,
            "service.namespace": self.service_namespace,
        }
        attributes.update(self.resource_attributes)
        return attributes

    @classmethod
    def from_env(cls, **overrides: Any) -> "TelemetryConfig":
        """Construct config from env vars (`NAVALBATTLE_*` + `OTEL_*`)."""

        data: Dict[str, Any] = cls().model_dump()
        data.update(overrides)

        flags = {
            "enable_tracing": ("NAVALBATTLE_ENABLE_TRACING", "OTEL_TRACES_ENABLED"),
            "enable_metrics": ("NAVALBATTLE_ENABLE_METRICS", "OTEL_METRICS_ENABLED"),
            "enable_logging": ("NAVALBATTLE_ENABLE_LOGGING", "OTEL_LOGS_ENABLED"),
        }
        for key, env_names in flags.items():
            value = env_flag(*env_names)
            if value is not None:
                data[key] = value

        base_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
        for signal in ("traces", "metrics", "logs"):
            key = f"otlp_{signal}_endpoint"
            if data.get(key):
                continue
            explicit = os.getenv(f"OTEL_EXPORTER_OTLP_{signal.upper()}_ENDPOINT")
            if explicit:
                data[key] = explicit
            elif base_endpoint:
                data[key] = f"{base_endpoint.rstrip('/')}/v1/{signal}"

        service_name = os.getenv("OTEL_SERVICE_NAME")
        service_namespace = os.getenv("OTEL_SERVICE_NAMESPACE")
        if service_name:
            data["service_name"] = service_name
        if service_namespace:
            data["service_namespace"] = service_namespace

        resource_env = os.getenv("OTEL_RESOURCE_ATTRIBUTES")
        if resource_env:
            attrs = dict(data.get("resource_attributes") or {})
            for part in resource_env.split(","):
                if "=" not in part:
                    continue
                key, value = part.split("=", 1)
                attrs[key.strip()] = value.strip()
            data["resource_attributes"] = attrs

        # Configured endpoints switch their exporter on.
        for signal, flag in _SIGNAL_FLAGS.items():
            if data.get(f"otlp_{signal}_endpoint"):
                data[flag] = True

        return cls(**data)


@lru_cache(maxsize=1)
def load_telemetry_config() -> TelemetryConfig:
    """Load and cache telemetry config from the environment."""

    return TelemetryConfig.from_env()


def init_telemetry(config: TelemetryConfig | None = None) -> TelemetryConfig:
    """Initialise the enabled telemetry subsystems."""

    resolved = config or load_telemetry_config()

    if resolved.enable_tracing:
        init_tracing(resolved)
    if resolved.enable_metrics:
        init_metrics(resolved)
    if resolved.enable_logging:
        init_logging(resolved)
    return resolved
