"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, relaykit.toml only contains
overrides. An empty file (or none at all) yields a working pipeline of
``logging`` then ``validation``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from relaykit.dispatch.behaviors import DEFAULT_REDACT_FIELDS


class PipelineConfig(BaseModel):
    """[pipeline] section."""

    model_config = {"frozen": True}

    behaviors: tuple[str, ...] = ("logging", "validation")

    @field_validator("behaviors")
    @classmethod
    def _no_duplicates(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        seen: set[str] = set()
        for name in value:
            if name in seen:
                msg = f"behavior {name!r} listed more than once"
                raise ValueError(msg)
            seen.add(name)
        return value


class LoggingConfig(BaseModel):
    """[logging] section."""

    model_config = {"frozen": True}

    log_payload: bool = False
    redact_fields: tuple[str, ...] = DEFAULT_REDACT_FIELDS


class CacheConfig(BaseModel):
    """[cache] section."""

    model_config = {"frozen": True}

    default_ttl_seconds: float | None = 300.0
    max_entries: int = Field(default=1024, gt=0)


class DispatchConfig(BaseModel):
    """[dispatch] section."""

    model_config = {"frozen": True}

    default_timeout_seconds: float | None = None
    max_depth: int = Field(default=32, ge=0)


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    local_dir: str | None = ".relaykit/plugins"
    disabled: tuple[str, ...] = ()

