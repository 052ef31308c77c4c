"""Unified configuration schema for codesync.

Defines Pydantic models for the YAML config structure with dedicated
sections for the code-generation service connection, code generation
collaborators and logging.

Usage:
    from codesync.config_schema import UnifiedConfig, build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
    fallbacks = unified.fallbacks()
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ServerConfig(BaseModel):
    """Code-generation service connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    host: str | None = Field(
        default=None, description="Code-generation service URL"
    )
    user: str | None = Field(default=None, description="Account user")
    token: str | None = Field(default=None, description="API token")
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    timeout: int = Field(
        default=120,
        ge=1,
        le=3600,
        description="Read timeout for service requests in seconds (1-3600)",
    )

    model_config = {"frozen": True}


class CodegenConfig(BaseModel):
    """Settings for local code-generation collaborators."""

    transpile_command: str | None = Field(
        default=None,
        description="Command converting TSX on stdin to JSX on stdout",
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``text`` or ``json``.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: str = Field(default="text", description="text or json")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    codegen: CodegenConfig = Field(default_factory=CodegenConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}

    def fallbacks(self) -> dict:
        """Flatten ``server`` and ``codegen`` into the dict ``load_config``
        accepts as ``yaml_fallbacks``.  Unset values are omitted."""
        merged = {
            **self.server.model_dump(exclude_none=True),
            **self.codegen.model_dump(exclude_none=True),
        }
        return merged


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully: anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
