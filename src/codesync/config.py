"""Connection and tool settings for codesync.

Reads code-generation service settings from CLI args, environment
variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    CODESYNC_HOST: Code-generation service URL (required)
    CODESYNC_USER: Account user / email (required)
    CODESYNC_TOKEN: API token (required)
    CODESYNC_INSECURE: Skip SSL verification (optional, default: false)
    CODESYNC_DEBUG: Enable debug logging (optional, default: false)
    CODESYNC_TIMEOUT: Read timeout in seconds (optional, default: 120)
    CODESYNC_TRANSPILE_COMMAND: TSX to JSX command (optional)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

from .sync.converter import DEFAULT_TRANSPILE_COMMAND

logger = logging.getLogger(__name__)


@dataclass
class Config:
    host: str
    user: str
    token: str
    insecure: bool = False
    debug: bool = False
    timeout: int = 120
    transpile_command: str = DEFAULT_TRANSPILE_COMMAND


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the host URL is invalid or credentials are empty.
    """
    config.host = config.host.strip()

    if not config.host.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid host '{config.host}': must start with http:// or https://"
        )

    parsed = urlparse(config.host)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid host '{config.host}': URL must include a hostname"
        )

    config.host = config.host.removesuffix("/")

    if not config.user.strip():
        raise ValueError(
            "User cannot be empty. Set CODESYNC_USER environment variable."
        )

    if not config.token.strip():
        raise ValueError(
            "API token cannot be empty. Set CODESYNC_TOKEN environment variable."
        )

    if config.insecure:
        logger.warning(
            "WARNING: SSL verification disabled (insecure=True). Use only for development."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def load_config(
    host: str | None = None,
    user: str | None = None,
    token: str | None = None,
    insecure: bool = False,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        host: Override service URL.
        user: Override user.
        token: Override API token.
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flat dict of values from the YAML ``server`` and
            ``codegen`` sections, used when CLI arg and env var are unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If required config (host, user, token) is missing
            after checking all sources.
    """
    fb = yaml_fallbacks or {}

    # --- String fields: CLI > env > YAML > error ---

    final_host = host or os.getenv("CODESYNC_HOST") or fb.get("host")
    if not final_host:
        raise ValueError(
            "Service host not found. Set CODESYNC_HOST environment variable, "
            "pass --host CLI argument, or add 'host' to config.yml."
        )

    final_user = user or os.getenv("CODESYNC_USER") or fb.get("user")
    if not final_user:
        raise ValueError(
            "User not found. Set CODESYNC_USER environment variable, "
            "pass --user CLI argument, or add 'user' to config.yml."
        )

    final_token = token or os.getenv("CODESYNC_TOKEN") or fb.get("token")
    if not final_token:
        raise ValueError(
            "API token not found. Set CODESYNC_TOKEN environment variable, "
            "pass --token CLI argument, or add 'token' to config.yml."
        )

    # --- Boolean fields: CLI > env > YAML > default ---

    if insecure:
        final_insecure = True
    else:
        env_insecure = _get_bool_env("CODESYNC_INSECURE")
        if env_insecure is not None:
            final_insecure = env_insecure
        else:
            final_insecure = bool(fb.get("insecure", False))

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("CODESYNC_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    # --- Numeric / optional fields: env > YAML > default ---

    timeout_raw = os.getenv("CODESYNC_TIMEOUT")
    if timeout_raw is not None:
        try:
            final_timeout = int(timeout_raw)
        except ValueError:
            raise ValueError(
                f"Invalid CODESYNC_TIMEOUT '{timeout_raw}': must be a number between 1 and 3600"
            ) from None
        if not (1 <= final_timeout <= 3600):
            raise ValueError(
                f"Invalid CODESYNC_TIMEOUT '{timeout_raw}': must be a number between 1 and 3600"
            )
    elif "timeout" in fb:
        final_timeout = int(fb["timeout"])
    else:
        final_timeout = 120

    final_transpile = (
        os.getenv("CODESYNC_TRANSPILE_COMMAND")
        or fb.get("transpile_command")
        or DEFAULT_TRANSPILE_COMMAND
    )

    config = Config(
        host=final_host.strip(),
        user=final_user.strip(),
        token=final_token.strip(),
        insecure=final_insecure,
        debug=final_debug,
        timeout=final_timeout,
        transpile_command=final_transpile,
    )

    validate_config(config)

    return config
