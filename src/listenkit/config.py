"""
=============================================================================
LISTENKIT CONFIGURATION
=============================================================================

One dataclass holds every setting the package reads at setup time.

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

    LISTENKIT_CORS           "1"/"true"/"yes"/"on" enables CORS handling
    LISTENKIT_DATA_FIELD     envelope key for the payload   (default: data)
    LISTENKIT_CODE_FIELD     envelope key for the code      (default: errno)
    LISTENKIT_MESSAGE_FIELD  envelope key for the message   (default: errmsg)
    LISTENKIT_GZIP_LEVEL     gzip compression level 0-9     (default: 6)
    LISTENKIT_STRICT_GZIP    reject undecodable gzip bodies (default: off)
    LISTENKIT_LOG_LEVEL      DEBUG / INFO / WARNING / ERROR (default: INFO)
    LISTENKIT_LOG_FORMAT     text / json                    (default: text)

=============================================================================
"""

import os
from dataclasses import dataclass

from .envelope import FieldNames
from .errors import ConfigError


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class ExtendConfig:
    """
    Configuration for an Extender and the middleware around it.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    ENVELOPE
    - data_field, code_field, message_field

    CROSS-ORIGIN
    - enable_cors

    COMPRESSION
    - gzip_level, strict_gzip_requests

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # CROSS-ORIGIN

    enable_cors: bool = False
    """
    Add Access-Control-* headers to every extended response and answer
    preflight requests with the method/headers they ask for.
    """

    # ENVELOPE

    data_field: str = "data"
    """Key holding the payload in a success envelope."""

    code_field: str = "errno"
    """Key holding 0 on success, the HTTP status on failure."""

    message_field: str = "errmsg"
    """Key holding the error message in a failure envelope."""

    # COMPRESSION

    gzip_level: int = 6
    """
    gzip compression level.
    1 = fastest, 9 = smallest, 6 = the usual balance.
    """

    strict_gzip_requests: bool = False
    """
    Reject request bodies that claim gzip but do not decompress (400)
    instead of passing the raw bytes to the handler.
    """

    # LOGGING

    log_level: str = "INFO"
    """Level for the listenkit logger (DEBUG, INFO, WARNING, ERROR)."""

    log_format: str = "text"
    """Access log format: 'text' for people, 'json' for log shippers."""

    def field_names(self) -> FieldNames:
        """The envelope key names as a FieldNames value."""
        return FieldNames(
            data=self.data_field,
            code=self.code_field,
            message=self.message_field,
        )

    @classmethod
    def from_env(cls) -> "ExtendConfig":
        """
        Create configuration from environment variables.

        Unset variables keep the dataclass defaults. The result is not
        validated; call validate() before use.

        Raises:
            ConfigError: If LISTENKIT_GZIP_LEVEL is not an integer.
        """
        defaults = cls()
        level = os.getenv("LISTENKIT_GZIP_LEVEL", str(defaults.gzip_level))
        try:
            gzip_level = int(level)
        except ValueError:
            raise ConfigError(f"LISTENKIT_GZIP_LEVEL must be an integer, got {level!r}")

        return cls(
            enable_cors=_env_flag("LISTENKIT_CORS", defaults.enable_cors),
            data_field=os.getenv("LISTENKIT_DATA_FIELD", defaults.data_field),
            code_field=os.getenv("LISTENKIT_CODE_FIELD", defaults.code_field),
            message_field=os.getenv("LISTENKIT_MESSAGE_FIELD", defaults.message_field),
            gzip_level=gzip_level,
            strict_gzip_requests=_env_flag("LISTENKIT_STRICT_GZIP", defaults.strict_gzip_requests),
            log_level=os.getenv("LISTENKIT_LOG_LEVEL", defaults.log_level),
            log_format=os.getenv("LISTENKIT_LOG_FORMAT", defaults.log_format),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Fail fast: a bad setting is reported at startup, not on the first
        request that happens to need it.

        Raises:
            ConfigError: Describing the first invalid value.
        """
        self.field_names().validate()

        if not 0 <= self.gzip_level <= 9:
            raise ConfigError(f"gzip_level must be 0-9, got {self.gzip_level}")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")

        if self.log_format not in LOG_FORMATS:
            raise ConfigError(f"log_format must be 'text' or 'json', got {self.log_format!r}")
