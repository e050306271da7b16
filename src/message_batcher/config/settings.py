"""Options for the message batcher.

Options can be given directly, as a mapping, or read from environment
variables (``MESSAGE_BATCHER_MAX_BATCH_SIZE``, ``MESSAGE_BATCHER_MAX_DELAY_MS``
and ``MESSAGE_BATCHER_MIN_DELAY_MS`` by default).
"""

from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .validation import REQUIRED_OPTIONS, validate_options

DEFAULT_ENV_PREFIX = "MESSAGE_BATCHER_"


def _parse_number(raw: str) -> Union[int, float, str]:
    """Parse an environment value, leaving unparseable text for the validator."""
    text = raw.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return raw


class BatcherOptions(BaseModel):
    """Immutable batcher options. Delays are in milliseconds."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    max_batch_size: int = Field(..., ge=1, description="Largest number of messages released in one batch")
    max_delay_ms: float = Field(..., ge=0, description="Longest time a partial batch is held back")
    min_delay_ms: float = Field(..., ge=0, description="Shortest spacing between consecutive full batches")

    @model_validator(mode="before")
    @classmethod
    def check_options(cls, data: Any) -> Dict[str, Any]:
        """Run the ordered option checks before field validation."""
        return validate_options(data)

    @property
    def max_delay(self) -> float:
        """Maximum delay in seconds."""
        return self.max_delay_ms / 1000.0

    @property
    def min_delay(self) -> float:
        """Minimum delay in seconds."""
        return self.min_delay_ms / 1000.0

    @classmethod
    def from_env(
        cls,
        prefix: str = DEFAULT_ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "BatcherOptions":
        """Build options from environment variables.

        Args:
            prefix: Prefix of the variable names
            environ: Mapping to read instead of ``os.environ``
            **overrides: Option values that take precedence over the environment

        Returns:
            Validated options

        Raises:
            ConfigError: If an option is missing or invalid
        """
        environ = os.environ if environ is None else environ

        data: Dict[str, Any] = {}
        for name in REQUIRED_OPTIONS:
            raw = environ.get(f"{prefix}{name.upper()}")
            if raw is not None:
                data[name] = _parse_number(raw)

        data.update(overrides)
        logger.debug(f"Loaded batcher options from environment: {data}")

        return cls.model_validate(data)
