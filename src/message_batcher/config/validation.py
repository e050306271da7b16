"""Validation of message batcher options.

Options are checked in a fixed order so the reported error is stable:
presence of every required option first, then each option's type and range,
then the constraints between options.
"""

from __future__ import annotations

import math
import numbers
from decimal import Decimal
from typing import Any, Dict, Mapping

from ..errors import ConfigError

REQUIRED_OPTIONS = ("max_batch_size", "max_delay_ms", "min_delay_ms")

# Lower bound per option
_MINIMUMS = {
    "max_batch_size": 1,
    "max_delay_ms": 0,
    "min_delay_ms": 0,
}


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (numbers.Real, Decimal)):
        return False
    try:
        return not math.isnan(value)
    except ValueError:
        # Signaling NaN decimals refuse float conversion
        return False


def _validate_number(name: str, value: Any) -> float:
    if not _is_number(value):
        raise ConfigError(f"MessageBatcher {name} option must be a number", option=name)

    if math.isinf(value):
        raise ConfigError(f"MessageBatcher {name} option must be a finite number", option=name)

    if name == "max_batch_size" and value != int(value):
        raise ConfigError(f"MessageBatcher {name} option must be an integer", option=name)

    minimum = _MINIMUMS[name]
    if value < minimum:
        raise ConfigError(f"MessageBatcher {name} option cannot be less than {minimum}", option=name)

    return value


def validate_options(options: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate raw batcher options.

    Args:
        options: Mapping holding ``max_batch_size``, ``max_delay_ms`` and
            ``min_delay_ms``. Other keys are passed through untouched.

    Returns:
        A copy of the options with normalised values

    Raises:
        ConfigError: On the first violated rule
    """
    if not isinstance(options, Mapping):
        raise ConfigError("MessageBatcher options must be a mapping")

    for name in REQUIRED_OPTIONS:
        if name not in options:
            raise ConfigError(f"Missing required MessageBatcher option: {name}", option=name)

    validated = dict(options)
    validated["max_batch_size"] = int(_validate_number("max_batch_size", options["max_batch_size"]))
    validated["max_delay_ms"] = float(_validate_number("max_delay_ms", options["max_delay_ms"]))
    validated["min_delay_ms"] = float(_validate_number("min_delay_ms", options["min_delay_ms"]))

    if validated["min_delay_ms"] > validated["max_delay_ms"]:
        raise ConfigError("MessageBatcher min_delay_ms option cannot be greater than max_delay_ms", option="min_delay_ms")

    return validated
