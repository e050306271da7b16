"""Tests for batcher option validation."""

import math
from decimal import Decimal
from fractions import Fraction

import pytest
from pydantic import ValidationError

from message_batcher import BatcherOptions, ConfigError, MessageBatcher
from message_batcher.config import validate_options


@pytest.mark.parametrize(
    "options",
    [
        {"max_batch_size": 1, "max_delay_ms": 100, "min_delay_ms": 10},
        {"max_batch_size": 10, "max_delay_ms": 0, "min_delay_ms": 0},
        {"max_batch_size": 10, "max_delay_ms": 100, "min_delay_ms": 0},
        {"max_batch_size": 10, "max_delay_ms": 100, "min_delay_ms": 100},
        {"max_batch_size": 10.0, "max_delay_ms": 2.5, "min_delay_ms": 0.5},
    ],
)
def test_valid_options_are_accepted(options):
    parsed = BatcherOptions.model_validate(options)

    assert parsed.max_batch_size == int(options["max_batch_size"])
    assert isinstance(parsed.max_batch_size, int)
    assert parsed.max_delay_ms == options["max_delay_ms"]
    assert parsed.min_delay_ms == options["min_delay_ms"]


@pytest.mark.parametrize(
    "options, option, message",
    [
        ({"max_delay_ms": 100, "min_delay_ms": 10}, "max_batch_size", "Missing required MessageBatcher option: max_batch_size"),
        ({"max_batch_size": 10, "min_delay_ms": 10}, "max_delay_ms", "Missing required MessageBatcher option: max_delay_ms"),
        ({"max_batch_size": 10, "max_delay_ms": 100}, "min_delay_ms", "Missing required MessageBatcher option: min_delay_ms"),
        ({"max_batch_size": "10", "max_delay_ms": 100, "min_delay_ms": 10}, "max_batch_size", "MessageBatcher max_batch_size option must be a number"),
        ({"max_batch_size": True, "max_delay_ms": 100, "min_delay_ms": 10}, "max_batch_size", "MessageBatcher max_batch_size option must be a number"),
        ({"max_batch_size": math.nan, "max_delay_ms": 100, "min_delay_ms": 10}, "max_batch_size", "MessageBatcher max_batch_size option must be a number"),
        ({"max_batch_size": math.inf, "max_delay_ms": 100, "min_delay_ms": 10}, "max_batch_size", "MessageBatcher max_batch_size option must be a finite number"),
        ({"max_batch_size": 2.5, "max_delay_ms": 100, "min_delay_ms": 10}, "max_batch_size", "MessageBatcher max_batch_size option must be an integer"),
        ({"max_batch_size": 0, "max_delay_ms": 100, "min_delay_ms": 10}, "max_batch_size", "MessageBatcher max_batch_size option cannot be less than 1"),
        ({"max_batch_size": 10, "max_delay_ms": None, "min_delay_ms": 0}, "max_delay_ms", "MessageBatcher max_delay_ms option must be a number"),
        ({"max_batch_size": 10, "max_delay_ms": math.inf, "min_delay_ms": 0}, "max_delay_ms", "MessageBatcher max_delay_ms option must be a finite number"),
        ({"max_batch_size": 10, "max_delay_ms": -1, "min_delay_ms": 0}, "max_delay_ms", "MessageBatcher max_delay_ms option cannot be less than 0"),
        ({"max_batch_size": 10, "max_delay_ms": 100, "min_delay_ms": "fast"}, "min_delay_ms", "MessageBatcher min_delay_ms option must be a number"),
        ({"max_batch_size": 10, "max_delay_ms": 100, "min_delay_ms": math.inf}, "min_delay_ms", "MessageBatcher min_delay_ms option must be a finite number"),
        ({"max_batch_size": 10, "max_delay_ms": 100, "min_delay_ms": -1}, "min_delay_ms", "MessageBatcher min_delay_ms option cannot be less than 0"),
        ({"max_batch_size": 10, "max_delay_ms": 10, "min_delay_ms": 100}, "min_delay_ms", "MessageBatcher min_delay_ms option cannot be greater than max_delay_ms"),
    ],
)
def test_invalid_options_are_rejected(options, option, message):
    with pytest.raises(ConfigError) as exc_info:
        BatcherOptions.model_validate(options)

    assert str(exc_info.value) == message
    assert exc_info.value.option == option


def test_checks_run_in_fixed_order():
    # Presence before range, earlier fields before later ones
    with pytest.raises(ConfigError, match="Missing required MessageBatcher option: min_delay_ms"):
        validate_options({"max_batch_size": 0, "max_delay_ms": -1})

    with pytest.raises(ConfigError, match="max_batch_size option cannot be less than 1"):
        validate_options({"max_batch_size": 0, "max_delay_ms": -1, "min_delay_ms": 5})


def test_non_mapping_options_are_rejected():
    with pytest.raises(ConfigError, match="options must be a mapping"):
        validate_options([10, 100, 10])


def test_keyword_construction_uses_same_checks():
    with pytest.raises(ConfigError, match="cannot be greater than max_delay_ms"):
        BatcherOptions(max_batch_size=10, max_delay_ms=10, min_delay_ms=20)


def test_unknown_options_are_ignored():
    options = BatcherOptions.model_validate({"max_batch_size": 3, "max_delay_ms": 50, "min_delay_ms": 5, "extra": "x"})

    assert "extra" not in options.model_dump()


def test_options_are_immutable():
    options = BatcherOptions(max_batch_size=10, max_delay_ms=100, min_delay_ms=10)

    with pytest.raises(ValidationError):
        options.max_batch_size = 20


def test_delays_in_seconds():
    options = BatcherOptions(max_batch_size=10, max_delay_ms=250, min_delay_ms=20)

    assert options.max_delay == pytest.approx(0.25)
    assert options.min_delay == pytest.approx(0.02)


def test_from_env_reads_prefixed_variables():
    environ = {
        "MESSAGE_BATCHER_MAX_BATCH_SIZE": "25",
        "MESSAGE_BATCHER_MAX_DELAY_MS": "500",
        "MESSAGE_BATCHER_MIN_DELAY_MS": "12.5",
    }

    options = BatcherOptions.from_env(environ=environ)

    assert options.max_batch_size == 25
    assert options.max_delay_ms == 500.0
    assert options.min_delay_ms == 12.5


def test_from_env_overrides_and_prefix(monkeypatch):
    monkeypatch.setenv("APP_MAX_BATCH_SIZE", "5")
    monkeypatch.setenv("APP_MAX_DELAY_MS", "100")
    monkeypatch.setenv("APP_MIN_DELAY_MS", "10")

    options = BatcherOptions.from_env(prefix="APP_", max_batch_size=7)

    assert options.max_batch_size == 7
    assert options.max_delay_ms == 100.0


def test_from_env_reports_missing_and_garbage_values():
    with pytest.raises(ConfigError, match="Missing required MessageBatcher option: max_batch_size"):
        BatcherOptions.from_env(environ={})

    environ = {
        "MESSAGE_BATCHER_MAX_BATCH_SIZE": "ten",
        "MESSAGE_BATCHER_MAX_DELAY_MS": "100",
        "MESSAGE_BATCHER_MIN_DELAY_MS": "10",
    }
    with pytest.raises(ConfigError, match="max_batch_size option must be a number"):
        BatcherOptions.from_env(environ=environ)


def test_batcher_construction_fails_on_invalid_options():
    with pytest.raises(ConfigError) as exc_info:
        MessageBatcher(max_batch_size=0, max_delay_ms=100, min_delay_ms=10)

    assert exc_info.value.option == "max_batch_size"


def test_batcher_accepts_mapping_model_and_keywords():
    options = BatcherOptions(max_batch_size=10, max_delay_ms=100, min_delay_ms=10)

    with MessageBatcher(options) as from_model:
        assert from_model.options is options

    with MessageBatcher({"max_batch_size": 4, "max_delay_ms": 50, "min_delay_ms": 5}, min_delay_ms=20) as from_mapping:
        assert from_mapping.options.max_batch_size == 4
        assert from_mapping.options.min_delay_ms == 20.0

    with pytest.raises(ConfigError, match="cannot be greater than max_delay_ms"):
        MessageBatcher(options, min_delay_ms=500)


def test_other_real_number_types_are_accepted():
    options = BatcherOptions.model_validate(
        {"max_batch_size": Decimal("10"), "max_delay_ms": Fraction(5, 2), "min_delay_ms": Decimal("0.5")}
    )

    assert options.max_batch_size == 10
    assert isinstance(options.max_batch_size, int)
    assert options.max_delay_ms == 2.5
    assert options.min_delay_ms == 0.5


@pytest.mark.parametrize("value", [Decimal("NaN"), Decimal("sNaN"), complex(1, 0)])
def test_nan_and_complex_values_are_not_numbers(value):
    with pytest.raises(ConfigError, match="max_delay_ms option must be a number"):
        validate_options({"max_batch_size": 10, "max_delay_ms": value, "min_delay_ms": 0})
