"""Unit tests for history summary statistics."""

from __future__ import annotations

import math
import struct
from dataclasses import astuple

import pytest

from services.statistics import (
    EmptyInputError,
    HistorySummary,
    maximum,
    mean,
    minimum,
    standard_deviation,
    summarize,
)


def test_summarize_three_samples() -> None:
    summary = summarize([10, 20, 30])

    assert summary.count == 3
    assert summary.mean_value == 20.0
    assert summary.max_value == 30.0
    assert summary.min_value == 10.0
    assert summary.std_dev == math.sqrt(200 / 3)
    assert summary.std_dev == pytest.approx(8.16496580927726)


def test_summarize_single_sample() -> None:
    assert summarize([5]) == HistorySummary(
        count=1, mean_value=5.0, min_value=5.0, max_value=5.0, std_dev=0.0
    )


def test_summarize_empty_raises() -> None:
    with pytest.raises(EmptyInputError):
        summarize([])


@pytest.mark.parametrize("operation", [mean, maximum, minimum, standard_deviation])
def test_each_operation_rejects_empty_input(operation) -> None:
    with pytest.raises(EmptyInputError):
        operation([])


def test_empty_input_error_is_a_value_error() -> None:
    assert issubclass(EmptyInputError, ValueError)


def test_individual_operations_match_summary() -> None:
    samples = [6.2, 7.9, 8.4, 7.1, 6.8]
    summary = summarize(samples)

    assert mean(samples) == summary.mean_value
    assert maximum(samples) == summary.max_value
    assert minimum(samples) == summary.min_value
    assert standard_deviation(samples) == summary.std_dev


def test_population_not_sample_deviation() -> None:
    assert standard_deviation([2, 4, 4, 4, 5, 5, 7, 9]) == 2.0


def test_accepts_generators() -> None:
    summary = summarize(value for value in (1.0, 2.0, 3.0, 4.0))

    assert summary.count == 4
    assert summary.mean_value == 2.5


def test_mean_is_left_to_right_sum() -> None:
    samples = [0.1] * 10
    total = 0.0
    for value in samples:
        total += value

    assert mean(samples) == total / 10


def _bits(summary: HistorySummary) -> bytes:
    return b"".join(struct.pack("<d", float(field)) for field in astuple(summary))


@pytest.mark.parametrize(
    "samples",
    [
        [12.3, 45.6, 78.9, 0.12, 33.3],
        [-0.0, -0.0],
        [-1e-300, 5e-324],
        [0.1] * 7,
    ],
)
def test_repeated_calls_are_bit_identical(samples: list) -> None:
    assert _bits(summarize(samples)) == _bits(summarize(iter(list(samples))))
