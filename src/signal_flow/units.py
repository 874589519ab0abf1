"""Unit conversions for delay, gain and dither controls."""

from __future__ import annotations

import math
from typing import Literal

from signal_flow.models import GainParameters

DistanceUnit = Literal["ft", "in", "cm", "m"]
DelayDisplayUnit = Literal["ms", "ft", "in", "cm", "m"]

SPEED_OF_SOUND_MM_PER_MS = 343.0
MM_PER_IN = 25.4
MM_PER_FT = 12 * MM_PER_IN
MM_PER_CM = 10.0
MM_PER_M = 1000.0

MIN_GAIN_DB = -120.0

_MM_PER_UNIT: dict[str, float] = {
    "ft": MM_PER_FT,
    "in": MM_PER_IN,
    "cm": MM_PER_CM,
    "m": MM_PER_M,
}


# ---------------------------------------------------------------------------
# Delay
# ---------------------------------------------------------------------------


def distance_to_mm(value: float, unit: DistanceUnit) -> float:
    return value * _MM_PER_UNIT.get(unit, 1.0)


def mm_to_distance(mm: float, unit: DistanceUnit) -> float:
    return mm / _MM_PER_UNIT.get(unit, 1.0)


def ms_from_samples(samples: float, sample_rate: float) -> float:
    """Convert a sample count to milliseconds (0 for a non-positive rate)."""
    if not math.isfinite(sample_rate) or sample_rate <= 0:
        return 0.0
    return samples * 1000.0 / sample_rate


def samples_from_ms(ms: float, sample_rate: float) -> float:
    if not math.isfinite(sample_rate) or sample_rate <= 0:
        return 0.0
    return ms * sample_rate / 1000.0


def mm_from_ms(ms: float) -> float:
    return ms * SPEED_OF_SOUND_MM_PER_MS


def ms_from_mm(mm: float) -> float:
    return mm / SPEED_OF_SOUND_MM_PER_MS


# ---------------------------------------------------------------------------
# Gain
# ---------------------------------------------------------------------------


def db_to_linear(db: float) -> float:
    return 10.0 ** (db / 20.0)


def linear_to_db(linear: float) -> float:
    """Convert a linear factor to dB, clamping non-positive values to the floor."""
    if linear <= 0:
        return MIN_GAIN_DB
    return 20.0 * math.log10(linear)


def gain_db_of(params: GainParameters) -> float:
    """Return the gain of *params* in dB regardless of its scale."""
    if params.scale == "linear":
        return linear_to_db(params.gain)
    return params.gain


# ---------------------------------------------------------------------------
# Dither
# ---------------------------------------------------------------------------


def dither_lsb_db(bits: int) -> float:
    """Level of one LSB relative to full scale for a *bits*-deep target."""
    return -20.0 * math.log10(2.0) * bits
