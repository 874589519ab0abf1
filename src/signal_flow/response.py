"""Frequency response preview of a channel's filter chain.

Requires numpy (``pip install signal-flow[response]``); it is imported on
first use so the rest of the package works without it.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from signal_flow.biquad import calculate_coefficients
from signal_flow.flow import ProcessingFilter
from signal_flow.models import Biquad, Delay, DiffEq, FilterConfig, Gain
from signal_flow.units import MIN_GAIN_DB, db_to_linear, ms_from_mm, samples_from_ms

if TYPE_CHECKING:
    import numpy as np


def _delay_samples(config: Delay, sample_rate: float) -> float:
    p = config.parameters
    if p.unit == "samples":
        samples = p.delay
    elif p.unit == "mm":
        samples = samples_from_ms(ms_from_mm(p.delay), sample_rate)
    else:
        samples = samples_from_ms(p.delay, sample_rate)
    return samples if p.subsample else float(round(samples))


def _polynomial(coeffs: Sequence[float], z_inv: np.ndarray) -> np.ndarray:
    """Evaluate ``sum(c[k] * z**-k)`` for every point of *z_inv*."""
    import numpy as np

    result = np.zeros_like(z_inv)
    for c in reversed(coeffs):
        result = result * z_inv + c
    return result


def filter_response(config: FilterConfig, freqs: np.ndarray, sample_rate: float) -> np.ndarray:
    """Complex response of one filter at *freqs* (Hz).

    Dynamics, dither, volume, loudness and convolution filters have no
    static response here and evaluate to 1.
    """
    import numpy as np

    w = 2.0 * np.pi * np.asarray(freqs, dtype=float) / sample_rate
    z_inv = np.exp(-1j * w)

    if isinstance(config, Biquad):
        c = calculate_coefficients(config.parameters, sample_rate)
        return _polynomial([c.b0, c.b1, c.b2], z_inv) / _polynomial([1.0, c.a1, c.a2], z_inv)
    if isinstance(config, DiffEq):
        return _polynomial(config.parameters.b, z_inv) / _polynomial(config.parameters.a, z_inv)
    if isinstance(config, Gain):
        p = config.parameters
        factor = p.gain if p.scale == "linear" else db_to_linear(p.gain)
        if p.inverted:
            factor = -factor
        return np.full(w.shape, factor, dtype=complex)
    if isinstance(config, Delay):
        return np.exp(-1j * w * _delay_samples(config, sample_rate))
    return np.ones(w.shape, dtype=complex)


def chain_complex_response(
    filters: Sequence[ProcessingFilter], freqs: np.ndarray, sample_rate: float
) -> np.ndarray:
    import numpy as np

    total = np.ones(np.shape(freqs), dtype=complex)
    for f in filters:
        total = total * filter_response(f.config, freqs, sample_rate)
    return total


def chain_response(
    filters: Sequence[ProcessingFilter], freqs: np.ndarray, sample_rate: float
) -> np.ndarray:
    """Magnitude of the whole chain in dB, floored at ``MIN_GAIN_DB``."""
    import numpy as np

    magnitude = np.abs(chain_complex_response(filters, freqs, sample_rate))
    with np.errstate(divide="ignore"):
        db = 20.0 * np.log10(magnitude)
    return np.maximum(db, MIN_GAIN_DB)


def chain_phase(
    filters: Sequence[ProcessingFilter], freqs: np.ndarray, sample_rate: float
) -> np.ndarray:
    """Phase of the whole chain in degrees."""
    import numpy as np

    return np.degrees(np.angle(chain_complex_response(filters, freqs, sample_rate)))


def log_frequencies(n: int = 200, low: float = 20.0, high: float = 20000.0) -> np.ndarray:
    """*n* log-spaced frequencies between *low* and *high* Hz."""
    import numpy as np

    return np.geomspace(low, high, n)
