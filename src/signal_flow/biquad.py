"""Biquad coefficients from filter parameters (RBJ audio-EQ cookbook)."""

from __future__ import annotations

import math
from typing import NamedTuple

from signal_flow.models import BiquadFirstOrder, BiquadQ, Peaking, Shelf


class BiquadCoefficients(NamedTuple):
    """Coefficients normalised so that ``a0 == 1``."""

    b0: float
    b1: float
    b2: float
    a1: float
    a2: float


UNITY = BiquadCoefficients(1.0, 0.0, 0.0, 0.0, 0.0)


def calculate_coefficients(params: object, sample_rate: float) -> BiquadCoefficients:
    """Return the second-order section for *params* at *sample_rate*.

    Covers the Q-based types, first-order low/high pass, peaking and
    slope-based shelves. Cascaded designs (Butterworth, Linkwitz-Riley,
    Linkwitz transform) and first-order shelves/allpass evaluate to unity.
    """
    freq = getattr(params, "freq", 1000.0)
    w0 = 2.0 * math.pi * freq / sample_rate
    cos_w0 = math.cos(w0)
    sin_w0 = math.sin(w0)

    if isinstance(params, BiquadQ):
        alpha = sin_w0 / (2.0 * params.q)
        a0, a1, a2 = 1.0 + alpha, -2.0 * cos_w0, 1.0 - alpha
        if params.type == "Lowpass":
            b0, b1, b2 = (1.0 - cos_w0) / 2.0, 1.0 - cos_w0, (1.0 - cos_w0) / 2.0
        elif params.type == "Highpass":
            b0, b1, b2 = (1.0 + cos_w0) / 2.0, -(1.0 + cos_w0), (1.0 + cos_w0) / 2.0
        elif params.type == "Notch":
            b0, b1, b2 = 1.0, -2.0 * cos_w0, 1.0
        elif params.type == "Bandpass":
            b0, b1, b2 = alpha, 0.0, -alpha
        else:  # Allpass
            b0, b1, b2 = 1.0 - alpha, -2.0 * cos_w0, 1.0 + alpha
    elif isinstance(params, BiquadFirstOrder) and params.type != "AllpassFO":
        k = math.tan(w0 / 2.0)
        a0, a1, a2 = 1.0, (k - 1.0) / (k + 1.0), 0.0
        if params.type == "LowpassFO":
            b0, b1, b2 = k / (1.0 + k), k / (1.0 + k), 0.0
        else:
            b0, b1, b2 = 1.0 / (1.0 + k), -1.0 / (1.0 + k), 0.0
    elif isinstance(params, Peaking):
        amp = 10.0 ** (params.gain / 40.0)
        alpha = sin_w0 / (2.0 * params.q)
        b0, b1, b2 = 1.0 + alpha * amp, -2.0 * cos_w0, 1.0 - alpha * amp
        a0, a1, a2 = 1.0 + alpha / amp, -2.0 * cos_w0, 1.0 - alpha / amp
    elif isinstance(params, Shelf):
        amp = 10.0 ** (params.gain / 40.0)
        alpha = sin_w0 / 2.0 * math.sqrt((amp + 1.0 / amp) * (1.0 / params.slope - 1.0) + 2.0)
        two_sqrt_a_alpha = 2.0 * math.sqrt(amp) * alpha
        if params.type == "Lowshelf":
            b0 = amp * ((amp + 1) - (amp - 1) * cos_w0 + two_sqrt_a_alpha)
            b1 = 2 * amp * ((amp - 1) - (amp + 1) * cos_w0)
            b2 = amp * ((amp + 1) - (amp - 1) * cos_w0 - two_sqrt_a_alpha)
            a0 = (amp + 1) + (amp - 1) * cos_w0 + two_sqrt_a_alpha
            a1 = -2 * ((amp - 1) + (amp + 1) * cos_w0)
            a2 = (amp + 1) + (amp - 1) * cos_w0 - two_sqrt_a_alpha
        else:
            b0 = amp * ((amp + 1) + (amp - 1) * cos_w0 + two_sqrt_a_alpha)
            b1 = -2 * amp * ((amp - 1) + (amp + 1) * cos_w0)
            b2 = amp * ((amp + 1) + (amp - 1) * cos_w0 - two_sqrt_a_alpha)
            a0 = (amp + 1) - (amp - 1) * cos_w0 + two_sqrt_a_alpha
            a1 = 2 * ((amp - 1) - (amp + 1) * cos_w0)
            a2 = (amp + 1) - (amp - 1) * cos_w0 - two_sqrt_a_alpha
    else:
        return UNITY

    return BiquadCoefficients(b0 / a0, b1 / a0, b2 / a0, a1 / a0, a2 / a0)


def magnitude_db(coeffs: BiquadCoefficients, freq: float, sample_rate: float) -> float:
    """Magnitude of the section's response at *freq*, in dB."""
    w = 2.0 * math.pi * freq / sample_rate
    z1 = complex(math.cos(w), -math.sin(w))
    z2 = z1 * z1
    num = coeffs.b0 + coeffs.b1 * z1 + coeffs.b2 * z2
    den = 1.0 + coeffs.a1 * z1 + coeffs.a2 * z2
    mag = abs(num) / abs(den)
    return 20.0 * math.log10(mag) if mag > 0 else float("-inf")
