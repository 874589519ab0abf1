"""Filter type registry: placement classes, defaults and short UI text."""

from __future__ import annotations

from pathlib import PureWindowsPath

from signal_flow.models import (
    Biquad,
    BiquadFirstOrder,
    BiquadOrder,
    BiquadQ,
    Compressor,
    CompressorParameters,
    Conv,
    ConvValues,
    Delay,
    DelayParameters,
    DiffEq,
    DiffEqParameters,
    Dither,
    DitherParameters,
    FilterConfig,
    Gain,
    GainParameters,
    LinkwitzTransform,
    Loudness,
    LoudnessParameters,
    NoiseGate,
    NoiseGateParameters,
    Peaking,
    Shelf,
    ShelfFirstOrder,
    Volume,
    VolumeParameters,
)

FILTER_TYPES: tuple[str, ...] = (
    "Biquad",
    "Delay",
    "Gain",
    "Volume",
    "DiffEq",
    "Conv",
    "Compressor",
    "NoiseGate",
    "Loudness",
    "Dither",
)

# At most one instance per channel.
SINGLETON_TYPES = frozenset(
    {"Delay", "Gain", "Volume", "Conv", "Compressor", "NoiseGate", "Loudness", "Dither"}
)

# Many instances per channel, always contiguous.
BLOCK_TYPES = frozenset({"Biquad", "DiffEq"})

OUTPUT_ONLY_TYPES = frozenset({"Conv", "Compressor", "Dither", "NoiseGate", "Loudness"})

INPUT_FILTER_TYPES: tuple[str, ...] = tuple(t for t in FILTER_TYPES if t not in OUTPUT_ONLY_TYPES)
OUTPUT_FILTER_TYPES: tuple[str, ...] = FILTER_TYPES

_DISPLAY_LABELS = {
    "Biquad": "Parametric EQ",
    "Delay": "Delay",
    "Gain": "Gain",
    "Volume": "Volume",
    "DiffEq": "Difference Eq",
    "Conv": "Convolution (FIR)",
    "Compressor": "Compressor",
    "NoiseGate": "Noise Gate",
    "Loudness": "Loudness",
    "Dither": "Dither",
}

_SHORT_LABELS = {
    "Biquad": "EQ",
    "Delay": "DLY",
    "Gain": "GAIN",
    "Volume": "VOL",
    "DiffEq": "DEQ",
    "Conv": "FIR",
    "Compressor": "CMP",
    "NoiseGate": "GATE",
    "Loudness": "LOUD",
    "Dither": "DTH",
}


def filter_type_of(config: FilterConfig) -> str:
    return config.type


def allowed_filter_types(side: str) -> tuple[str, ...]:
    """Filter types that may be placed on a channel of *side*."""
    return INPUT_FILTER_TYPES if side == "input" else OUTPUT_FILTER_TYPES


def default_filter(filter_type: str) -> FilterConfig:
    """Return a fresh filter config with neutral default parameters."""
    if filter_type == "Biquad":
        return Biquad(parameters=Peaking(freq=1000.0, gain=0.0, q=1.0))
    if filter_type == "Delay":
        return Delay(parameters=DelayParameters(delay=0.0, unit="ms", subsample=False))
    if filter_type == "Gain":
        return Gain(parameters=GainParameters(gain=0.0, inverted=False, scale="dB"))
    if filter_type == "Volume":
        return Volume(parameters=VolumeParameters(ramp_time=200.0))
    if filter_type == "DiffEq":
        return DiffEq(parameters=DiffEqParameters(a=[1.0], b=[1.0]))
    if filter_type == "Conv":
        return Conv(parameters=ConvValues(values=[1.0]))
    if filter_type == "Compressor":
        return Compressor(
            parameters=CompressorParameters(
                threshold=-20.0,
                factor=4.0,
                attack=10.0,
                release=100.0,
                makeup_gain=0.0,
                soft_clip=False,
            )
        )
    if filter_type == "NoiseGate":
        return NoiseGate(
            parameters=NoiseGateParameters(
                threshold=-60.0, attack=5.0, release=100.0, attenuation=50.0
            )
        )
    if filter_type == "Loudness":
        return Loudness(
            parameters=LoudnessParameters(reference_level=-25.0, high_boost=5.0, low_boost=10.0)
        )
    if filter_type == "Dither":
        return Dither(parameters=DitherParameters(type="Simple", bits=16))
    raise TypeError(f"Unknown filter type: {filter_type!r}")


def display_name(filter_type: str) -> str:
    try:
        return _DISPLAY_LABELS[filter_type]
    except KeyError:
        raise TypeError(f"Unknown filter type: {filter_type!r}") from None


def short_label(filter_type: str) -> str:
    try:
        return _SHORT_LABELS[filter_type]
    except KeyError:
        raise TypeError(f"Unknown filter type: {filter_type!r}") from None


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


def _num(value: float) -> str:
    return f"{value:g}"


def _signed(value: float) -> str:
    return f"+{value:g}" if value > 0 else f"{value:g}"


def _biquad_summary(params: object) -> str:
    if isinstance(params, Peaking):
        sign = "+" if params.gain >= 0 else ""
        return f"{_num(params.freq)}Hz {sign}{_num(params.gain)}dB Q{_num(params.q)}"
    if isinstance(params, BiquadQ):
        return f"{_num(params.freq)}Hz Q{_num(params.q)}"
    if isinstance(params, BiquadFirstOrder):
        return f"{_num(params.freq)}Hz"
    if isinstance(params, (Shelf, ShelfFirstOrder)):
        return f"{_num(params.freq)}Hz {_signed(params.gain)}dB"
    if isinstance(params, LinkwitzTransform):
        return f"{_num(params.freq_act)}Hz -> {_num(params.freq_target)}Hz"
    if isinstance(params, BiquadOrder):
        return f"{_num(params.freq)}Hz {params.order}th order"
    raise TypeError(f"Unknown biquad parameters: {type(params).__name__}")


def summary(config: FilterConfig) -> str:
    """Return a one-line description of *config* for channel strips."""
    if isinstance(config, Biquad):
        return _biquad_summary(config.parameters)
    if isinstance(config, Delay):
        p = config.parameters
        return f"{_num(p.delay)}{p.unit}" + (" (subsample)" if p.subsample else "")
    if isinstance(config, Gain):
        p = config.parameters
        unit = "x" if p.scale == "linear" else "dB"
        gain = _signed(p.gain) if p.scale == "dB" else _num(p.gain)
        return f"{gain}{unit}" + (" (inverted)" if p.inverted else "")
    if isinstance(config, Volume):
        p = config.parameters
        return f"Ramp: {_num(p.ramp_time)}ms" if p.ramp_time is not None else "Fader control"
    if isinstance(config, DiffEq):
        p = config.parameters
        return f"a[{len(p.a)}] b[{len(p.b)}]"
    if isinstance(config, Conv):
        p = config.parameters
        if isinstance(p, ConvValues):
            return f"{len(p.values)} taps"
        # PureWindowsPath splits on both separators.
        filename = PureWindowsPath(p.filename).name
        channel = getattr(p, "channel", None)
        return f"{filename} (ch{channel})" if channel is not None else filename
    if isinstance(config, Compressor):
        p = config.parameters
        ratio = "inf" if p.factor >= 100 else _num(p.factor)
        return f"{_num(p.threshold)}dB {ratio}:1"
    if isinstance(config, NoiseGate):
        return f"Threshold: {_num(config.parameters.threshold)}dB"
    if isinstance(config, Loudness):
        return f"Ref: {_num(config.parameters.reference_level)}dB"
    if isinstance(config, Dither):
        p = config.parameters
        return f"{p.type} ({p.bits}-bit)"
    raise TypeError(f"Unknown filter config: {type(config).__name__}")
