from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ROUTING_MIXER_NAME = "routing"

SampleFormat = Literal["S16LE", "S24LE", "S24LE3", "S32LE", "FLOAT32LE", "FLOAT64LE"]

FilterType = Literal[
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
]

ChannelSide = Literal["input", "output"]


# ---------------------------------------------------------------------------
# Biquad parameters (discriminated union on "type")
# ---------------------------------------------------------------------------


class BiquadQ(BaseModel):
    type: Literal["Lowpass", "Highpass", "Notch", "Bandpass", "Allpass"]
    freq: float = Field(gt=0)
    q: float = Field(gt=0)


class BiquadFirstOrder(BaseModel):
    type: Literal["LowpassFO", "HighpassFO", "AllpassFO"]
    freq: float = Field(gt=0)


class Peaking(BaseModel):
    type: Literal["Peaking"] = "Peaking"
    freq: float = Field(gt=0)
    gain: float
    q: float = Field(gt=0)


class Shelf(BaseModel):
    type: Literal["Lowshelf", "Highshelf"]
    freq: float = Field(gt=0)
    gain: float
    slope: float = Field(gt=0)


class ShelfFirstOrder(BaseModel):
    type: Literal["LowshelfFO", "HighshelfFO"]
    freq: float = Field(gt=0)
    gain: float


class LinkwitzTransform(BaseModel):
    type: Literal["LinkwitzTransform"] = "LinkwitzTransform"
    freq_act: float = Field(gt=0)
    q_act: float = Field(gt=0)
    freq_target: float = Field(gt=0)
    q_target: float = Field(gt=0)


class BiquadOrder(BaseModel):
    type: Literal[
        "ButterworthLowpass",
        "ButterworthHighpass",
        "LinkwitzRileyLowpass",
        "LinkwitzRileyHighpass",
    ]
    freq: float = Field(gt=0)
    order: Literal[2, 4, 6, 8]


BiquadParameters = Annotated[
    Union[
        BiquadQ,
        BiquadFirstOrder,
        Peaking,
        Shelf,
        ShelfFirstOrder,
        LinkwitzTransform,
        BiquadOrder,
    ],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Convolution parameters (discriminated union on "type")
# ---------------------------------------------------------------------------


class ConvRaw(BaseModel):
    type: Literal["Raw"] = "Raw"
    filename: str = Field(min_length=1)
    format: Literal["TEXT"] | SampleFormat | None = None
    skip_bytes_lines: int | None = Field(default=None, ge=0)
    read_bytes_lines: int | None = Field(default=None, ge=1)


class ConvWav(BaseModel):
    type: Literal["Wav"] = "Wav"
    filename: str = Field(min_length=1)
    channel: int | None = Field(default=None, ge=0)


class ConvValues(BaseModel):
    type: Literal["Values"] = "Values"
    values: list[float] = Field(min_length=1)


ConvParameters = Annotated[Union[ConvRaw, ConvWav, ConvValues], Field(discriminator="type")]


# ---------------------------------------------------------------------------
# Per-type filter parameters
# ---------------------------------------------------------------------------


class DelayParameters(BaseModel):
    delay: float = Field(ge=0)
    unit: Literal["ms", "samples", "mm"] = "ms"
    subsample: bool = False


class GainParameters(BaseModel):
    gain: float
    inverted: bool | None = None
    scale: Literal["dB", "linear"] | None = None


class VolumeParameters(BaseModel):
    fader: str | None = None
    ramp_time: float | None = Field(default=None, ge=0)


class DiffEqParameters(BaseModel):
    a: list[float] = Field(min_length=1)
    b: list[float] = Field(min_length=1)


class CompressorParameters(BaseModel):
    threshold: float = Field(le=0)
    factor: float = Field(ge=1)
    attack: float = Field(ge=0)
    release: float = Field(ge=0)
    makeup_gain: float | None = None
    soft_clip: bool | None = None


class NoiseGateParameters(BaseModel):
    threshold: float
    attack: float = Field(ge=0)
    release: float = Field(ge=0)
    attenuation: float = Field(ge=0)


class LoudnessParameters(BaseModel):
    reference_level: float
    high_boost: float = Field(ge=0, le=20)
    low_boost: float = Field(ge=0, le=20)


DitherType = Literal[
    "Simple",
    "Uniform",
    "Lipshitz441",
    "Fweighted441",
    "Shibata441",
    "Shibata48",
    "ShibataLow441",
    "ShibataLow48",
    "None",
]


class DitherParameters(BaseModel):
    type: DitherType = "Simple"
    bits: int = Field(default=16, ge=1, le=32)
    amplitude: float | None = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Filter configs (discriminated union on "type")
# ---------------------------------------------------------------------------


class Biquad(BaseModel):
    type: Literal["Biquad"] = "Biquad"
    parameters: BiquadParameters


class Delay(BaseModel):
    type: Literal["Delay"] = "Delay"
    parameters: DelayParameters


class Gain(BaseModel):
    type: Literal["Gain"] = "Gain"
    parameters: GainParameters


class Volume(BaseModel):
    type: Literal["Volume"] = "Volume"
    parameters: VolumeParameters = VolumeParameters()


class DiffEq(BaseModel):
    type: Literal["DiffEq"] = "DiffEq"
    parameters: DiffEqParameters


class Conv(BaseModel):
    type: Literal["Conv"] = "Conv"
    parameters: ConvParameters


class Compressor(BaseModel):
    type: Literal["Compressor"] = "Compressor"
    parameters: CompressorParameters


class NoiseGate(BaseModel):
    type: Literal["NoiseGate"] = "NoiseGate"
    parameters: NoiseGateParameters


class Loudness(BaseModel):
    type: Literal["Loudness"] = "Loudness"
    parameters: LoudnessParameters


class Dither(BaseModel):
    type: Literal["Dither"] = "Dither"
    parameters: DitherParameters = DitherParameters()


FilterConfig = Annotated[
    Union[
        Biquad,
        Delay,
        Gain,
        Volume,
        DiffEq,
        Conv,
        Compressor,
        NoiseGate,
        Loudness,
        Dither,
    ],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Devices
# ---------------------------------------------------------------------------


class DeviceConfig(BaseModel):
    """One side of the device section (capture or playback)."""

    model_config = ConfigDict(extra="allow")

    type: str
    channels: int = Field(ge=1)
    device: str | None = None
    format: SampleFormat | None = None


class Devices(BaseModel):
    model_config = ConfigDict(extra="allow")

    samplerate: int = Field(gt=0)
    chunksize: int = Field(gt=0)
    capture: DeviceConfig
    playback: DeviceConfig


# ---------------------------------------------------------------------------
# Mixers
# ---------------------------------------------------------------------------


class MixerSource(BaseModel):
    channel: int
    gain: float = 0.0
    inverted: bool = False
    mute: bool = False


class MixerMapping(BaseModel):
    dest: int
    sources: list[MixerSource] = []


class MixerChannels(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    in_: int = Field(alias="in", ge=1)
    out: int = Field(ge=1)


class Mixer(BaseModel):
    channels: MixerChannels
    mapping: list[MixerMapping] = []
    description: str | None = None


# ---------------------------------------------------------------------------
# Pipeline steps (discriminated union on "type")
# ---------------------------------------------------------------------------


class FilterStep(BaseModel):
    type: Literal["Filter"] = "Filter"
    names: list[str]
    channels: list[int] | None = None  # None = every channel at this point
    description: str | None = None
    bypassed: bool | None = None


class MixerStep(BaseModel):
    type: Literal["Mixer"] = "Mixer"
    name: str
    description: str | None = None
    bypassed: bool | None = None


PipelineStep = Annotated[Union[FilterStep, MixerStep], Field(discriminator="type")]


# ---------------------------------------------------------------------------
# UI metadata (kept in the config, ignored by the engine)
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RouteEndpoint(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    device_id: str
    channel_index: int = Field(ge=0)


class MirrorGroups(_CamelModel):
    input: list[list[RouteEndpoint]] = []
    output: list[list[RouteEndpoint]] = []


class DeqDynamics(_CamelModel):
    enabled: bool = False
    mode: Literal["downward", "upward"] = "downward"
    range_db: float = 6.0
    threshold_db: float = -24.0
    ratio: float = 2.0
    attack_ms: float = 10.0
    release_ms: float = 150.0


class DeqBandSettings(_CamelModel):
    version: Literal[1] = 1
    enabled: bool = True
    biquad: BiquadParameters
    dynamics: DeqDynamics | None = None


class SignalFlowMetadata(_CamelModel):
    channel_names: dict[str, str] = {}
    channel_colors: dict[str, str] = {}
    mirror_groups: MirrorGroups = MirrorGroups()
    deq: dict[str, DeqBandSettings] = {}
    last_dither: dict[str, DitherParameters] = {}


class UiMetadata(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    signal_flow: SignalFlowMetadata | None = None


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


class Config(BaseModel):
    model_config = ConfigDict(extra="allow")

    devices: Devices
    filters: dict[str, FilterConfig] | None = None
    mixers: dict[str, Mixer] | None = None
    pipeline: list[PipelineStep] = []
    title: str | None = None
    description: str | None = None
    ui: UiMetadata | None = None


def routing_mixer(config: Config) -> Mixer | None:
    """Return the canonical routing mixer definition, if any."""
    if not config.mixers:
        return None
    return config.mixers.get(ROUTING_MIXER_NAME)


def routing_step_index(config: Config) -> int:
    """Return the pipeline index of the routing mixer step, or -1."""
    for i, step in enumerate(config.pipeline):
        if isinstance(step, MixerStep) and step.name == ROUTING_MIXER_NAME:
            return i
    return -1


def signal_flow_metadata(config: Config) -> SignalFlowMetadata:
    """Return the config's signal-flow UI metadata (empty when absent)."""
    if config.ui is None or config.ui.signal_flow is None:
        return SignalFlowMetadata()
    return config.ui.signal_flow


def with_signal_flow_metadata(config: Config, metadata: SignalFlowMetadata) -> Config:
    """Return a copy of *config* carrying *metadata* under ``ui.signalFlow``."""
    ui = config.ui or UiMetadata()
    return config.model_copy(update={"ui": ui.model_copy(update={"signal_flow": metadata})})
