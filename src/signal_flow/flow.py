"""Channel graph value types projected from a pipeline config."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from signal_flow.models import (
    ChannelSide,
    DitherParameters,
    FilterConfig,
    RouteEndpoint,
)


class ProcessingFilter(BaseModel):
    name: str
    config: FilterConfig


class ChannelProcessing(BaseModel):
    filters: list[ProcessingFilter] = []


class ProcessingSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    biquad_count: int = 0
    has_delay: bool = False
    has_gain: bool = False
    has_conv: bool = False
    has_compressor: bool = False
    has_dither: bool = False
    has_noise_gate: bool = False
    has_loudness: bool = False


class ChannelNode(BaseModel):
    side: ChannelSide
    device_id: str
    channel_index: int = Field(ge=0)
    label: str
    color: str | None = None
    processing: ChannelProcessing = ChannelProcessing()
    processing_summary: ProcessingSummary = ProcessingSummary()
    # Parameters restored by the dither toggle; written only by inline.toggle_dither.
    last_dither: DitherParameters | None = None

    @property
    def endpoint(self) -> RouteEndpoint:
        return RouteEndpoint(device_id=self.device_id, channel_index=self.channel_index)

    @property
    def filters(self) -> list[ProcessingFilter]:
        return self.processing.filters

    def with_filters(self, filters: list[ProcessingFilter]) -> ChannelNode:
        """Return a copy holding *filters*, with the summary recomputed."""
        return self.model_copy(
            update={
                "processing": ChannelProcessing(filters=filters),
                "processing_summary": processing_summary_from_filters(filters),
            }
        )


class RouteEdge(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: RouteEndpoint = Field(alias="from")
    to: RouteEndpoint
    gain: float = 0.0
    inverted: bool = False
    mute: bool = False


class DeviceGroup(BaseModel):
    id: str
    label: str


class FlowGraph(BaseModel):
    input_groups: list[DeviceGroup] = []
    output_groups: list[DeviceGroup] = []
    inputs: list[ChannelNode] = []
    outputs: list[ChannelNode] = []
    routes: list[RouteEdge] = []

    def nodes(self, side: ChannelSide) -> list[ChannelNode]:
        return self.inputs if side == "input" else self.outputs

    def node(self, side: ChannelSide, channel_index: int) -> ChannelNode | None:
        for n in self.nodes(side):
            if n.channel_index == channel_index:
                return n
        return None


class FlowWarning(str):
    """A structured projection/merge warning that behaves as a plain string."""

    kind: str
    path: str | None

    def __new__(cls, kind: str, message: str, *, path: str | None = None) -> FlowWarning:
        return super().__new__(cls, message)

    def __init__(self, kind: str, message: str, *, path: str | None = None) -> None:
        self.kind = kind
        self.path = path


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def port_key(side: ChannelSide, endpoint: RouteEndpoint) -> str:
    """Key used for per-channel UI metadata: ``"{side}:{device_id}:{index}"``."""
    return f"{side}:{endpoint.device_id}:{endpoint.channel_index}"


def same_endpoint(a: RouteEndpoint, b: RouteEndpoint) -> bool:
    return a.device_id == b.device_id and a.channel_index == b.channel_index


def default_label(side: ChannelSide, channel_index: int) -> str:
    return f"In {channel_index + 1}" if side == "input" else f"Out {channel_index + 1}"


def processing_summary_from_filters(filters: list[ProcessingFilter]) -> ProcessingSummary:
    return summarize_filter_types(f.config.type for f in filters)


def summarize_filter_types(types: Iterable[str]) -> ProcessingSummary:
    """Build a summary from an iterable of filter type names."""
    counts: dict[str, int] = {}
    for filter_type in types:
        counts[filter_type] = counts.get(filter_type, 0) + 1
    return ProcessingSummary(
        biquad_count=counts.get("Biquad", 0),
        has_delay="Delay" in counts,
        has_gain="Gain" in counts,
        has_conv="Conv" in counts,
        has_compressor="Compressor" in counts,
        has_dither="Dither" in counts,
        has_noise_gate="NoiseGate" in counts,
        has_loudness="Loudness" in counts,
    )
