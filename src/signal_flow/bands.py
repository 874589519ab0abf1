"""EQ (Biquad) and dynamic-EQ (DiffEq) band views of a channel's filter block."""

from __future__ import annotations

from pydantic import BaseModel

from signal_flow.biquad import calculate_coefficients
from signal_flow.filter_chain import block_filter_name, ensure_unique_name, replace_block
from signal_flow.flow import ChannelNode, ProcessingFilter
from signal_flow.models import (
    Biquad,
    BiquadParameters,
    DeqBandSettings,
    DeqDynamics,
    DiffEq,
    DiffEqParameters,
    Peaking,
    Shelf,
    ShelfFirstOrder,
)

DEFAULT_DEQ_BAND = Peaking(freq=1000.0, gain=0.0, q=1.0)


class EqBand(BaseModel):
    id: str
    enabled: bool = True
    parameters: BiquadParameters


class DeqBand(BaseModel):
    id: str
    enabled: bool = True
    parameters: BiquadParameters
    dynamics: DeqDynamics = DeqDynamics()


def _normalize_band_ids(
    node: ChannelNode, filter_type: str, band_ids: list[str]
) -> list[str]:
    """Keep ids already present on the node; give every other band a fresh name."""
    taken = {f.name for f in node.filters}
    used: set[str] = set()
    result: list[str] = []
    for index, band_id in enumerate(band_ids):
        if band_id in taken and band_id not in used:
            name = band_id
        else:
            base = block_filter_name(node.side, node.channel_index, filter_type, index)
            name = ensure_unique_name(base, taken | used)
        used.add(name)
        result.append(name)
    return result


# ---------------------------------------------------------------------------
# Parametric EQ
# ---------------------------------------------------------------------------


def build_eq_bands(filters: list[ProcessingFilter]) -> list[EqBand]:
    return [
        EqBand(id=f.name, parameters=f.config.parameters)
        for f in filters
        if isinstance(f.config, Biquad)
    ]


def merge_eq_bands(node: ChannelNode, bands: list[EqBand]) -> list[ProcessingFilter]:
    """Return the node's filters with its Biquad block replaced by *bands*."""
    names = _normalize_band_ids(node, "Biquad", [b.id for b in bands])
    block = [
        ProcessingFilter(name=name, config=Biquad(parameters=band.parameters))
        for name, band in zip(names, bands)
    ]
    return replace_block(node.filters, "Biquad", block)


# ---------------------------------------------------------------------------
# Dynamic EQ
# ---------------------------------------------------------------------------


def build_deq_bands(
    filters: list[ProcessingFilter], settings: dict[str, DeqBandSettings]
) -> list[DeqBand]:
    """One band per DiffEq filter, with editor settings looked up by filter name."""
    bands: list[DeqBand] = []
    for f in filters:
        if not isinstance(f.config, DiffEq):
            continue
        s = settings.get(f.name)
        if s is None:
            bands.append(DeqBand(id=f.name, parameters=DEFAULT_DEQ_BAND))
        else:
            bands.append(
                DeqBand(
                    id=f.name,
                    enabled=s.enabled,
                    parameters=s.biquad,
                    dynamics=s.dynamics or DeqDynamics(),
                )
            )
    return bands


def deq_band_to_diffeq(band: DeqBand, sample_rate: float) -> DiffEq:
    if not band.enabled:
        return DiffEq(parameters=DiffEqParameters(a=[1.0], b=[1.0]))
    c = calculate_coefficients(band.parameters, sample_rate)
    return DiffEq(parameters=DiffEqParameters(a=[1.0, c.a1, c.a2], b=[c.b0, c.b1, c.b2]))


def deq_band_settings(band: DeqBand) -> DeqBandSettings:
    return DeqBandSettings(enabled=band.enabled, biquad=band.parameters, dynamics=band.dynamics)


def merge_deq_bands(
    node: ChannelNode, bands: list[DeqBand], sample_rate: float
) -> tuple[list[ProcessingFilter], list[DeqBand]]:
    """Replace the node's DiffEq block; also return the bands under their final ids."""
    names = _normalize_band_ids(node, "DiffEq", [b.id for b in bands])
    named = [band.model_copy(update={"id": name}) for name, band in zip(names, bands)]
    block = [ProcessingFilter(name=b.id, config=deq_band_to_diffeq(b, sample_rate)) for b in named]
    return replace_block(node.filters, "DiffEq", block), named


def apply_dynamics_extreme(band: DeqBand) -> BiquadParameters:
    """Band parameters at full dynamic range (for drawing the response envelope)."""
    params = band.parameters
    if not band.dynamics.enabled or not isinstance(params, (Peaking, Shelf, ShelfFirstOrder)):
        return params
    delta = band.dynamics.range_db if band.dynamics.mode == "upward" else -band.dynamics.range_db
    return params.model_copy(update={"gain": params.gain + delta})
