"""Copy/paste payloads for routes, filters and whole channel chains.

Payloads travel as JSON text wrapped in an envelope::

    {"app": "camilladsp-signalflow", "version": 1,
     "payload": {"kind": "filter", "data": {"filterType": "Gain", "config": {...}}}}

Pasting never coerces a payload into a different slot: a wrong kind or a
filter type that does not match the target is reported in the result.
"""

from __future__ import annotations

import logging
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from signal_flow.filter_chain import (
    FilterPlacementError,
    check_chain,
    filter_name_base,
    find_filter,
    replace_block,
    upsert_single_filter_of_type,
)
from signal_flow.filters import BLOCK_TYPES, allowed_filter_types
from signal_flow.flow import ChannelNode, ProcessingFilter, RouteEdge
from signal_flow.models import (
    Config,
    DeqBandSettings,
    FilterConfig,
    RouteEndpoint,
)
from signal_flow.routing import find_route, update_route

logger = logging.getLogger(__name__)

CLIPBOARD_APP = "camilladsp-signalflow"
CLIPBOARD_VERSION = 1


class _ClipData(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RouteClipData(_ClipData):
    gain: float
    inverted: bool
    mute: bool


class FilterClipData(_ClipData):
    """A single filter config, or the whole band block of a Biquad/DiffEq slot."""

    filter_type: str
    config: FilterConfig | None = None
    bands: list[ProcessingFilter] | None = None
    deq: dict[str, DeqBandSettings] | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> FilterClipData:
        if self.bands is not None:
            if self.filter_type not in BLOCK_TYPES:
                raise ValueError(f"bands are only valid for {sorted(BLOCK_TYPES)}")
            if any(b.config.type != self.filter_type for b in self.bands):
                raise ValueError(f"every band must be a {self.filter_type} filter")
        elif self.config is None:
            raise ValueError("a filter clip needs either config or bands")
        elif self.config.type != self.filter_type:
            raise ValueError(f"config type {self.config.type} != {self.filter_type}")
        return self


class ChannelClipData(_ClipData):
    filters: list[ProcessingFilter]


class RouteClip(BaseModel):
    kind: Literal["route"] = "route"
    data: RouteClipData


class FilterClip(BaseModel):
    kind: Literal["filter"] = "filter"
    data: FilterClipData


class ChannelClip(BaseModel):
    kind: Literal["channel"] = "channel"
    data: ChannelClipData


ClipboardPayload = Annotated[Union[RouteClip, FilterClip, ChannelClip], Field(discriminator="kind")]


class ClipboardEnvelope(BaseModel):
    app: Literal["camilladsp-signalflow"] = CLIPBOARD_APP
    version: Literal[1] = CLIPBOARD_VERSION
    payload: ClipboardPayload


PasteStatus = Literal["applied", "empty", "kind_mismatch", "type_mismatch", "no_target"]


class PasteResult(BaseModel):
    """Outcome of a paste; ``node``/``config`` are set only when applied."""

    status: PasteStatus
    node: ChannelNode | None = None
    config: Config | None = None
    deq: dict[str, DeqBandSettings] = {}

    @property
    def applied(self) -> bool:
        return self.status == "applied"


# ---------------------------------------------------------------------------
# Copy
# ---------------------------------------------------------------------------


def copy_route(route: RouteEdge) -> RouteClip:
    return RouteClip(data=RouteClipData(gain=route.gain, inverted=route.inverted, mute=route.mute))


def copy_filter(
    node: ChannelNode,
    filter_type: str,
    deq: dict[str, DeqBandSettings] | None = None,
) -> FilterClip | None:
    """Copy the node's *filter_type* slot, or ``None`` when the slot is empty.

    Block types copy every band; for DiffEq the editor settings of those
    bands are taken from *deq*.
    """
    if filter_type in BLOCK_TYPES:
        bands = [f for f in node.filters if f.config.type == filter_type]
        if not bands:
            return None
        settings = None
        if filter_type == "DiffEq" and deq:
            settings = {b.name: deq[b.name] for b in bands if b.name in deq}
        return FilterClip(data=FilterClipData(filter_type=filter_type, bands=bands, deq=settings))

    found = find_filter(node.filters, filter_type)
    if found is None:
        return None
    return FilterClip(data=FilterClipData(filter_type=filter_type, config=found.config))


def copy_channel(node: ChannelNode) -> ChannelClip:
    return ChannelClip(data=ChannelClipData(filters=list(node.filters)))


# ---------------------------------------------------------------------------
# Text round trip
# ---------------------------------------------------------------------------


def serialize_clipboard(clip: RouteClip | FilterClip | ChannelClip) -> str:
    envelope = ClipboardEnvelope(payload=clip)
    return envelope.model_dump_json(by_alias=True, exclude_none=True)


def parse_clipboard(text: str) -> RouteClip | FilterClip | ChannelClip | None:
    """Parse clipboard text; anything that is not a valid envelope gives ``None``."""
    try:
        envelope = ClipboardEnvelope.model_validate_json(text)
    except ValidationError as exc:
        logger.debug("ignoring clipboard text: %d validation error(s)", exc.error_count())
        return None
    return envelope.payload


# ---------------------------------------------------------------------------
# Paste
# ---------------------------------------------------------------------------


def paste_filter(
    node: ChannelNode,
    clip: RouteClip | FilterClip | ChannelClip | None,
    slot_type: str,
) -> PasteResult:
    """Paste a filter clip into the node's *slot_type* slot.

    A block slot takes the clip's bands in place of its current block. Any
    other slot replaces the existing filter of that type (keeping its name)
    or appends a new one.
    """
    if clip is None:
        return PasteResult(status="empty")
    if not isinstance(clip, FilterClip):
        return PasteResult(status="kind_mismatch")
    data = clip.data
    if data.filter_type != slot_type or slot_type not in allowed_filter_types(node.side):
        return PasteResult(status="type_mismatch")

    if slot_type in BLOCK_TYPES:
        if data.bands is None:
            return PasteResult(status="type_mismatch")
        filters = replace_block(node.filters, slot_type, data.bands)
        return PasteResult(status="applied", node=node.with_filters(filters), deq=data.deq or {})

    if data.config is None:
        return PasteResult(status="type_mismatch")
    base = filter_name_base(node.side, node.channel_index, slot_type)
    filters = upsert_single_filter_of_type(node.filters, data.config, base)
    return PasteResult(status="applied", node=node.with_filters(filters))


def paste_channel(
    node: ChannelNode, clip: RouteClip | FilterClip | ChannelClip | None
) -> PasteResult:
    """Replace the node's whole chain with a copied channel chain."""
    if clip is None:
        return PasteResult(status="empty")
    if not isinstance(clip, ChannelClip):
        return PasteResult(status="kind_mismatch")
    try:
        check_chain(clip.data.filters, node.side)
    except FilterPlacementError as exc:
        logger.debug("channel clip rejected for %s %d: %s", node.side, node.channel_index, exc)
        return PasteResult(status="type_mismatch")
    return PasteResult(status="applied", node=node.with_filters(list(clip.data.filters)))


def paste_route(
    config: Config,
    src: RouteEndpoint,
    dst: RouteEndpoint,
    clip: RouteClip | FilterClip | ChannelClip | None,
) -> PasteResult:
    """Apply copied gain/inverted/mute to the existing route ``src -> dst``."""
    if clip is None:
        return PasteResult(status="empty")
    if not isinstance(clip, RouteClip):
        return PasteResult(status="kind_mismatch")
    if find_route(config, src, dst) is None:
        return PasteResult(status="no_target")
    updated = update_route(
        config, src, dst, gain=clip.data.gain, inverted=clip.data.inverted, mute=clip.data.mute
    )
    return PasteResult(status="applied", config=updated)
