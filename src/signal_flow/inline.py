"""Inline gain, delay and dither controls for a single channel node.

Each operation takes a :class:`ChannelNode` and returns a new node with the
filter list and processing summary updated. Operations that would change
nothing return the node they were given.
"""

from __future__ import annotations

import logging
import math

from signal_flow.filter_chain import (
    FilterPlacementError,
    filter_name_base,
    find_filter,
    remove_first_filter_of_type,
    upsert_single_filter_of_type,
)
from signal_flow.flow import ChannelNode, ProcessingFilter
from signal_flow.models import (
    Delay,
    DelayParameters,
    Dither,
    DitherParameters,
    FilterConfig,
    Gain,
    GainParameters,
)
from signal_flow.units import (
    DelayDisplayUnit,
    distance_to_mm,
    gain_db_of,
    mm_from_ms,
    mm_to_distance,
    ms_from_mm,
    ms_from_samples,
)

logger = logging.getLogger(__name__)

# Gains closer to 0 dB than this are treated as "no gain".
GAIN_EPSILON_DB = 1e-4

DEFAULT_DITHER = DitherParameters(type="Simple", bits=16)


def _upsert(node: ChannelNode, config: FilterConfig) -> ChannelNode:
    base = filter_name_base(node.side, node.channel_index, config.type)
    return node.with_filters(upsert_single_filter_of_type(node.filters, config, base))


def _remove(node: ChannelNode, filter_type: str) -> ChannelNode:
    filters = remove_first_filter_of_type(node.filters, filter_type)
    if filters is node.filters:
        return node
    return node.with_filters(filters)


def _config_of(filters: list[ProcessingFilter], filter_type: str) -> FilterConfig | None:
    f = find_filter(filters, filter_type)
    return f.config if f is not None else None


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


def gain_db(node: ChannelNode) -> float:
    config = _config_of(node.filters, "Gain")
    return gain_db_of(config.parameters) if isinstance(config, Gain) else 0.0


def phase_inverted(node: ChannelNode) -> bool:
    config = _config_of(node.filters, "Gain")
    return bool(config.parameters.inverted) if isinstance(config, Gain) else False


def delay_ms(node: ChannelNode, sample_rate: float) -> float:
    config = _config_of(node.filters, "Delay")
    if not isinstance(config, Delay):
        return 0.0
    p = config.parameters
    if p.unit == "samples":
        return ms_from_samples(p.delay, sample_rate)
    if p.unit == "mm":
        return ms_from_mm(p.delay)
    return p.delay


def delay_display_value(node: ChannelNode, unit: DelayDisplayUnit, sample_rate: float) -> float:
    """Return the node's delay expressed in *unit*."""
    ms = delay_ms(node, sample_rate)
    if unit == "ms":
        return ms
    config = _config_of(node.filters, "Delay")
    if isinstance(config, Delay) and config.parameters.unit == "mm":
        mm = config.parameters.delay
    else:
        mm = mm_from_ms(ms)
    return mm_to_distance(mm, unit)


def dither_enabled(node: ChannelNode) -> bool:
    config = _config_of(node.filters, "Dither")
    return isinstance(config, Dither) and config.parameters.type != "None"


def dither_bits(node: ChannelNode) -> int:
    config = _config_of(node.filters, "Dither")
    return config.parameters.bits if isinstance(config, Dither) else DEFAULT_DITHER.bits


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


def apply_gain(node: ChannelNode, gain: float, inverted: bool) -> ChannelNode:
    """Set the channel gain in dB.

    A near-zero gain that is not inverted removes the Gain filter; an
    inverted 0 dB gain is kept since it still flips polarity.
    """
    if not math.isfinite(gain):
        return node
    if abs(gain) < GAIN_EPSILON_DB and not inverted:
        return _remove(node, "Gain")
    params = GainParameters(gain=gain, inverted=True if inverted else None)
    return _upsert(node, Gain(parameters=params))


def apply_delay(node: ChannelNode, value: float, unit: DelayDisplayUnit) -> ChannelNode:
    """Set the channel delay from a value in ms or a distance unit.

    Distances are stored in millimetres. The existing sub-sample flag is
    kept; a new Delay filter defaults to sub-sample precision.
    """
    if not math.isfinite(value) or value < 0:
        return node
    existing = _config_of(node.filters, "Delay")
    subsample = existing.parameters.subsample if isinstance(existing, Delay) else True

    if unit == "ms":
        amount, stored_unit = value, "ms"
    else:
        amount, stored_unit = distance_to_mm(value, unit), "mm"
    if amount <= 0:
        return _remove(node, "Delay")
    params = DelayParameters(delay=amount, unit=stored_unit, subsample=subsample)
    return _upsert(node, Delay(parameters=params))


def change_delay_unit(node: ChannelNode, unit: DelayDisplayUnit, sample_rate: float) -> ChannelNode:
    """Re-express the current delay in *unit* without changing its duration."""
    if _config_of(node.filters, "Delay") is None:
        return node
    ms = delay_ms(node, sample_rate)
    if unit == "ms":
        return apply_delay(node, ms, "ms")
    return apply_delay(node, mm_to_distance(mm_from_ms(ms), unit), unit)


def toggle_dither(node: ChannelNode) -> ChannelNode:
    """Switch output dither off (remembering its settings) or back on."""
    if node.side == "input":
        raise FilterPlacementError("dither is only available on output channels")

    config = _config_of(node.filters, "Dither")
    if isinstance(config, Dither) and config.parameters.type != "None":
        removed = _remove(node, "Dither")
        return removed.model_copy(update={"last_dither": config.parameters})

    last = node.last_dither or DEFAULT_DITHER
    if last.type == "None":
        last = last.model_copy(update={"type": "Simple"})
    logger.debug("restoring dither on %s:%d: %s", node.side, node.channel_index, last)
    return _upsert(node, Dither(parameters=last))


def update_dither_bits(node: ChannelNode, bits: int) -> ChannelNode:
    if node.side == "input":
        raise FilterPlacementError("dither is only available on output channels")
    if not 1 <= bits <= 32:
        logger.debug("ignoring dither bit depth %r", bits)
        return node
    config = _config_of(node.filters, "Dither")
    current = config.parameters if isinstance(config, Dither) else DEFAULT_DITHER
    return _upsert(node, Dither(parameters=current.model_copy(update={"bits": bits})))
