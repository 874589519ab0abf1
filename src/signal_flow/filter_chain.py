"""Pure edits on a channel's ordered filter list.

Every function takes a list of :class:`ProcessingFilter` and returns a new
list; the input is never mutated. ``remove_first_filter_of_type`` returns the
very same list object when nothing matched so callers can skip redundant
downstream updates with an identity check.
"""

from __future__ import annotations

from collections.abc import Iterable

from signal_flow.filters import BLOCK_TYPES, OUTPUT_ONLY_TYPES, SINGLETON_TYPES
from signal_flow.flow import ProcessingFilter
from signal_flow.models import ChannelSide, FilterConfig

_BLOCK_NAME_TAGS = {"Biquad": "biquad", "DiffEq": "deq"}


def ensure_unique_name(base: str, taken: Iterable[str]) -> str:
    """Return *base*, or ``base-1``, ``base-2``... whichever is first free.

    At most ``len(taken) + 1`` candidates are tried, one of which is always
    free.
    """
    taken = set(taken)
    if base not in taken:
        return base
    for attempt in range(1, len(taken) + 2):
        candidate = f"{base}-{attempt}"
        if candidate not in taken:
            return candidate
    raise RuntimeError(f"no free name for {base!r}")  # pragma: no cover


def filter_name_base(side: ChannelSide, channel_index: int, filter_type: str) -> str:
    """Base name for a singleton filter, e.g. ``i0_gain`` or ``o3_dither``."""
    return f"{side[0]}{channel_index}_{filter_type.lower()}"


def block_filter_name(side: ChannelSide, channel_index: int, filter_type: str, index: int) -> str:
    """Base name for the *index*-th band of a Biquad/DiffEq block."""
    tag = _BLOCK_NAME_TAGS.get(filter_type, filter_type.lower())
    return f"sf-{side}-ch{channel_index + 1}-{tag}-{index}"


def find_filter(filters: list[ProcessingFilter], filter_type: str) -> ProcessingFilter | None:
    for f in filters:
        if f.config.type == filter_type:
            return f
    return None


def upsert_single_filter_of_type(
    filters: list[ProcessingFilter], config: FilterConfig, name_base: str
) -> list[ProcessingFilter]:
    """Replace the config of the first filter of ``config.type``, or append one.

    A replaced entry keeps its name and position. A new entry is named from
    *name_base* via :func:`ensure_unique_name`.
    """
    for i, f in enumerate(filters):
        if f.config.type == config.type:
            return [*filters[:i], ProcessingFilter(name=f.name, config=config), *filters[i + 1 :]]
    name = ensure_unique_name(name_base, (f.name for f in filters))
    return [*filters, ProcessingFilter(name=name, config=config)]


def remove_first_filter_of_type(
    filters: list[ProcessingFilter], filter_type: str
) -> list[ProcessingFilter]:
    for i, f in enumerate(filters):
        if f.config.type == filter_type:
            return [*filters[:i], *filters[i + 1 :]]
    return filters


def find_block(filters: list[ProcessingFilter], filter_type: str) -> tuple[int, int] | None:
    """Return the inclusive ``(start, end)`` index range of *filter_type* entries."""
    indices = [i for i, f in enumerate(filters) if f.config.type == filter_type]
    if not indices:
        return None
    return indices[0], indices[-1]


def replace_block(
    filters: list[ProcessingFilter],
    filter_type: str,
    next_block: list[ProcessingFilter],
) -> list[ProcessingFilter]:
    """Splice *next_block* over the existing *filter_type* block.

    Filters before and after the block keep their positions; with no
    existing block the new entries are appended. An incoming entry whose name
    clashes with a filter outside the block, or with an earlier incoming
    entry, is renamed.
    """
    block = find_block(filters, filter_type)
    if block is None:
        before, after = list(filters), []
    else:
        start, end = block
        before, after = filters[:start], filters[end + 1 :]

    # Entries inside the old range that are not of filter_type are kept after it.
    inside = [] if block is None else filters[block[0] : block[1] + 1]
    stray = [f for f in inside if f.config.type != filter_type]

    taken = {f.name for f in (*before, *stray, *after)}
    placed: list[ProcessingFilter] = []
    for f in next_block:
        if f.name in taken:
            f = f.model_copy(update={"name": ensure_unique_name(f.name, taken)})
        taken.add(f.name)
        placed.append(f)
    return [*before, *placed, *stray, *after]


# ---------------------------------------------------------------------------
# Placement rules
# ---------------------------------------------------------------------------


class FilterPlacementError(ValueError):
    """A filter chain breaks a per-channel placement rule."""


def check_chain(filters: list[ProcessingFilter], side: ChannelSide) -> None:
    """Raise :class:`FilterPlacementError` unless *filters* is a valid chain for *side*.

    Names must be unique, singleton types may appear once, block types must
    be contiguous and output-only types are rejected on input channels.
    """
    seen_names: set[str] = set()
    seen_types: set[str] = set()
    for f in filters:
        filter_type = f.config.type
        if f.name in seen_names:
            raise FilterPlacementError(f"duplicate filter name {f.name!r}")
        seen_names.add(f.name)
        if side == "input" and filter_type in OUTPUT_ONLY_TYPES:
            raise FilterPlacementError(f"{filter_type} filter {f.name!r} is output-only")
        if filter_type in SINGLETON_TYPES and filter_type in seen_types:
            raise FilterPlacementError(f"more than one {filter_type} filter on one channel")
        seen_types.add(filter_type)

    for filter_type in sorted(BLOCK_TYPES):
        block = find_block(filters, filter_type)
        if block is None:
            continue
        start, end = block
        if any(f.config.type != filter_type for f in filters[start : end + 1]):
            raise FilterPlacementError(f"{filter_type} filters are not contiguous")
