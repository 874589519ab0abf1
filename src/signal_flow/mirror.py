"""Mirror groups: channels on one side that share their label and color.

Groups are stored under ``ui.signalFlow.mirrorGroups``. A group is a set of
endpoints kept in canonical (device id, channel index) order, and an
endpoint belongs to at most one group per side. Only settings are
mirrored, never filter chains.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from signal_flow.flow import default_label, port_key
from signal_flow.models import (
    ChannelSide,
    Config,
    MirrorGroups,
    RouteEndpoint,
    signal_flow_metadata,
    with_signal_flow_metadata,
)

_HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


def _sort_key(endpoint: RouteEndpoint) -> tuple[str, int]:
    return endpoint.device_id, endpoint.channel_index


def normalize_hex_color(value: str) -> str:
    """Lower-case ``#RRGGBB`` colors; anything else is only trimmed."""
    trimmed = value.strip()
    if _HEX_COLOR_RE.match(trimmed):
        return trimmed.lower()
    return trimmed


def set_mirror_members(
    groups: MirrorGroups, side: ChannelSide, members: Iterable[RouteEndpoint]
) -> MirrorGroups:
    """Make *members* one mirror group on *side*.

    The members are taken out of any group they were in before; groups left
    with fewer than two members disappear. Passing fewer than two members
    therefore just unlinks them.
    """
    wanted = sorted(set(members), key=_sort_key)
    next_groups: list[list[RouteEndpoint]] = []
    for group in getattr(groups, side):
        remaining = [m for m in group if m not in wanted]
        if len(remaining) >= 2:
            next_groups.append(sorted(remaining, key=_sort_key))
    if len(wanted) >= 2:
        next_groups.append(wanted)
    next_groups.sort(key=lambda g: _sort_key(g[0]))
    return groups.model_copy(update={side: next_groups})


def mirror_peers(
    groups: MirrorGroups, side: ChannelSide, endpoint: RouteEndpoint
) -> list[RouteEndpoint]:
    """Other members of *endpoint*'s group (empty when it is not mirrored)."""
    for group in getattr(groups, side):
        if endpoint in group:
            return [m for m in group if m != endpoint]
    return []


def set_mirror_group(
    config: Config, side: ChannelSide, members: Iterable[RouteEndpoint]
) -> Config:
    meta = signal_flow_metadata(config)
    groups = set_mirror_members(meta.mirror_groups, side, members)
    return with_signal_flow_metadata(config, meta.model_copy(update={"mirror_groups": groups}))


def set_channel_label(
    config: Config, side: ChannelSide, endpoint: RouteEndpoint, label: str
) -> Config:
    """Rename a channel and its mirror peers.

    A blank label, or one equal to a channel's default (``In 1``, ...),
    removes the stored name so the default is shown.
    """
    meta = signal_flow_metadata(config)
    names = dict(meta.channel_names)
    trimmed = label.strip()
    for target in (endpoint, *mirror_peers(meta.mirror_groups, side, endpoint)):
        key = port_key(side, target)
        if not trimmed or trimmed == default_label(side, target.channel_index):
            names.pop(key, None)
        else:
            names[key] = trimmed
    return with_signal_flow_metadata(config, meta.model_copy(update={"channel_names": names}))


def set_channel_color(
    config: Config, side: ChannelSide, endpoint: RouteEndpoint, color: str
) -> Config:
    """Color a channel and its mirror peers; a blank color clears it."""
    meta = signal_flow_metadata(config)
    colors = dict(meta.channel_colors)
    normalized = normalize_hex_color(color)
    for target in (endpoint, *mirror_peers(meta.mirror_groups, side, endpoint)):
        key = port_key(side, target)
        if normalized:
            colors[key] = normalized
        else:
            colors.pop(key, None)
    return with_signal_flow_metadata(config, meta.model_copy(update={"channel_colors": colors}))
