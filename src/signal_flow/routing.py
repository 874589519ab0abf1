"""Routing mixer helpers and route edits keyed by ``(from, to)``.

Route edits return the *same* :class:`Config` object when they change
nothing (unknown route, duplicate add, out-of-range endpoint), so callers can
detect a no-op with ``is``.
"""

from __future__ import annotations

import logging
import math

from signal_flow.build import device_ids
from signal_flow.models import (
    ROUTING_MIXER_NAME,
    Config,
    Mixer,
    MixerChannels,
    MixerMapping,
    MixerSource,
    MixerStep,
    RouteEndpoint,
    routing_mixer,
    routing_step_index,
)

logger = logging.getLogger(__name__)


def create_default_routing_mixer(in_channels: int, out_channels: int) -> Mixer:
    """A 1:1 mixer routing channel *n* to channel *n* at 0 dB."""
    return Mixer(
        channels=MixerChannels(in_=in_channels, out=out_channels),
        mapping=[
            MixerMapping(dest=idx, sources=[MixerSource(channel=idx, gain=0.0)])
            for idx in range(min(in_channels, out_channels))
        ],
    )


def normalize_routing_mixer(mixer: Mixer, in_channels: int, out_channels: int) -> Mixer:
    """Clamp a mixer to the given channel counts.

    Out-of-range destinations and sources are dropped, a destination is
    listed once with each source channel at most once (last entry wins),
    non-finite gains become 0 dB, and both levels are sorted.
    """
    by_dest: dict[int, dict[int, MixerSource]] = {}
    for mapping in mixer.mapping:
        if not 0 <= mapping.dest < out_channels:
            continue
        by_channel = by_dest.setdefault(mapping.dest, {})
        for source in mapping.sources:
            if not 0 <= source.channel < in_channels:
                continue
            gain = source.gain if math.isfinite(source.gain) else 0.0
            by_channel[source.channel] = source.model_copy(update={"gain": gain})

    mapping = [
        MixerMapping(dest=dest, sources=[by_dest[dest][ch] for ch in sorted(by_dest[dest])])
        for dest in sorted(by_dest)
        if by_dest[dest]
    ]
    return mixer.model_copy(
        update={"channels": MixerChannels(in_=in_channels, out=out_channels), "mapping": mapping}
    )


def patch_config_with_routing_mixer(config: Config, mixer: Mixer) -> Config:
    """Store *mixer*, normalised to the device channel counts, as the routing mixer."""
    normalized = normalize_routing_mixer(
        mixer, config.devices.capture.channels, config.devices.playback.channels
    )
    return config.model_copy(
        update={"mixers": {**(config.mixers or {}), ROUTING_MIXER_NAME: normalized}}
    )


def ensure_routing_mixer_step(config: Config) -> Config:
    """Append a routing mixer step to the pipeline unless one exists."""
    if routing_step_index(config) >= 0:
        return config
    return config.model_copy(
        update={"pipeline": [*config.pipeline, MixerStep(name=ROUTING_MIXER_NAME)]}
    )


# ---------------------------------------------------------------------------
# Route edits
# ---------------------------------------------------------------------------


def _route_channels(
    config: Config, src: RouteEndpoint, dst: RouteEndpoint
) -> tuple[int, int] | None:
    in_id, out_id = device_ids(config)
    if src.device_id != in_id or dst.device_id != out_id:
        logger.debug("route %s -> %s references another device", src, dst)
        return None
    if src.channel_index >= config.devices.capture.channels:
        return None
    if dst.channel_index >= config.devices.playback.channels:
        return None
    return src.channel_index, dst.channel_index


def _with_mapping(config: Config, mixer: Mixer, mapping: list[MixerMapping]) -> Config:
    updated = mixer.model_copy(update={"mapping": mapping})
    return config.model_copy(
        update={"mixers": {**(config.mixers or {}), ROUTING_MIXER_NAME: updated}}
    )


def _find_source(mixer: Mixer, src: int, dest: int) -> tuple[int, int] | None:
    for m_idx, mapping in enumerate(mixer.mapping):
        if mapping.dest != dest:
            continue
        for s_idx, source in enumerate(mapping.sources):
            if source.channel == src:
                return m_idx, s_idx
    return None


def find_route(config: Config, src: RouteEndpoint, dst: RouteEndpoint) -> MixerSource | None:
    channels = _route_channels(config, src, dst)
    mixer = routing_mixer(config)
    if channels is None or mixer is None:
        return None
    found = _find_source(mixer, *channels)
    if found is None:
        return None
    m_idx, s_idx = found
    return mixer.mapping[m_idx].sources[s_idx]


def add_route(
    config: Config,
    src: RouteEndpoint,
    dst: RouteEndpoint,
    gain: float = 0.0,
    inverted: bool = False,
    mute: bool = False,
) -> Config:
    """Connect *src* to *dst*; creates the routing mixer and step if missing."""
    channels = _route_channels(config, src, dst)
    if channels is None:
        return config
    in_ch, out_ch = channels

    mixer = routing_mixer(config)
    if mixer is None:
        mixer = Mixer(
            channels=MixerChannels(
                in_=config.devices.capture.channels, out=config.devices.playback.channels
            )
        )
    elif _find_source(mixer, in_ch, out_ch) is not None:
        return config

    source = MixerSource(channel=in_ch, gain=gain, inverted=inverted, mute=mute)
    mapping = list(mixer.mapping)
    for m_idx, entry in enumerate(mapping):
        if entry.dest == out_ch:
            mapping[m_idx] = entry.model_copy(update={"sources": [*entry.sources, source]})
            break
    else:
        mapping.append(MixerMapping(dest=out_ch, sources=[source]))
        mapping.sort(key=lambda m: m.dest)
    return ensure_routing_mixer_step(_with_mapping(config, mixer, mapping))


def update_route(
    config: Config,
    src: RouteEndpoint,
    dst: RouteEndpoint,
    *,
    gain: float | None = None,
    inverted: bool | None = None,
    mute: bool | None = None,
) -> Config:
    """Patch gain/inverted/mute of an existing route; ``None`` leaves a field alone."""
    channels = _route_channels(config, src, dst)
    mixer = routing_mixer(config)
    if channels is None or mixer is None:
        return config
    found = _find_source(mixer, *channels)
    if found is None:
        return config
    m_idx, s_idx = found

    patch = {
        k: v
        for k, v in (("gain", gain), ("inverted", inverted), ("mute", mute))
        if v is not None
    }
    if gain is not None and not math.isfinite(gain):
        patch.pop("gain")
    current = mixer.mapping[m_idx].sources[s_idx]
    updated = current.model_copy(update=patch)
    if updated == current:
        return config

    entry = mixer.mapping[m_idx]
    sources = [*entry.sources[:s_idx], updated, *entry.sources[s_idx + 1 :]]
    mapping = [
        *mixer.mapping[:m_idx],
        entry.model_copy(update={"sources": sources}),
        *mixer.mapping[m_idx + 1 :],
    ]
    return _with_mapping(config, mixer, mapping)


def delete_route(config: Config, src: RouteEndpoint, dst: RouteEndpoint) -> Config:
    """Disconnect *src* from *dst*; a destination left without sources is removed."""
    channels = _route_channels(config, src, dst)
    mixer = routing_mixer(config)
    if channels is None or mixer is None:
        return config
    found = _find_source(mixer, *channels)
    if found is None:
        return config
    m_idx, s_idx = found

    entry = mixer.mapping[m_idx]
    sources = [*entry.sources[:s_idx], *entry.sources[s_idx + 1 :]]
    if sources:
        replacement = [entry.model_copy(update={"sources": sources})]
    else:
        replacement = []
    mapping = [*mixer.mapping[:m_idx], *replacement, *mixer.mapping[m_idx + 1 :]]
    return _with_mapping(config, mixer, mapping)
