"""Project a pipeline config into a channel graph.

Filter steps before the ``routing`` mixer step belong to input channels and
steps after it to output channels. Only steps that target exactly one channel
are flattened into that channel's editable filter list; global and
multi-channel steps are reflected in the processing summaries only.

Data-quality problems (dangling filter names, out-of-range channels or
routes) never raise. The offending entry is skipped and reported as a
:class:`FlowWarning`.
"""

from __future__ import annotations

import logging
import re

from signal_flow.filters import OUTPUT_ONLY_TYPES
from signal_flow.flow import (
    ChannelNode,
    ChannelProcessing,
    DeviceGroup,
    FlowGraph,
    FlowWarning,
    ProcessingFilter,
    RouteEdge,
    default_label,
    summarize_filter_types,
)
from signal_flow.models import (
    ROUTING_MIXER_NAME,
    ChannelSide,
    Config,
    FilterStep,
    MixerStep,
    RouteEndpoint,
    SignalFlowMetadata,
    routing_mixer,
    routing_step_index,
    signal_flow_metadata,
)

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_INVALID_ID_CHARS_RE = re.compile(r"[^a-z0-9\-_.]")


def stable_device_id(prefix: str, label: str) -> str:
    """Derive a stable id such as ``in:hw-card-e2x2`` from a device label."""
    normalized = _WHITESPACE_RE.sub("-", label.strip().lower())
    normalized = _INVALID_ID_CHARS_RE.sub("", normalized)
    return f"{prefix}:{normalized or 'default'}"


def device_label(config: Config, side: ChannelSide) -> str:
    dev = config.devices.capture if side == "input" else config.devices.playback
    return dev.device or dev.type or ("Capture" if side == "input" else "Playback")


def device_ids(config: Config) -> tuple[str, str]:
    """Return the ``(input, output)`` device ids for *config*."""
    return (
        stable_device_id("in", device_label(config, "input")),
        stable_device_id("out", device_label(config, "output")),
    )


def _make_nodes(
    side: ChannelSide, device_id: str, count: int, meta: SignalFlowMetadata
) -> list[ChannelNode]:
    nodes = []
    for idx in range(count):
        key = f"{side}:{device_id}:{idx}"
        nodes.append(
            ChannelNode(
                side=side,
                device_id=device_id,
                channel_index=idx,
                label=meta.channel_names.get(key) or default_label(side, idx),
                color=meta.channel_colors.get(key),
                last_dither=meta.last_dither.get(key),
            )
        )
    return nodes


def _project_routes(
    config: Config, in_id: str, out_id: str, warnings: list[FlowWarning]
) -> list[RouteEdge]:
    mixer = routing_mixer(config)
    if mixer is None:
        return []
    n_in = config.devices.capture.channels
    n_out = config.devices.playback.channels
    routes: list[RouteEdge] = []
    for m_idx, mapping in enumerate(mixer.mapping):
        for s_idx, source in enumerate(mapping.sources):
            if not (0 <= source.channel < n_in and 0 <= mapping.dest < n_out):
                warnings.append(
                    FlowWarning(
                        "route_out_of_range",
                        f"Route {source.channel} -> {mapping.dest} is outside channel counts",
                        path=f"mixers.{ROUTING_MIXER_NAME}.mapping[{m_idx}].sources[{s_idx}]",
                    )
                )
                continue
            routes.append(
                RouteEdge(
                    from_=RouteEndpoint(device_id=in_id, channel_index=source.channel),
                    to=RouteEndpoint(device_id=out_id, channel_index=mapping.dest),
                    gain=source.gain,
                    inverted=source.inverted,
                    mute=source.mute,
                )
            )
    return routes


def _structural_warnings(config: Config, routing_idx: int) -> list[FlowWarning]:
    warnings: list[FlowWarning] = []
    if any(isinstance(s, MixerStep) and s.name != ROUTING_MIXER_NAME for s in config.pipeline):
        warnings.append(
            FlowWarning(
                "non_canonical_mixers",
                "Only a single canonical routing mixer is supported",
                path="pipeline",
            )
        )
    if routing_idx < 0:
        warnings.append(
            FlowWarning(
                "missing_routing_mixer_step",
                "No routing mixer step found in pipeline; routes may be incomplete",
                path="pipeline",
            )
        )
    if routing_mixer(config) is None:
        warnings.append(
            FlowWarning(
                "missing_routing_mixer_config",
                "No routing mixer config found; routes will be empty until created",
                path=f"mixers.{ROUTING_MIXER_NAME}",
            )
        )
    return warnings


def is_representable(config: Config) -> bool:
    """True when the pipeline has a routing step and no other mixer steps."""
    if routing_step_index(config) < 0:
        return False
    return not any(
        isinstance(s, MixerStep) and s.name != ROUTING_MIXER_NAME for s in config.pipeline
    )


def project_config(config: Config) -> tuple[FlowGraph, list[FlowWarning]]:
    """Build the channel graph for *config* and collect projection warnings."""
    meta = signal_flow_metadata(config)
    in_id, out_id = device_ids(config)
    n_in = config.devices.capture.channels
    n_out = config.devices.playback.channels

    inputs = _make_nodes("input", in_id, n_in, meta)
    outputs = _make_nodes("output", out_id, n_out, meta)

    routing_idx = routing_step_index(config)
    warnings = _structural_warnings(config, routing_idx)
    routes = _project_routes(config, in_id, out_id, warnings)

    # Per-channel accumulators, indexed by side then channel.
    summary_types: dict[ChannelSide, list[list[str]]] = {
        "input": [[] for _ in range(n_in)],
        "output": [[] for _ in range(n_out)],
    }
    local: dict[ChannelSide, list[list[ProcessingFilter]]] = {
        "input": [[] for _ in range(n_in)],
        "output": [[] for _ in range(n_out)],
    }

    if routing_idx >= 0:
        definitions = config.filters or {}
        for i, step in enumerate(config.pipeline):
            if not isinstance(step, FilterStep):
                continue
            stage: ChannelSide = "input" if i < routing_idx else "output"
            count = n_in if stage == "input" else n_out
            explicit = step.channels or None
            targets = explicit if explicit is not None else list(range(count))
            if explicit is None:
                warnings.append(
                    FlowWarning(
                        "global_filter_step",
                        f"Filter step {step.names} applies to all {stage} channels",
                        path=f"pipeline[{i}]",
                    )
                )
            single = explicit is not None and len(explicit) == 1

            for name in step.names:
                definition = definitions.get(name)
                if definition is None:
                    warnings.append(
                        FlowWarning(
                            "unresolved_filter",
                            f"Filter '{name}' is referenced in pipeline but not defined",
                            path=f"pipeline[{i}]",
                        )
                    )
                    continue
                for ch in targets:
                    if not 0 <= ch < count:
                        warnings.append(
                            FlowWarning(
                                "filter_out_of_range",
                                f"Filter step '{name}' targets channel {ch} outside range",
                                path=f"pipeline[{i}]",
                            )
                        )
                        continue
                    summary_types[stage][ch].append(definition.type)
                    if not single:
                        continue
                    if stage == "input" and definition.type in OUTPUT_ONLY_TYPES:
                        warnings.append(
                            FlowWarning(
                                "output_only_filter",
                                f"{definition.type} filter '{name}' is not editable on an input",
                                path=f"pipeline[{i}]",
                            )
                        )
                        continue
                    if any(f.name == name for f in local[stage][ch]):
                        warnings.append(
                            FlowWarning(
                                "duplicate_filter_reference",
                                f"Filter '{name}' is referenced twice for {stage} {ch}",
                                path=f"pipeline[{i}]",
                            )
                        )
                        continue
                    local[stage][ch].append(ProcessingFilter(name=name, config=definition))

    def _finish(side: ChannelSide, nodes: list[ChannelNode]) -> list[ChannelNode]:
        return [
            n.model_copy(
                update={
                    "processing": ChannelProcessing(filters=local[side][n.channel_index]),
                    "processing_summary": summarize_filter_types(
                        summary_types[side][n.channel_index]
                    ),
                }
            )
            for n in nodes
        ]

    graph = FlowGraph(
        input_groups=[DeviceGroup(id=in_id, label=device_label(config, "input"))],
        output_groups=[DeviceGroup(id=out_id, label=device_label(config, "output"))],
        inputs=_finish("input", inputs),
        outputs=_finish("output", outputs),
        routes=routes,
    )
    for w in warnings:
        logger.debug("%s: %s", w.kind, w)
    return graph, warnings


def build_graph(config: Config) -> FlowGraph:
    """Return the channel graph for *config*, discarding warnings."""
    graph, _warnings = project_config(config)
    return graph
