"""Merge an edited channel graph back into a pipeline config."""

from __future__ import annotations

import logging

from signal_flow.build import project_config
from signal_flow.filter_chain import check_chain, ensure_unique_name
from signal_flow.flow import (
    ChannelNode,
    FlowGraph,
    FlowWarning,
    ProcessingFilter,
    RouteEdge,
    default_label,
    port_key,
)
from signal_flow.mirror import set_channel_color, set_channel_label
from signal_flow.models import (
    ROUTING_MIXER_NAME,
    ChannelSide,
    Config,
    DeqBandSettings,
    FilterConfig,
    FilterStep,
    Mixer,
    MixerChannels,
    MixerMapping,
    MixerSource,
    MixerStep,
    PipelineStep,
    SignalFlowMetadata,
    routing_step_index,
    signal_flow_metadata,
    with_signal_flow_metadata,
)

logger = logging.getLogger(__name__)


def _is_single_channel_step(step: PipelineStep) -> bool:
    return isinstance(step, FilterStep) and step.channels is not None and len(step.channels) == 1


def _build_routing_mixer(
    routes: list[RouteEdge],
    in_id: str,
    out_id: str,
    n_in: int,
    n_out: int,
    warnings: list[FlowWarning],
) -> Mixer:
    by_dest: dict[int, list[MixerSource]] = {}
    for i, route in enumerate(routes):
        if route.from_.device_id != in_id or route.to.device_id != out_id:
            warnings.append(
                FlowWarning(
                    "route_wrong_device",
                    "Route references a non-active device group; it will be ignored",
                    path=f"routes[{i}]",
                )
            )
            continue
        src, dest = route.from_.channel_index, route.to.channel_index
        if not (0 <= src < n_in and 0 <= dest < n_out):
            warnings.append(
                FlowWarning(
                    "route_out_of_range",
                    f"Route {src} -> {dest} is outside current channel counts; it will be ignored",
                    path=f"routes[{i}]",
                )
            )
            continue
        by_dest.setdefault(dest, []).append(
            MixerSource(channel=src, gain=route.gain, inverted=route.inverted, mute=route.mute)
        )
    mapping = [MixerMapping(dest=d, sources=by_dest[d]) for d in sorted(by_dest)]
    return Mixer(channels=MixerChannels(in_=n_in, out=n_out), mapping=mapping)


def _emit_steps(
    nodes: list[ChannelNode],
    prior: dict[str, FilterStep],
    definitions: dict[str, FilterConfig],
    emitted: dict[str, FilterConfig],
) -> list[PipelineStep]:
    """One single-channel step per local filter, recording definitions as it goes.

    A name already emitted for another channel with a different config is
    renamed so the two channels do not share one definition.
    """
    steps: list[PipelineStep] = []
    for node in nodes:
        for f in node.filters:
            name = f.name
            if name in emitted and emitted[name] != f.config:
                name = ensure_unique_name(name, set(definitions) | set(emitted))
                logger.debug("renamed shared filter %s to %s", f.name, name)
            emitted[name] = f.config
            definitions[name] = f.config
            old = prior.get(f.name)
            steps.append(
                FilterStep(
                    names=[name],
                    channels=[node.channel_index],
                    description=old.description if old else None,
                    bypassed=old.bypassed if old else None,
                )
            )
    return steps


def _merged_metadata(
    config: Config, graph: FlowGraph, deq: dict[str, DeqBandSettings] | None, used: set[str]
) -> SignalFlowMetadata:
    meta = signal_flow_metadata(config)
    names = dict(meta.channel_names)
    colors = dict(meta.channel_colors)
    last_dither = dict(meta.last_dither)
    for node in (*graph.inputs, *graph.outputs):
        key = port_key(node.side, node.endpoint)
        if node.label and node.label != default_label(node.side, node.channel_index):
            names[key] = node.label
        else:
            names.pop(key, None)
        if node.color:
            colors[key] = node.color
        else:
            colors.pop(key, None)
        if node.last_dither is not None:
            last_dither[key] = node.last_dither
        else:
            last_dither.pop(key, None)
    deq_settings = {**meta.deq, **(deq or {})}
    deq_settings = {name: s for name, s in deq_settings.items() if name in used}
    return meta.model_copy(
        update={
            "channel_names": names,
            "channel_colors": colors,
            "last_dither": last_dither,
            "deq": deq_settings,
        }
    )


def to_config(
    config: Config,
    graph: FlowGraph,
    deq: dict[str, DeqBandSettings] | None = None,
) -> tuple[Config, list[FlowWarning]]:
    """Write *graph* (routes, per-channel filters, UI metadata) into *config*.

    The routing mixer is rebuilt from the graph's routes and every
    single-channel Filter step is regenerated from the channel filter lists,
    right after the kept steps of its region. Global and multi-channel steps
    are left in place. Filter definitions no longer referenced by any step
    are dropped.
    """
    warnings: list[FlowWarning] = []
    n_in = config.devices.capture.channels
    n_out = config.devices.playback.channels
    in_id = graph.input_groups[0].id if graph.input_groups else "in:default"
    out_id = graph.output_groups[0].id if graph.output_groups else "out:default"

    mixer = _build_routing_mixer(graph.routes, in_id, out_id, n_in, n_out, warnings)
    mixers = {**(config.mixers or {}), ROUTING_MIXER_NAME: mixer}

    pipeline = list(config.pipeline)
    routing_idx = routing_step_index(config)
    if routing_idx < 0:
        warnings.append(
            FlowWarning(
                "missing_routing_mixer_step",
                "Routing mixer is not present in pipeline; one was added at the end",
                path="pipeline",
            )
        )
        pipeline.append(MixerStep(name=ROUTING_MIXER_NAME))
        routing_idx = len(pipeline) - 1
    if any(isinstance(s, MixerStep) and s.name != ROUTING_MIXER_NAME for s in pipeline):
        warnings.append(
            FlowWarning(
                "non_canonical_mixers",
                "Config contains additional mixers that the channel graph does not represent",
                path="pipeline",
            )
        )

    input_region = pipeline[:routing_idx]
    output_region = pipeline[routing_idx + 1 :]

    prior: dict[str, FilterStep] = {}
    for step in pipeline:
        if _is_single_channel_step(step):
            for name in step.names:
                prior.setdefault(name, step)

    kept_input = [s for s in input_region if not _is_single_channel_step(s)]
    kept_output = [s for s in output_region if not _is_single_channel_step(s)]

    definitions: dict[str, FilterConfig] = dict(config.filters or {})
    # Names used by global and multi-channel steps keep their definitions.
    emitted: dict[str, FilterConfig] = {
        name: definitions[name]
        for s in (*kept_input, *kept_output)
        if isinstance(s, FilterStep)
        for name in s.names
        if name in definitions
    }
    new_input = _emit_steps(graph.inputs, prior, definitions, emitted)
    new_output = _emit_steps(graph.outputs, prior, definitions, emitted)

    # Single-channel steps with no counterpart in the graph are dropped.
    local_names = {s.names[0] for s in (*new_input, *new_output) if isinstance(s, FilterStep)}
    for step in (*input_region, *output_region):
        if _is_single_channel_step(step) and not local_names & set(step.names):
            warnings.append(
                FlowWarning(
                    "unmapped_filter_step",
                    f"Single-channel step {step.names} had no editable filter and was removed",
                    path="pipeline",
                )
            )

    next_pipeline: list[PipelineStep] = [
        *kept_input,
        *new_input,
        pipeline[routing_idx],
        *kept_output,
        *new_output,
    ]

    used = {name for s in next_pipeline if isinstance(s, FilterStep) for name in s.names}
    definitions = {name: cfg for name, cfg in definitions.items() if name in used}

    merged = config.model_copy(
        update={
            "mixers": mixers,
            "filters": definitions or None,
            "pipeline": next_pipeline,
        }
    )
    merged = with_signal_flow_metadata(merged, _merged_metadata(config, graph, deq, used))
    for w in warnings:
        logger.debug("%s: %s", w.kind, w)
    return merged, warnings


def replace_node(graph: FlowGraph, node: ChannelNode) -> FlowGraph:
    """Return *graph* with the node at ``(node.side, node.channel_index)`` replaced."""
    nodes = graph.nodes(node.side)
    if graph.node(node.side, node.channel_index) is None:
        raise ValueError(f"no {node.side} channel {node.channel_index}")
    replaced = [node if n.channel_index == node.channel_index else n for n in nodes]
    field = "inputs" if node.side == "input" else "outputs"
    return graph.model_copy(update={field: replaced})


def commit_node(config: Config, node: ChannelNode) -> Config:
    """Merge one edited channel node (filters, label, color) into *config*.

    A changed label or color is applied to the node's mirror peers too.
    """
    check_chain(node.filters, node.side)
    graph, _warnings = project_config(config)
    edited = replace_node(graph, node)
    current = graph.node(node.side, node.channel_index)
    merged, _warnings = to_config(config, edited)
    if current is not None and node.label != current.label:
        merged = set_channel_label(merged, node.side, node.endpoint, node.label)
    if current is not None and node.color != current.color:
        merged = set_channel_color(merged, node.side, node.endpoint, node.color or "")
    return merged


def set_node_filters(
    config: Config,
    side: ChannelSide,
    channel_index: int,
    filters: list[ProcessingFilter],
) -> Config:
    """Replace one channel's filter chain and merge it into *config*.

    Raises :class:`FilterPlacementError` if *filters* breaks a placement
    rule and ``ValueError`` if the channel does not exist.
    """
    graph, _warnings = project_config(config)
    node = graph.node(side, channel_index)
    if node is None:
        raise ValueError(f"no {side} channel {channel_index}")
    return commit_node(config, node.with_filters(filters))
