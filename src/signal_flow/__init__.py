"""signal-flow: channel graph and filter-chain sync for DSP pipeline configs."""

from signal_flow.bands import (
    DeqBand,
    EqBand,
    build_deq_bands,
    build_eq_bands,
    merge_deq_bands,
    merge_eq_bands,
)
from signal_flow.build import build_graph, device_ids, is_representable, project_config
from signal_flow.clipboard import (
    ChannelClip,
    FilterClip,
    PasteResult,
    RouteClip,
    copy_channel,
    copy_filter,
    copy_route,
    parse_clipboard,
    paste_channel,
    paste_filter,
    paste_route,
    serialize_clipboard,
)
from signal_flow.config_io import dump_config, load_config, parse_config, save_config
from signal_flow.devices import (
    AUTO_CONFIG_DEFAULTS,
    AutoConfigResult,
    ClassifiedDevice,
    DeviceInfo,
    classify_device,
    classify_devices,
    convert_to_plughw,
    find_best_hardware_device,
    generate_auto_config,
    parse_device_list,
    sensible_devices,
)
from signal_flow.devices_form import (
    DEFAULT_FORM_STATE,
    ConfigPreconditionError,
    DeviceFormState,
    apply_form_state,
    create_config_from_auto_result,
    create_config_from_form_state,
    create_minimal_config,
    form_state_from_config,
)
from signal_flow.filter_chain import (
    FilterPlacementError,
    ensure_unique_name,
    find_block,
    remove_first_filter_of_type,
    replace_block,
    upsert_single_filter_of_type,
)
from signal_flow.flow import (
    ChannelNode,
    DeviceGroup,
    FlowGraph,
    FlowWarning,
    ProcessingFilter,
    ProcessingSummary,
    RouteEdge,
)
from signal_flow.inline import apply_delay, apply_gain, toggle_dither, update_dither_bits
from signal_flow.merge import commit_node, set_node_filters, to_config
from signal_flow.mirror import (
    mirror_peers,
    set_channel_color,
    set_channel_label,
    set_mirror_group,
    set_mirror_members,
)
from signal_flow.models import (
    ROUTING_MIXER_NAME,
    Config,
    DeviceConfig,
    Devices,
    FilterStep,
    MirrorGroups,
    Mixer,
    MixerChannels,
    MixerMapping,
    MixerSource,
    MixerStep,
    RouteEndpoint,
)
from signal_flow.routing import (
    add_route,
    create_default_routing_mixer,
    delete_route,
    ensure_routing_mixer_step,
    normalize_routing_mixer,
    update_route,
)
from signal_flow.validate import ConfigValidationError, validate_config

__all__ = [
    "AUTO_CONFIG_DEFAULTS",
    "AutoConfigResult",
    "ChannelClip",
    "ChannelNode",
    "ClassifiedDevice",
    "Config",
    "ConfigPreconditionError",
    "ConfigValidationError",
    "DEFAULT_FORM_STATE",
    "DeqBand",
    "DeviceConfig",
    "DeviceFormState",
    "DeviceGroup",
    "DeviceInfo",
    "Devices",
    "EqBand",
    "FilterClip",
    "FilterPlacementError",
    "FilterStep",
    "FlowGraph",
    "FlowWarning",
    "MirrorGroups",
    "Mixer",
    "MixerChannels",
    "MixerMapping",
    "MixerSource",
    "MixerStep",
    "PasteResult",
    "ProcessingFilter",
    "ProcessingSummary",
    "ROUTING_MIXER_NAME",
    "RouteClip",
    "RouteEdge",
    "RouteEndpoint",
    "add_route",
    "apply_delay",
    "apply_form_state",
    "apply_gain",
    "build_deq_bands",
    "build_eq_bands",
    "build_graph",
    "classify_device",
    "classify_devices",
    "commit_node",
    "convert_to_plughw",
    "copy_channel",
    "copy_filter",
    "copy_route",
    "create_config_from_auto_result",
    "create_config_from_form_state",
    "create_default_routing_mixer",
    "create_minimal_config",
    "delete_route",
    "device_ids",
    "dump_config",
    "ensure_routing_mixer_step",
    "ensure_unique_name",
    "find_best_hardware_device",
    "find_block",
    "form_state_from_config",
    "generate_auto_config",
    "is_representable",
    "load_config",
    "merge_deq_bands",
    "merge_eq_bands",
    "mirror_peers",
    "normalize_routing_mixer",
    "parse_clipboard",
    "parse_config",
    "parse_device_list",
    "paste_channel",
    "paste_filter",
    "paste_route",
    "project_config",
    "remove_first_filter_of_type",
    "replace_block",
    "save_config",
    "sensible_devices",
    "serialize_clipboard",
    "set_channel_color",
    "set_channel_label",
    "set_mirror_group",
    "set_mirror_members",
    "set_node_filters",
    "to_config",
    "toggle_dither",
    "update_dither_bits",
    "update_route",
    "validate_config",
]
