"""Stereo-to-2.1 bass management built through the channel graph.

Demonstrates the edit loop a UI would drive:
  - Start from a minimal 2-in/3-out config (1:1 routing).
  - Route both inputs into the subwoofer output at -6 dB.
  - Add crossover EQ bands, trim gain and delay per output channel.
  - Link the two mains as a mirror group and name them once.
  - Validate and print the resulting config as YAML.
"""

from signal_flow import (
    RouteEndpoint,
    add_route,
    build_graph,
    commit_node,
    create_minimal_config,
    device_ids,
    dump_config,
    merge_eq_bands,
    set_channel_label,
    set_mirror_group,
    validate_config,
)
from signal_flow.bands import EqBand
from signal_flow.inline import apply_delay, apply_gain
from signal_flow.models import BiquadOrder

config = create_minimal_config("Alsa", "hw:CARD=E2x2,DEV=0", 2, "Alsa", "hw:CARD=E2x2,DEV=0", 3)
in_id, out_id = device_ids(config)


def inp(ch: int) -> RouteEndpoint:
    return RouteEndpoint(device_id=in_id, channel_index=ch)


def out(ch: int) -> RouteEndpoint:
    return RouteEndpoint(device_id=out_id, channel_index=ch)


# Sum left and right into the sub
config = add_route(config, inp(0), out(2), gain=-6.0)
config = add_route(config, inp(1), out(2), gain=-6.0)

graph = build_graph(config)

# Mains: 80 Hz high-pass
for ch in (0, 1):
    node = graph.outputs[ch]
    hpf = BiquadOrder(type="LinkwitzRileyHighpass", freq=80.0, order=4)
    node = node.with_filters(merge_eq_bands(node, [EqBand(id="new", parameters=hpf)]))
    config = commit_node(config, node)

# Sub: 80 Hz low-pass, -3 dB trim, 2.5 ms delay
sub = build_graph(config).outputs[2]
lpf = BiquadOrder(type="LinkwitzRileyLowpass", freq=80.0, order=4)
sub = sub.with_filters(merge_eq_bands(sub, [EqBand(id="new", parameters=lpf)]))
sub = apply_gain(sub, -3.0, False)
sub = apply_delay(sub, 2.5, "ms")
config = commit_node(config, sub.model_copy(update={"label": "Sub"}))

config = set_mirror_group(config, "output", [out(0), out(1)])
config = set_channel_label(config, "output", out(0), "Mains")

if __name__ == "__main__":
    problems = validate_config(config)
    if problems:
        print("Validation problems:")
        for p in problems:
            print(f"  - {p.severity}: {p.path}: {p}")
    else:
        print("Config is valid.")
    print()
    for node in build_graph(config).outputs:
        names = [f.name for f in node.filters]
        print(f"{node.label}: {names}")
    print()
    print(dump_config(config, "yaml"))
