"""First-run setup from an ALSA device enumeration.

Classifies the enumerated devices, picks the most likely audio interface,
creates a minimal config for it, then widens the playback side to four
channels through the device form (routes outside the new counts would be
pruned; growing keeps them).
"""

from signal_flow import (
    apply_form_state,
    build_graph,
    classify_devices,
    create_config_from_auto_result,
    find_best_hardware_device,
    form_state_from_config,
    generate_auto_config,
    parse_device_list,
    sensible_devices,
)
from signal_flow.devices import format_auto_config_summary

BACKEND = "Alsa"

enumerated = [
    ["null", "Discard all samples (playback) or generate zero samples (capture)"],
    ["pulse", "PulseAudio Sound Server"],
    ["hw:CARD=PCH,DEV=0", "HDA Intel PCH, ALC892 Analog"],
    ["hw:CARD=E2x2,DEV=0", "Audient EVO4, USB Audio"],
    ["plughw:CARD=E2x2,DEV=0", "Audient EVO4, USB Audio"],
    ["hw:CARD=Loopback,DEV=0", "Loopback, Loopback PCM"],
]

devices = parse_device_list(enumerated)

if __name__ == "__main__":
    for c in classify_devices(devices, BACKEND):
        print(f"{c.category:<9} {c.device.device}")
    print()
    print("Picker:")
    for c in sensible_devices(devices, BACKEND):
        print(f"  {'*' if c.is_recommended else ' '} {c.device.name}")
    print()

    best = find_best_hardware_device(devices, BACKEND)
    if best is None:
        print("No hardware device found.")
    else:
        result = generate_auto_config(best, BACKEND)
        print(f"Auto config: {format_auto_config_summary(result)}")
        config = create_config_from_auto_result(result)

        form = form_state_from_config(config).model_copy(update={"output_channels": 4})
        config = apply_form_state(config, form)
        graph = build_graph(config)
        print(f"Outputs: {[n.label for n in graph.outputs]}")
        print(f"Routes: {[(r.from_.channel_index, r.to.channel_index) for r in graph.routes]}")
