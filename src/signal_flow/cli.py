"""Command-line interface for signal-flow."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

from signal_flow.build import project_config
from signal_flow.config_io import (
    ConfigFormat,
    dump_config,
    format_for_path,
    load_config,
    save_config,
)
from signal_flow.devices import (
    DeviceInfo,
    classify_devices,
    find_best_hardware_device,
    format_auto_config_summary,
    generate_auto_config,
    parse_device_list,
    sensible_devices,
)
from signal_flow.devices_form import (
    DeviceFormState,
    apply_form_state,
    create_config_from_auto_result,
    form_state_from_config,
)
from signal_flow.filters import summary
from signal_flow.flow import ChannelNode
from signal_flow.log import configure_logging
from signal_flow.models import Config
from signal_flow.validate import validate_config


def _write_config(config: Config, output: str | None, fmt: ConfigFormat = "json") -> None:
    if output:
        save_config(config, output)
        print(f"wrote {output}")
    else:
        sys.stdout.write(dump_config(config, fmt))


def _load_devices(path: str) -> list[DeviceInfo]:
    raw = json.loads(Path(path).read_text())
    if not isinstance(raw, list):
        raise ValueError("device list must be a JSON array of [id, description] pairs")
    return parse_device_list(raw)


def _describe_node(node: ChannelNode) -> str:
    chain = ", ".join(f"{f.name} [{summary(f.config)}]" for f in node.filters)
    return f"  {node.channel_index}: {node.label}" + (f"  {chain}" if chain else "")


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_validate(args: argparse.Namespace) -> int:
    config = load_config(args.file)
    errors = validate_config(config)

    has_errors = any(e.severity == "error" for e in errors)
    has_warnings = any(e.severity == "warning" for e in errors)

    for err in errors:
        prefix = "warning" if err.severity == "warning" else "error"
        print(f"{prefix}: {err.path}: {err}", file=sys.stderr)

    if has_errors:
        return 1
    if has_warnings:
        print("valid (with warnings)")
    else:
        print("valid")
    return 0


def _cmd_graph(args: argparse.Namespace) -> int:
    config = load_config(args.file)
    graph, warnings = project_config(config)
    for w in warnings:
        print(f"warning: {w.kind}: {w}", file=sys.stderr)

    if args.json:
        sys.stdout.write(graph.model_dump_json(by_alias=True, indent=2) + "\n")
        return 0

    print(f"inputs ({graph.input_groups[0].id}):")
    for node in graph.inputs:
        print(_describe_node(node))
    print(f"outputs ({graph.output_groups[0].id}):")
    for node in graph.outputs:
        print(_describe_node(node))
    print("routes:")
    for route in graph.routes:
        flags = "".join((" inverted" if route.inverted else "", " muted" if route.mute else ""))
        print(
            f"  {route.from_.channel_index} -> {route.to.channel_index}"
            f"  {route.gain:+g} dB{flags}"
        )
    return 0


def _cmd_devices(args: argparse.Namespace) -> int:
    devices = _load_devices(args.file)

    for c in classify_devices(devices, args.backend):
        print(f"{c.category:<9} {c.device.device or '-'}  {c.device.name or ''}".rstrip())

    print("recommended:")
    for c in sensible_devices(devices, args.backend):
        star = "*" if c.is_recommended else " "
        print(f"  {star} {c.device.device}")

    best = find_best_hardware_device(devices, args.backend)
    if best is None:
        print("error: no hardware device found", file=sys.stderr)
        return 1
    result = generate_auto_config(best, args.backend)
    print(f"auto config: {format_auto_config_summary(result)} -> {result.device_for_config}")
    return 0


def _cmd_autoconfig(args: argparse.Namespace) -> int:
    best = find_best_hardware_device(_load_devices(args.file), args.backend)
    if best is None:
        print("error: no hardware device found", file=sys.stderr)
        return 1
    config = create_config_from_auto_result(generate_auto_config(best, args.backend))
    _write_config(config, args.output)
    return 0


def _cmd_reconcile(args: argparse.Namespace) -> int:
    config = load_config(args.file)
    form = form_state_from_config(config)
    update: dict[str, int] = {}
    if args.in_channels is not None:
        update["input_channels"] = args.in_channels
    if args.out_channels is not None:
        update["output_channels"] = args.out_channels
    form = DeviceFormState.model_validate({**form.model_dump(), **update})
    _write_config(apply_form_state(config, form), args.output, format_for_path(args.file))
    return 0


def _cmd_response(args: argparse.Namespace) -> int:
    try:
        import numpy  # noqa: F401
    except ImportError:
        print(
            "error: numpy is required for response. "
            "Install with: pip install signal-flow[response]",
            file=sys.stderr,
        )
        return 1

    from signal_flow.response import chain_response, log_frequencies

    config = load_config(args.file)
    graph, _warnings = project_config(config)
    node = graph.node(args.side, args.channel)
    if node is None:
        print(f"error: no {args.side} channel {args.channel}", file=sys.stderr)
        return 1

    freqs = log_frequencies(args.points)
    db = chain_response(node.filters, freqs, float(config.devices.samplerate))
    for f, level in zip(freqs, db):
        print(f"{f:10.1f} {level:8.2f}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the signal-flow CLI."""
    parser = argparse.ArgumentParser(
        prog="signal-flow",
        description="Inspect, validate and reconcile DSP pipeline configs as a channel graph.",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase log verbosity (-vv for debug)"
    )
    sub = parser.add_subparsers(dest="command")

    # validate
    p_validate = sub.add_parser("validate", help="Validate a config")
    p_validate.add_argument("file", help="Config file (JSON or YAML)")

    # graph
    p_graph = sub.add_parser("graph", help="Show the channel graph of a config")
    p_graph.add_argument("file", help="Config file (JSON or YAML)")
    p_graph.add_argument("--json", action="store_true", help="Print the graph as JSON")

    # devices
    p_devices = sub.add_parser("devices", help="Classify an enumerated device list")
    p_devices.add_argument("file", help="JSON array of [id, description] pairs")
    p_devices.add_argument("--backend", required=True, help="Audio backend (Alsa, Wasapi, ...)")

    # autoconfig
    p_auto = sub.add_parser("autoconfig", help="Create a minimal config for the best device")
    p_auto.add_argument("file", help="JSON array of [id, description] pairs")
    p_auto.add_argument("--backend", required=True, help="Audio backend (Alsa, Wasapi, ...)")
    p_auto.add_argument("-o", "--output", help="Output config file (default: stdout)")

    # reconcile
    p_rec = sub.add_parser("reconcile", help="Change channel counts and prune the routing")
    p_rec.add_argument("file", help="Config file (JSON or YAML)")
    p_rec.add_argument("--in", dest="in_channels", type=int, help="Capture channel count")
    p_rec.add_argument("--out", dest="out_channels", type=int, help="Playback channel count")
    p_rec.add_argument("-o", "--output", help="Output config file (default: stdout)")

    # response
    p_resp = sub.add_parser("response", help="Print a channel's magnitude response")
    p_resp.add_argument("file", help="Config file (JSON or YAML)")
    p_resp.add_argument("--side", choices=["input", "output"], default="output")
    p_resp.add_argument("--channel", type=int, default=0, help="Channel index")
    p_resp.add_argument("--points", type=int, default=31, help="Number of frequencies")

    args = parser.parse_args(argv)
    configure_logging(verbosity=args.verbose)

    if not args.command:
        parser.print_help(sys.stderr)
        return 1

    try:
        if args.command == "validate":
            return _cmd_validate(args)
        elif args.command == "graph":
            return _cmd_graph(args)
        elif args.command == "devices":
            return _cmd_devices(args)
        elif args.command == "autoconfig":
            return _cmd_autoconfig(args)
        elif args.command == "reconcile":
            return _cmd_reconcile(args)
        elif args.command == "response":
            return _cmd_response(args)
    except FileNotFoundError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as e:
        print(f"error: invalid JSON: {e}", file=sys.stderr)
        return 1
    except yaml.YAMLError as e:
        print(f"error: invalid YAML: {e}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"error: invalid config: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    return 0  # pragma: no cover


if __name__ == "__main__":
    sys.exit(main())
