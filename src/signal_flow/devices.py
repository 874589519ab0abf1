"""Device classification and auto-configuration heuristics.

Turns a raw device enumeration (``[id, description]`` pairs as reported by
the engine for one backend) into categorized records, picks the most likely
hardware interface and derives a default device configuration for it.
None of these functions raise on odd input: an empty result or ``None``
means "no usable hardware found".
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import Literal

from pydantic import BaseModel, ConfigDict

from signal_flow.models import SampleFormat

logger = logging.getLogger(__name__)

DeviceCategory = Literal["hardware", "loopback", "null", "virtual", "unknown"]

AUTO_CONFIG_DEFAULTS: dict[str, int | str] = {
    "channels": 2,
    "sample_rate": 48000,
    "format": "S32LE",
    "chunk_size": 1024,
}

_ALSA_VIRTUAL_IDS = frozenset({"pulse", "pipewire", "default", "sysdefault"})
_ALSA_VIRTUAL_SUBSTRINGS = ("dsnoop", "dmix")

# Software devices reported by non-ALSA backends (WASAPI, CoreAudio, ...).
_SOFTWARE_DEVICE_MARKERS = (
    "virtual",
    "cable",
    "voicemeeter",
    "aggregate",
    "soundflower",
    "blackhole",
)

_ALSA_CARD_RE = re.compile(r"^(?:plug)?hw:(?:CARD=)?([^,]+)", re.IGNORECASE)


class DeviceInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    device: str | None = None
    name: str | None = None

    @classmethod
    def from_pair(cls, pair: Sequence[object]) -> DeviceInfo:
        """Build from an enumeration pair ``[device_id, description]``."""
        device = pair[0] if len(pair) > 0 else None
        name = pair[1] if len(pair) > 1 else None
        return cls(
            device=device if isinstance(device, str) else None,
            name=name if isinstance(name, str) else None,
        )


class ClassifiedDevice(BaseModel):
    model_config = ConfigDict(frozen=True)

    device: DeviceInfo
    category: DeviceCategory
    is_hardware: bool
    is_recommended: bool = False


class AutoConfigResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    device: DeviceInfo
    device_for_config: str
    backend: str
    channels: int
    sample_rate: int
    format: SampleFormat
    chunk_size: int


def parse_device_list(raw: Iterable[object]) -> list[DeviceInfo]:
    """Parse an enumeration response, skipping entries that are not pairs."""
    devices: list[DeviceInfo] = []
    for entry in raw:
        if isinstance(entry, (list, tuple)) and entry:
            devices.append(DeviceInfo.from_pair(entry))
        else:
            logger.debug("skipping malformed device entry: %r", entry)
    return devices


def _is_alsa(backend: str | None) -> bool:
    return (backend or "").lower() == "alsa"


def _uses_alsa_syntax(device_id: str) -> bool:
    lowered = device_id.lower()
    return lowered.startswith("hw:") or lowered.startswith("plughw:")


def classify_device(device: DeviceInfo, backend: str | None = None) -> ClassifiedDevice:
    device_id = (device.device or "").lower()
    name = (device.name or "").lower()
    backend_lower = (backend or "").lower()

    category: DeviceCategory
    if "loopback" in device_id or "loopback" in name:
        category = "loopback"
    elif device_id == "null":
        category = "null"
    elif _uses_alsa_syntax(device_id):
        category = "hardware"
    elif device_id in _ALSA_VIRTUAL_IDS or any(s in device_id for s in _ALSA_VIRTUAL_SUBSTRINGS):
        category = "virtual"
    elif not backend_lower or backend_lower == "alsa":
        category = "unknown"
    elif any(m in name or m in device_id for m in _SOFTWARE_DEVICE_MARKERS):
        category = "virtual"
    else:
        category = "hardware"

    return ClassifiedDevice(device=device, category=category, is_hardware=category == "hardware")


def classify_devices(
    devices: Iterable[DeviceInfo], backend: str | None = None
) -> list[ClassifiedDevice]:
    return [classify_device(d, backend) for d in devices]


def _mentions_usb(device: DeviceInfo) -> bool:
    return "usb" in (device.name or "").lower() or "usb" in (device.device or "").lower()


def find_best_hardware_device(
    devices: Iterable[DeviceInfo], backend: str | None = None
) -> DeviceInfo | None:
    """Pick the most likely audio interface among the hardware devices.

    With ALSA ids an explicit ``CARD=`` reference beats a bare card index and
    ``DEV=0`` beats other sub-devices; on every backend a device mentioning
    USB is preferred. Ties keep enumeration order.
    """
    hardware = [c.device for c in classify_devices(devices, backend) if c.is_hardware]
    if not hardware:
        return None

    alsa = _is_alsa(backend) or any(_uses_alsa_syntax(d.device or "") for d in hardware)

    def rank(device: DeviceInfo) -> tuple[int, int, int]:
        upper = (device.device or "").upper()
        card = 0 if alsa and "CARD=" in upper else 1
        dev0 = 0 if alsa and "DEV=0" in upper else 1
        usb = 0 if _mentions_usb(device) else 1
        return card, dev0, usb

    # sorted() is stable, so equal ranks keep their first-occurrence order.
    best = sorted(hardware, key=rank)[0]
    logger.debug("best hardware device for %s: %s", backend, best.device)
    return best


def alsa_card_name(device_id: str) -> str | None:
    """Extract the card part of an ALSA id (``hw:CARD=E2x2,DEV=0`` -> ``E2x2``)."""
    m = _ALSA_CARD_RE.match(device_id)
    return m.group(1) if m else None


def sensible_devices(devices: Iterable[DeviceInfo], backend: str) -> list[ClassifiedDevice]:
    """Hardware devices worth offering in a picker, recommended ones first.

    USB hardware is flagged as recommended. For ALSA, ``plughw:`` aliases are
    dropped, each card is listed once (its ``CARD=...,DEV=0`` entry when
    present), and bare numeric card references are hidden when any named
    card is available.
    """
    classified = []
    for c in classify_devices(devices, backend):
        if not c.is_hardware:
            continue
        recommended = _mentions_usb(c.device) and "loopback" not in (c.device.name or "").lower()
        classified.append(c.model_copy(update={"is_recommended": recommended}))

    if _is_alsa(backend):
        named: dict[str, ClassifiedDevice] = {}
        numeric: dict[str, ClassifiedDevice] = {}
        for c in classified:
            device_id = c.device.device or ""
            card = alsa_card_name(device_id)
            if card is None or device_id.lower().startswith("plughw:"):
                continue
            bucket = numeric if card.isdigit() else named
            existing = bucket.get(card)
            if existing is None:
                bucket[card] = c
                continue
            existing_id = existing.device.device or ""
            if "CARD=" in device_id and "DEV=0" in device_id and not (
                "CARD=" in existing_id and "DEV=0" in existing_id
            ):
                bucket[card] = c
        classified = list(named.values()) or list(numeric.values())

    def sort_key(c: ClassifiedDevice) -> tuple[int, str]:
        label = c.device.name or c.device.device or ""
        return (0 if c.is_recommended else 1, label.casefold())

    return sorted(classified, key=sort_key)


def convert_to_plughw(device_id: str) -> str:
    """Rewrite ``hw:...`` to ``plughw:...`` so capture and playback can share a card."""
    if device_id.startswith("hw:"):
        return "plughw:" + device_id[len("hw:") :]
    return device_id


def generate_auto_config(device: DeviceInfo, backend: str) -> AutoConfigResult:
    device_id = device.device or ""
    device_for_config = convert_to_plughw(device_id) if _is_alsa(backend) else device_id
    return AutoConfigResult(
        device=device,
        device_for_config=device_for_config,
        backend=backend,
        channels=AUTO_CONFIG_DEFAULTS["channels"],
        sample_rate=AUTO_CONFIG_DEFAULTS["sample_rate"],
        format=AUTO_CONFIG_DEFAULTS["format"],
        chunk_size=AUTO_CONFIG_DEFAULTS["chunk_size"],
    )


def device_display_name(device: DeviceInfo) -> str:
    """Short label: the first comma-separated part of the description."""
    if device.name:
        first = device.name.splitlines()[0].split(",")[0].strip()
        return first or device.name
    return device.device or "Unknown device"


def format_auto_config_summary(result: AutoConfigResult) -> str:
    rate = f"{result.sample_rate / 1000:g}"
    return (
        f"{device_display_name(result.device)} "
        f"({result.channels}ch, {rate}kHz, {result.format})"
    )
