from __future__ import annotations

from signal_flow import (
    AUTO_CONFIG_DEFAULTS,
    DeviceInfo,
    classify_device,
    classify_devices,
    convert_to_plughw,
    find_best_hardware_device,
    generate_auto_config,
    parse_device_list,
    sensible_devices,
)
from signal_flow.devices import (
    alsa_card_name,
    device_display_name,
    format_auto_config_summary,
)


def _dev(device: str, name: str | None = None) -> DeviceInfo:
    return DeviceInfo(device=device, name=name)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParse:
    def test_pairs(self) -> None:
        devices = parse_device_list([["hw:0", "Card 0"], ["pulse", None]])
        assert devices == [_dev("hw:0", "Card 0"), _dev("pulse")]

    def test_malformed_entries_skipped(self) -> None:
        devices = parse_device_list([["hw:0", "Card"], "junk", [], ["hw:1"], 42])
        assert [d.device for d in devices] == ["hw:0", "hw:1"]

    def test_non_string_fields_dropped(self) -> None:
        assert DeviceInfo.from_pair([3, "x"]) == DeviceInfo(device=None, name="x")


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestClassify:
    def test_alsa_enumeration(self, alsa_devices: list[list[str | None]]) -> None:
        classified = classify_devices(parse_device_list(alsa_devices), "Alsa")
        categories = {c.device.device: c.category for c in classified}
        assert categories == {
            "null": "null",
            "default": "virtual",
            "pulse": "virtual",
            "hw:CARD=PCH,DEV=0": "hardware",
            "hw:CARD=E2x2,DEV=0": "hardware",
            "hw:CARD=E2x2,DEV=1": "hardware",
            "plughw:CARD=E2x2,DEV=0": "hardware",
            "hw:CARD=Loopback,DEV=0": "loopback",
            "dmix:CARD=PCH,DEV=0": "virtual",
        }

    def test_loopback_wins_over_hw_prefix(self) -> None:
        c = classify_device(_dev("hw:CARD=Loopback,DEV=0"), "Alsa")
        assert c.category == "loopback"
        assert not c.is_hardware

    def test_unmatched_alsa_id_is_unknown(self) -> None:
        assert classify_device(_dev("surround51"), "Alsa").category == "unknown"
        assert classify_device(_dev("surround51"), None).category == "unknown"

    def test_other_backends(self) -> None:
        speakers = _dev("Speakers (Realtek)", "Speakers (Realtek High Definition Audio)")
        cable = _dev("CABLE Input", "CABLE Input (VB-Audio Virtual Cable)")
        blackhole = _dev("BlackHole 2ch", "BlackHole 2ch")
        assert classify_device(speakers, "Wasapi").category == "hardware"
        assert classify_device(cable, "Wasapi").category == "virtual"
        assert classify_device(blackhole, "CoreAudio").category == "virtual"

    def test_hardware_flag(self) -> None:
        assert classify_device(_dev("hw:0"), "Alsa").is_hardware
        assert not classify_device(_dev("pulse"), "Alsa").is_hardware


# ---------------------------------------------------------------------------
# Best device / picker list
# ---------------------------------------------------------------------------


class TestBestHardware:
    def test_alsa_prefers_named_card_dev0(self) -> None:
        devices = [
            _dev("hw:0"),
            _dev("hw:CARD=E2x2,DEV=0"),
            _dev("hw:CARD=E2x2,DEV=1"),
        ]
        best = find_best_hardware_device(devices, "Alsa")
        assert best is not None
        assert best.device == "hw:CARD=E2x2,DEV=0"

    def test_usb_breaks_ties(self, alsa_devices: list[list[str | None]]) -> None:
        best = find_best_hardware_device(parse_device_list(alsa_devices), "Alsa")
        assert best is not None
        assert best.device == "hw:CARD=E2x2,DEV=0"

    def test_first_occurrence_wins(self) -> None:
        devices = [_dev("Speakers A", "Speakers A"), _dev("Speakers B", "Speakers B")]
        best = find_best_hardware_device(devices, "Wasapi")
        assert best is not None
        assert best.device == "Speakers A"

    def test_none_without_hardware(self) -> None:
        assert find_best_hardware_device([], "Alsa") is None
        assert find_best_hardware_device([_dev("pulse"), _dev("null")], "Alsa") is None


class TestSensibleDevices:
    def test_alsa_one_entry_per_card(self, alsa_devices: list[list[str | None]]) -> None:
        listed = sensible_devices(parse_device_list(alsa_devices), "Alsa")
        assert [c.device.device for c in listed] == ["hw:CARD=E2x2,DEV=0", "hw:CARD=PCH,DEV=0"]
        assert [c.is_recommended for c in listed] == [True, False]

    def test_numeric_cards_hidden_when_named_exist(self) -> None:
        devices = [_dev("hw:0"), _dev("hw:CARD=X,DEV=0")]
        listed = sensible_devices(devices, "Alsa")
        assert [c.device.device for c in listed] == ["hw:CARD=X,DEV=0"]

    def test_numeric_cards_only(self) -> None:
        devices = [_dev("hw:0,0"), _dev("hw:0,1"), _dev("hw:1,0")]
        listed = sensible_devices(devices, "Alsa")
        assert [c.device.device for c in listed] == ["hw:0,0", "hw:1,0"]

    def test_card_name(self) -> None:
        assert alsa_card_name("hw:CARD=E2x2,DEV=0") == "E2x2"
        assert alsa_card_name("plughw:1,0") == "1"
        assert alsa_card_name("pulse") is None


# ---------------------------------------------------------------------------
# Auto config
# ---------------------------------------------------------------------------


class TestAutoConfig:
    def test_plughw_rewrite(self) -> None:
        assert convert_to_plughw("hw:CARD=E2x2,DEV=0") == "plughw:CARD=E2x2,DEV=0"
        assert convert_to_plughw("plughw:1") == "plughw:1"
        assert convert_to_plughw("pulse") == "pulse"

    def test_alsa_result(self) -> None:
        result = generate_auto_config(_dev("hw:CARD=E2x2,DEV=0", "EVO4, USB Audio"), "Alsa")
        assert result.device_for_config == "plughw:CARD=E2x2,DEV=0"
        assert result.backend == "Alsa"
        assert result.channels == AUTO_CONFIG_DEFAULTS["channels"] == 2
        assert result.sample_rate == 48000
        assert result.format == "S32LE"
        assert result.chunk_size == 1024

    def test_other_backend_keeps_id(self) -> None:
        result = generate_auto_config(_dev("hw:0"), "Wasapi")
        assert result.device_for_config == "hw:0"

    def test_summary(self) -> None:
        result = generate_auto_config(_dev("hw:CARD=E2x2,DEV=0", "Audient EVO4, USB Audio"), "Alsa")
        assert format_auto_config_summary(result) == "Audient EVO4 (2ch, 48kHz, S32LE)"

    def test_display_name(self) -> None:
        assert device_display_name(_dev("hw:0", "HDA Intel, ALC892")) == "HDA Intel"
        assert device_display_name(_dev("hw:0")) == "hw:0"
        assert device_display_name(DeviceInfo()) == "Unknown device"
