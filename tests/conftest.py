from __future__ import annotations

import copy
from typing import Any

import pytest

from signal_flow import Config

STEREO_DATA: dict[str, Any] = {
    "devices": {
        "samplerate": 48000,
        "chunksize": 1024,
        "capture": {
            "type": "Alsa",
            "channels": 2,
            "device": "hw:CARD=E2x2,DEV=0",
            "format": "S32LE",
        },
        "playback": {
            "type": "Alsa",
            "channels": 2,
            "device": "hw:CARD=E2x2,DEV=0",
            "format": "S32LE",
        },
    },
    "filters": {
        "in_gain": {"type": "Gain", "parameters": {"gain": -3.0}},
        "out_eq_1": {
            "type": "Biquad",
            "parameters": {"type": "Peaking", "freq": 100.0, "gain": 3.0, "q": 1.0},
        },
        "out_eq_2": {
            "type": "Biquad",
            "parameters": {"type": "Peaking", "freq": 1000.0, "gain": -2.0, "q": 1.5},
        },
        "out_delay": {"type": "Delay", "parameters": {"delay": 1.5, "unit": "ms"}},
    },
    "mixers": {
        "routing": {
            "channels": {"in": 2, "out": 2},
            "mapping": [
                {"dest": 0, "sources": [{"channel": 0, "gain": 0.0}]},
                {"dest": 1, "sources": [{"channel": 1, "gain": 0.0}]},
            ],
        }
    },
    "pipeline": [
        {"type": "Filter", "names": ["in_gain"], "channels": [0]},
        {"type": "Mixer", "name": "routing"},
        {"type": "Filter", "names": ["out_eq_1"], "channels": [0]},
        {"type": "Filter", "names": ["out_eq_2"], "channels": [0]},
        {"type": "Filter", "names": ["out_delay"], "channels": [1]},
    ],
}


@pytest.fixture
def stereo_data() -> dict[str, Any]:
    """Raw stereo config: input gain on ch0, two EQ bands on out 0, delay on out 1."""
    return copy.deepcopy(STEREO_DATA)


@pytest.fixture
def stereo_config(stereo_data: dict[str, Any]) -> Config:
    return Config.model_validate(stereo_data)


@pytest.fixture
def quad_config() -> Config:
    """4-in/4-out config with a fan-in route and no filters."""
    return Config.model_validate(
        {
            "devices": {
                "samplerate": 96000,
                "chunksize": 512,
                "capture": {"type": "Alsa", "channels": 4, "device": "hw:1"},
                "playback": {"type": "Alsa", "channels": 4, "device": "hw:1"},
            },
            "mixers": {
                "routing": {
                    "channels": {"in": 4, "out": 4},
                    "mapping": [
                        {
                            "dest": 0,
                            "sources": [
                                {"channel": 0, "gain": 0.0},
                                {"channel": 3, "gain": -6.0},
                            ],
                        },
                        {"dest": 1, "sources": [{"channel": 1, "gain": 0.0}]},
                        {"dest": 2, "sources": [{"channel": 2, "gain": 0.0, "inverted": True}]},
                        {"dest": 3, "sources": [{"channel": 3, "gain": 0.0, "mute": True}]},
                    ],
                }
            },
            "pipeline": [{"type": "Mixer", "name": "routing"}],
        }
    )


@pytest.fixture
def alsa_devices() -> list[list[str | None]]:
    """A typical ALSA enumeration for one USB interface plus system devices."""
    return [
        ["null", "Discard all samples (playback) or generate zero samples (capture)"],
        ["default", "Default Audio Device"],
        ["pulse", "PulseAudio Sound Server"],
        ["hw:CARD=PCH,DEV=0", "HDA Intel PCH, ALC892 Analog"],
        ["hw:CARD=E2x2,DEV=0", "Audient EVO4, USB Audio"],
        ["hw:CARD=E2x2,DEV=1", "Audient EVO4, USB Audio #1"],
        ["plughw:CARD=E2x2,DEV=0", "Audient EVO4, USB Audio"],
        ["hw:CARD=Loopback,DEV=0", "Loopback, Loopback PCM"],
        ["dmix:CARD=PCH,DEV=0", "HDA Intel PCH, direct mixing"],
    ]
