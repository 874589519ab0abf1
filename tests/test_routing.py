from __future__ import annotations

from typing import Any

from signal_flow import (
    Config,
    Mixer,
    MixerChannels,
    MixerMapping,
    MixerSource,
    MixerStep,
    RouteEndpoint,
    add_route,
    create_default_routing_mixer,
    delete_route,
    ensure_routing_mixer_step,
    normalize_routing_mixer,
    update_route,
)
from signal_flow.models import routing_mixer
from signal_flow.routing import find_route, patch_config_with_routing_mixer


def _src(ch: int, device_id: str = "in:hw1") -> RouteEndpoint:
    return RouteEndpoint(device_id=device_id, channel_index=ch)


def _dst(ch: int, device_id: str = "out:hw1") -> RouteEndpoint:
    return RouteEndpoint(device_id=device_id, channel_index=ch)


def _pairs(config: Config) -> list[tuple[int, int]]:
    mixer = routing_mixer(config)
    assert mixer is not None
    return [(s.channel, m.dest) for m in mixer.mapping for s in m.sources]


class TestDefaultMixer:
    def test_one_to_one(self) -> None:
        mixer = create_default_routing_mixer(2, 3)
        assert mixer.channels == MixerChannels(in_=2, out=3)
        assert [(m.dest, [s.channel for s in m.sources]) for m in mixer.mapping] == [
            (0, [0]),
            (1, [1]),
        ]

    def test_ensure_step(self, quad_config: Config, stereo_data: dict[str, Any]) -> None:
        assert ensure_routing_mixer_step(quad_config) is quad_config
        stereo_data["pipeline"] = [p for p in stereo_data["pipeline"] if p["type"] != "Mixer"]
        patched = ensure_routing_mixer_step(Config.model_validate(stereo_data))
        assert patched.pipeline[-1] == MixerStep(name="routing")


class TestNormalize:
    def test_clamps_and_dedupes(self) -> None:
        mixer = Mixer(
            channels=MixerChannels(in_=8, out=8),
            mapping=[
                MixerMapping(
                    dest=1,
                    sources=[
                        MixerSource(channel=0, gain=-1.0),
                        MixerSource(channel=0, gain=-2.0),
                        MixerSource(channel=9),
                    ],
                ),
                MixerMapping(dest=0, sources=[MixerSource(channel=1, gain=float("inf"))]),
                MixerMapping(dest=5, sources=[MixerSource(channel=0)]),
                MixerMapping(dest=2, sources=[MixerSource(channel=7)]),
            ],
        )
        result = normalize_routing_mixer(mixer, 4, 4)
        assert result.channels == MixerChannels(in_=4, out=4)
        assert result.mapping == [
            MixerMapping(dest=0, sources=[MixerSource(channel=1, gain=0.0)]),
            MixerMapping(dest=1, sources=[MixerSource(channel=0, gain=-2.0)]),
        ]

    def test_patch_config(self, quad_config: Config) -> None:
        wide = create_default_routing_mixer(8, 8)
        patched = patch_config_with_routing_mixer(quad_config, wide)
        assert _pairs(patched) == [(0, 0), (1, 1), (2, 2), (3, 3)]


class TestRouteEdits:
    def test_add(self, quad_config: Config) -> None:
        config = add_route(quad_config, _src(1), _dst(0), gain=-3.0)
        assert _pairs(config) == [(0, 0), (3, 0), (1, 0), (1, 1), (2, 2), (3, 3)]
        found = find_route(config, _src(1), _dst(0))
        assert found == MixerSource(channel=1, gain=-3.0)

    def test_add_no_ops(self, quad_config: Config) -> None:
        assert add_route(quad_config, _src(0), _dst(0)) is quad_config
        assert add_route(quad_config, _src(4), _dst(0)) is quad_config
        assert add_route(quad_config, _src(0), _dst(4)) is quad_config
        assert add_route(quad_config, _src(0, "in:other"), _dst(1)) is quad_config

    def test_add_new_destination_sorted(self, quad_config: Config) -> None:
        config = delete_route(quad_config, _src(1), _dst(1))
        assert [m.dest for m in routing_mixer(config).mapping] == [0, 2, 3]
        config = add_route(config, _src(0), _dst(1))
        assert [m.dest for m in routing_mixer(config).mapping] == [0, 1, 2, 3]

    def test_add_creates_mixer(self, stereo_data: dict[str, Any]) -> None:
        stereo_data["pipeline"] = [p for p in stereo_data["pipeline"] if p["type"] != "Mixer"]
        del stereo_data["mixers"]
        config = Config.model_validate(stereo_data)
        in_id = "in:hwcarde2x2dev0"
        out_id = "out:hwcarde2x2dev0"
        patched = add_route(config, _src(0, in_id), _dst(1, out_id))
        assert routing_mixer(patched).channels == MixerChannels(in_=2, out=2)
        assert _pairs(patched) == [(0, 1)]
        assert patched.pipeline[-1] == MixerStep(name="routing")

    def test_update(self, quad_config: Config) -> None:
        config = update_route(quad_config, _src(2), _dst(2), inverted=False, gain=-1.5)
        assert find_route(config, _src(2), _dst(2)) == MixerSource(channel=2, gain=-1.5)
        # Other routes are untouched.
        assert find_route(config, _src(3), _dst(0)) == MixerSource(channel=3, gain=-6.0)

    def test_update_no_ops(self, quad_config: Config) -> None:
        assert update_route(quad_config, _src(2), _dst(2), inverted=True) is quad_config
        assert update_route(quad_config, _src(1), _dst(0), gain=1.0) is quad_config
        assert update_route(quad_config, _src(1), _dst(1), gain=float("nan")) is quad_config
        assert update_route(quad_config, _src(1), _dst(1)) is quad_config

    def test_delete(self, quad_config: Config) -> None:
        config = delete_route(quad_config, _src(3), _dst(0))
        assert _pairs(config) == [(0, 0), (1, 1), (2, 2), (3, 3)]
        assert delete_route(config, _src(3), _dst(0)) is config

    def test_edits_do_not_mutate(self, quad_config: Config) -> None:
        before = quad_config.model_copy(deep=True)
        add_route(quad_config, _src(1), _dst(0))
        update_route(quad_config, _src(0), _dst(0), mute=True)
        delete_route(quad_config, _src(0), _dst(0))
        assert quad_config == before
