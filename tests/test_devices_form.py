from __future__ import annotations

import pytest

from signal_flow import (
    DEFAULT_FORM_STATE,
    Config,
    ConfigPreconditionError,
    DeviceFormState,
    DeviceInfo,
    FilterStep,
    Mixer,
    MixerChannels,
    MixerMapping,
    MixerSource,
    MixerStep,
    apply_form_state,
    build_graph,
    create_config_from_auto_result,
    create_config_from_form_state,
    create_minimal_config,
    device_ids,
    form_state_from_config,
    generate_auto_config,
    validate_config,
)
from signal_flow.models import Gain, GainParameters, routing_mixer


def _dests(config: Config) -> list[tuple[int, list[int]]]:
    mixer = routing_mixer(config)
    assert mixer is not None
    return [(m.dest, [s.channel for s in m.sources]) for m in mixer.mapping]


class TestFormState:
    def test_from_config(self, stereo_config: Config) -> None:
        form = form_state_from_config(stereo_config)
        assert form == DeviceFormState(
            input_backend="Alsa",
            input_device="hw:CARD=E2x2,DEV=0",
            input_channels=2,
            input_format="S32LE",
            output_backend="Alsa",
            output_device="hw:CARD=E2x2,DEV=0",
            output_channels=2,
            output_format="S32LE",
            sample_rate=48000,
            chunk_size=1024,
        )

    def test_missing_format_defaults(self, quad_config: Config) -> None:
        form = form_state_from_config(quad_config)
        assert form.input_format == "S32LE"
        assert form.output_device == "hw:1"
        assert form.sample_rate == 96000

    def test_round_trip(self, stereo_config: Config) -> None:
        form = form_state_from_config(stereo_config)
        assert apply_form_state(stereo_config, form) == stereo_config

    def test_defaults(self) -> None:
        assert DEFAULT_FORM_STATE.input_backend is None
        assert DEFAULT_FORM_STATE.input_channels == 2
        assert DEFAULT_FORM_STATE.chunk_size == 1024


class TestApplyFormState:
    def test_device_settings(self, stereo_config: Config) -> None:
        form = form_state_from_config(stereo_config).model_copy(
            update={
                "input_device": "",
                "output_backend": "Pulse",
                "output_format": "FLOAT32LE",
                "sample_rate": 44100,
                "chunk_size": 2048,
            }
        )
        config = apply_form_state(stereo_config, form)
        assert config.devices.capture.device is None
        assert config.devices.playback.type == "Pulse"
        assert config.devices.playback.format == "FLOAT32LE"
        assert config.devices.samplerate == 44100
        assert config.devices.chunksize == 2048

    def test_missing_backend_keeps_existing(self, stereo_config: Config) -> None:
        form = form_state_from_config(stereo_config).model_copy(update={"input_backend": None})
        assert apply_form_state(stereo_config, form).devices.capture.type == "Alsa"

    def test_shrink_prunes_routing(self, quad_config: Config) -> None:
        form = form_state_from_config(quad_config).model_copy(
            update={"input_channels": 2, "output_channels": 3}
        )
        config = apply_form_state(quad_config, form)
        assert routing_mixer(config).channels == MixerChannels(in_=2, out=3)
        assert _dests(config) == [(0, [0]), (1, [1])]
        assert config.devices.capture.channels == 2
        assert config.devices.playback.channels == 3

    def test_shrink_prunes_filter_steps(self, quad_config: Config) -> None:
        steps = [
            FilterStep(names=["trim"], channels=[3]),
            FilterStep(names=["trim"], channels=[0, 3]),
            FilterStep(names=["trim"]),
            MixerStep(name="routing"),
            FilterStep(names=["trim"], channels=[2]),
            FilterStep(names=["trim"], channels=[1]),
        ]
        config = quad_config.model_copy(
            update={
                "filters": {"trim": Gain(parameters=GainParameters(gain=-3.0))},
                "pipeline": steps,
            }
        )
        form = form_state_from_config(config).model_copy(
            update={"input_channels": 2, "output_channels": 2}
        )
        pruned = apply_form_state(config, form)
        assert pruned.pipeline == [
            FilterStep(names=["trim"], channels=[0]),
            FilterStep(names=["trim"]),
            MixerStep(name="routing"),
            FilterStep(names=["trim"], channels=[1]),
        ]
        assert validate_config(pruned) == []

    def test_shrink_round_trips_through_graph(self, quad_config: Config) -> None:
        form = form_state_from_config(quad_config).model_copy(
            update={
                "input_channels": 2,
                "output_channels": 3,
                "output_device": "hw:2",
                "input_format": "S24LE",
                "output_format": "FLOAT32LE",
            }
        )
        config = apply_form_state(quad_config, form)
        graph = build_graph(config)
        assert len(graph.inputs) == 2
        assert len(graph.outputs) == 3
        in_id, out_id = device_ids(config)
        assert graph.input_groups[0].id == in_id
        assert graph.output_groups[0].id == out_id
        assert out_id != device_ids(quad_config)[1]
        assert config.devices.capture.format == "S24LE"
        assert config.devices.playback.format == "FLOAT32LE"
        assert [(r.from_.channel_index, r.to.channel_index) for r in graph.routes] == [
            (0, 0),
            (1, 1),
        ]
        assert form_state_from_config(config) == form

    def test_grow_keeps_routes(self, quad_config: Config) -> None:
        form = form_state_from_config(quad_config).model_copy(update={"output_channels": 6})
        config = apply_form_state(quad_config, form)
        assert routing_mixer(config).channels == MixerChannels(in_=4, out=6)
        assert _dests(config) == _dests(quad_config)

    @pytest.mark.parametrize("out_channels", [2, 4])
    def test_dropped_source_removes_destination(self, out_channels: int) -> None:
        config = create_minimal_config("Alsa", "hw:0", 6, "Alsa", "hw:0", 4)
        mixer = Mixer(
            channels=MixerChannels(in_=6, out=4),
            mapping=[
                MixerMapping(dest=0, sources=[MixerSource(channel=0)]),
                MixerMapping(dest=3, sources=[MixerSource(channel=5)]),
            ],
        )
        config = config.model_copy(update={"mixers": {"routing": mixer}})
        form = form_state_from_config(config).model_copy(
            update={"input_channels": 4, "output_channels": out_channels}
        )
        assert _dests(apply_form_state(config, form)) == [(0, [0])]

    def test_matching_counts_leave_mixer_alone(self, quad_config: Config) -> None:
        form = form_state_from_config(quad_config)
        assert apply_form_state(quad_config, form).mixers is quad_config.mixers


class TestCreateConfig:
    def test_minimal(self) -> None:
        config = create_minimal_config("Wasapi", "Speakers", 2, "Wasapi", "", 6, sample_rate=96000)
        assert config.pipeline == [MixerStep(name="routing")]
        assert config.devices.playback.device is None
        assert config.devices.samplerate == 96000
        assert _dests(config) == [(0, [0]), (1, [1])]
        assert validate_config(config) == []

    def test_from_form_requires_backends(self) -> None:
        with pytest.raises(ConfigPreconditionError):
            create_config_from_form_state(DEFAULT_FORM_STATE)
        assert issubclass(ConfigPreconditionError, ValueError)

    def test_from_form(self) -> None:
        form = DEFAULT_FORM_STATE.model_copy(
            update={"input_backend": "Alsa", "output_backend": "Alsa", "output_channels": 4}
        )
        config = create_config_from_form_state(form)
        assert config.devices.capture.device is None
        assert routing_mixer(config).channels == MixerChannels(in_=2, out=4)
        assert form_state_from_config(config) == form

    def test_from_auto_result(self) -> None:
        result = generate_auto_config(DeviceInfo(device="hw:CARD=E2x2,DEV=0"), "Alsa")
        config = create_config_from_auto_result(result)
        assert config.devices.capture.device == "plughw:CARD=E2x2,DEV=0"
        assert config.devices.playback.device == "plughw:CARD=E2x2,DEV=0"
        assert config.devices.capture.format == "S32LE"
        assert _dests(config) == [(0, [0]), (1, [1])]
