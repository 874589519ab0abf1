from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from signal_flow import (
    ChannelClip,
    ChannelNode,
    Config,
    FilterClip,
    ProcessingFilter,
    RouteClip,
    RouteEndpoint,
    build_graph,
    copy_channel,
    copy_filter,
    copy_route,
    parse_clipboard,
    paste_channel,
    paste_filter,
    paste_route,
    serialize_clipboard,
)
from signal_flow.clipboard import FilterClipData, RouteClipData
from signal_flow.models import (
    DeqBandSettings,
    Delay,
    DelayParameters,
    DiffEq,
    DiffEqParameters,
    Dither,
    Gain,
    GainParameters,
    Peaking,
)
from signal_flow.routing import find_route


def _gain(db: float) -> Gain:
    return Gain(parameters=GainParameters(gain=db))


@pytest.fixture
def stereo_nodes(stereo_config: Config) -> dict[str, ChannelNode]:
    graph = build_graph(stereo_config)
    return {
        "in0": graph.inputs[0],
        "in1": graph.inputs[1],
        "out0": graph.outputs[0],
        "out1": graph.outputs[1],
    }


# ---------------------------------------------------------------------------
# Copy and text round trip
# ---------------------------------------------------------------------------


class TestCopy:
    def test_copy_route(self, quad_config: Config) -> None:
        clip = copy_route(build_graph(quad_config).routes[3])
        assert clip.data == RouteClipData(gain=0.0, inverted=True, mute=False)

    def test_copy_single_filter(self, stereo_nodes: dict[str, ChannelNode]) -> None:
        clip = copy_filter(stereo_nodes["in0"], "Gain")
        assert clip is not None
        assert clip.data.config == _gain(-3.0)
        assert clip.data.bands is None

    def test_copy_empty_slot(self, stereo_nodes: dict[str, ChannelNode]) -> None:
        assert copy_filter(stereo_nodes["out0"], "Gain") is None
        assert copy_filter(stereo_nodes["out1"], "Biquad") is None

    def test_copy_block(self, stereo_nodes: dict[str, ChannelNode]) -> None:
        clip = copy_filter(stereo_nodes["out0"], "Biquad")
        assert clip is not None
        assert [b.name for b in clip.data.bands] == ["out_eq_1", "out_eq_2"]
        assert clip.data.config is None

    def test_copy_diffeq_settings(self) -> None:
        band = ProcessingFilter(
            name="d1", config=DiffEq(parameters=DiffEqParameters(a=[1.0], b=[1.0]))
        )
        node = ChannelNode(
            side="output", device_id="out:x", channel_index=0, label="Out 1"
        ).with_filters([band])
        settings = DeqBandSettings(biquad=Peaking(freq=200.0, gain=-3.0, q=2.0))
        clip = copy_filter(node, "DiffEq", deq={"d1": settings, "other": settings})
        assert clip is not None
        assert clip.data.deq == {"d1": settings}

    def test_copy_channel(self, stereo_nodes: dict[str, ChannelNode]) -> None:
        clip = copy_channel(stereo_nodes["out0"])
        assert clip.data.filters == stereo_nodes["out0"].filters


class TestSerialize:
    def test_envelope(self, stereo_nodes: dict[str, ChannelNode]) -> None:
        clip = copy_filter(stereo_nodes["in0"], "Gain")
        assert json.loads(serialize_clipboard(clip)) == {
            "app": "camilladsp-signalflow",
            "version": 1,
            "payload": {
                "kind": "filter",
                "data": {
                    "filterType": "Gain",
                    "config": {"type": "Gain", "parameters": {"gain": -3.0}},
                },
            },
        }

    def test_parse(self, stereo_nodes: dict[str, ChannelNode]) -> None:
        clip = copy_channel(stereo_nodes["out0"])
        parsed = parse_clipboard(serialize_clipboard(clip))
        assert isinstance(parsed, ChannelClip)
        assert parsed == clip

    def test_parse_route(self) -> None:
        text = json.dumps(
            {
                "app": "camilladsp-signalflow",
                "version": 1,
                "payload": {"kind": "route", "data": {"gain": -2, "inverted": True, "mute": False}},
            }
        )
        parsed = parse_clipboard(text)
        assert isinstance(parsed, RouteClip)
        assert parsed.data.gain == -2.0

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "not json",
            "[]",
            '{"app": "other", "version": 1, "payload": {"kind": "route", '
            '"data": {"gain": 0, "inverted": false, "mute": false}}}',
            '{"app": "camilladsp-signalflow", "version": 2, "payload": {"kind": "route", '
            '"data": {"gain": 0, "inverted": false, "mute": false}}}',
            '{"app": "camilladsp-signalflow", "version": 1, "payload": {"kind": "bogus"}}',
        ],
    )
    def test_invalid_text_gives_none(self, text: str) -> None:
        assert parse_clipboard(text) is None

    def test_filter_data_shape(self) -> None:
        with pytest.raises(ValidationError):
            FilterClipData(filter_type="Gain")
        with pytest.raises(ValidationError):
            FilterClipData(filter_type="Gain", config=Delay(parameters=DelayParameters(delay=1)))
        with pytest.raises(ValidationError):
            FilterClipData(
                filter_type="Gain", bands=[ProcessingFilter(name="g", config=_gain(1.0))]
            )


# ---------------------------------------------------------------------------
# Paste
# ---------------------------------------------------------------------------


class TestPasteFilter:
    def test_statuses(self, stereo_nodes: dict[str, ChannelNode]) -> None:
        gain_clip = copy_filter(stereo_nodes["in0"], "Gain")
        out1 = stereo_nodes["out1"]
        assert paste_filter(out1, None, "Gain").status == "empty"
        assert paste_filter(out1, copy_channel(out1), "Gain").status == "kind_mismatch"
        assert paste_filter(out1, gain_clip, "Delay").status == "type_mismatch"

    def test_output_only_type_rejected_on_input(
        self, stereo_nodes: dict[str, ChannelNode]
    ) -> None:
        clip = FilterClip(data=FilterClipData(filter_type="Dither", config=Dither()))
        result = paste_filter(stereo_nodes["in1"], clip, "Dither")
        assert result.status == "type_mismatch"
        assert not result.applied
        assert result.node is None

    def test_paste_appends_new_singleton(self, stereo_nodes: dict[str, ChannelNode]) -> None:
        clip = copy_filter(stereo_nodes["in0"], "Gain")
        result = paste_filter(stereo_nodes["out1"], clip, "Gain")
        assert result.applied
        assert [f.name for f in result.node.filters] == ["out_delay", "o1_gain"]
        assert result.node.processing_summary.has_gain

    def test_paste_replaces_keeping_name(self, stereo_nodes: dict[str, ChannelNode]) -> None:
        clip = FilterClip(data=FilterClipData(filter_type="Gain", config=_gain(4.0)))
        result = paste_filter(stereo_nodes["in0"], clip, "Gain")
        assert [f.name for f in result.node.filters] == ["in_gain"]
        assert result.node.filters[0].config == _gain(4.0)

    def test_paste_block(self, stereo_nodes: dict[str, ChannelNode]) -> None:
        clip = copy_filter(stereo_nodes["out0"], "Biquad")
        result = paste_filter(stereo_nodes["out1"], clip, "Biquad")
        assert result.applied
        assert [f.name for f in result.node.filters] == ["out_delay", "out_eq_1", "out_eq_2"]
        assert result.node.processing_summary.biquad_count == 2

    def test_paste_block_onto_itself(self, stereo_nodes: dict[str, ChannelNode]) -> None:
        clip = copy_filter(stereo_nodes["out0"], "Biquad")
        result = paste_filter(stereo_nodes["out0"], clip, "Biquad")
        assert result.node.filters == stereo_nodes["out0"].filters

    def test_block_paste_returns_deq_settings(self) -> None:
        band = ProcessingFilter(
            name="d1", config=DiffEq(parameters=DiffEqParameters(a=[1.0], b=[1.0]))
        )
        settings = DeqBandSettings(biquad=Peaking(freq=200.0, gain=-3.0, q=2.0))
        clip = FilterClip(
            data=FilterClipData(filter_type="DiffEq", bands=[band], deq={"d1": settings})
        )
        node = ChannelNode(side="input", device_id="in:x", channel_index=1, label="In 2")
        result = paste_filter(node, clip, "DiffEq")
        assert result.applied
        assert result.deq == {"d1": settings}


class TestPasteChannel:
    def test_replaces_chain(self, stereo_nodes: dict[str, ChannelNode]) -> None:
        result = paste_channel(stereo_nodes["out1"], copy_channel(stereo_nodes["out0"]))
        assert result.applied
        assert result.node.filters == stereo_nodes["out0"].filters
        assert result.node.channel_index == 1

    def test_rejects_invalid_chain_for_side(self, stereo_nodes: dict[str, ChannelNode]) -> None:
        node = stereo_nodes["out1"].with_filters([ProcessingFilter(name="dth", config=Dither())])
        result = paste_channel(stereo_nodes["in1"], copy_channel(node))
        assert result.status == "type_mismatch"

    def test_statuses(self, stereo_nodes: dict[str, ChannelNode]) -> None:
        route_clip = RouteClip(data=RouteClipData(gain=0.0, inverted=False, mute=False))
        assert paste_channel(stereo_nodes["in0"], None).status == "empty"
        assert paste_channel(stereo_nodes["in0"], route_clip).status == "kind_mismatch"


class TestPasteRoute:
    def _ep(self, prefix: str, ch: int) -> RouteEndpoint:
        return RouteEndpoint(device_id=f"{prefix}:hw1", channel_index=ch)

    def test_applies_to_existing_route(self, quad_config: Config) -> None:
        clip = copy_route(build_graph(quad_config).routes[3])
        result = paste_route(quad_config, self._ep("in", 1), self._ep("out", 1), clip)
        assert result.applied
        route = find_route(result.config, self._ep("in", 1), self._ep("out", 1))
        assert route is not None and route.inverted

    def test_statuses(self, quad_config: Config) -> None:
        clip = RouteClip(data=RouteClipData(gain=-1.0, inverted=False, mute=True))
        src, dst = self._ep("in", 1), self._ep("out", 0)
        assert paste_route(quad_config, src, dst, clip).status == "no_target"
        assert paste_route(quad_config, src, dst, None).status == "empty"
        filter_clip = FilterClip(data=FilterClipData(filter_type="Gain", config=_gain(1.0)))
        assert paste_route(quad_config, src, dst, filter_clip).status == "kind_mismatch"
