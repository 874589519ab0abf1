"""Device settings form: read from, write back to and create configs.

:func:`apply_form_state` is total. Shrinking the channel counts prunes the
routing mixer and the Filter steps so that nothing refers to a channel that
no longer exists; growing them never removes a route.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from signal_flow.devices import AutoConfigResult
from signal_flow.models import (
    ROUTING_MIXER_NAME,
    Config,
    DeviceConfig,
    Devices,
    FilterStep,
    Mixer,
    MixerChannels,
    MixerMapping,
    MixerStep,
    PipelineStep,
    SampleFormat,
)
from signal_flow.routing import create_default_routing_mixer

logger = logging.getLogger(__name__)

SAMPLE_FORMATS: tuple[SampleFormat, ...] = (
    "S16LE",
    "S24LE",
    "S24LE3",
    "S32LE",
    "FLOAT32LE",
    "FLOAT64LE",
)
COMMON_SAMPLE_RATES = (44100, 48000, 88200, 96000, 176400, 192000)
COMMON_CHUNK_SIZES = (256, 512, 1024, 2048, 4096)


class ConfigPreconditionError(ValueError):
    """Raised when a config is requested from incomplete device settings."""


class DeviceFormState(BaseModel):
    input_backend: str | None = None
    input_device: str = ""
    input_channels: int = Field(default=2, ge=1)
    input_format: SampleFormat = "S32LE"
    output_backend: str | None = None
    output_device: str = ""
    output_channels: int = Field(default=2, ge=1)
    output_format: SampleFormat = "S32LE"
    sample_rate: int = Field(default=48000, gt=0)
    chunk_size: int = Field(default=1024, gt=0)


DEFAULT_FORM_STATE = DeviceFormState()


def form_state_from_config(config: Config) -> DeviceFormState:
    capture = config.devices.capture
    playback = config.devices.playback
    return DeviceFormState(
        input_backend=capture.type,
        input_device=capture.device or "",
        input_channels=capture.channels,
        input_format=capture.format or "S32LE",
        output_backend=playback.type,
        output_device=playback.device or "",
        output_channels=playback.channels,
        output_format=playback.format or "S32LE",
        sample_rate=config.devices.samplerate,
        chunk_size=config.devices.chunksize,
    )


def _prune_mapping(
    mapping: list[MixerMapping], in_channels: int, out_channels: int
) -> list[MixerMapping]:
    pruned: list[MixerMapping] = []
    for entry in mapping:
        if entry.dest >= out_channels:
            continue
        sources = [s for s in entry.sources if s.channel < in_channels]
        if not sources:
            continue
        if len(sources) == len(entry.sources):
            pruned.append(entry)
        else:
            pruned.append(entry.model_copy(update={"sources": sources}))
    return pruned


def _prune_pipeline(
    pipeline: list[PipelineStep], mixers: dict[str, Mixer] | None, n_in: int
) -> list[PipelineStep]:
    """Drop Filter step channels past the channel count at each step.

    The count starts at the capture channels and follows each mixer's
    output count. A step whose channels are all dropped is removed.
    """
    current = n_in
    pruned: list[PipelineStep] = []
    for step in pipeline:
        if isinstance(step, MixerStep):
            mixer = (mixers or {}).get(step.name)
            if mixer is not None:
                current = mixer.channels.out
        elif isinstance(step, FilterStep) and step.channels:
            channels = [c for c in step.channels if c < current]
            if not channels:
                logger.debug("dropped filter step %s after channel change", step.names)
                continue
            if len(channels) != len(step.channels):
                step = step.model_copy(update={"channels": channels})
        pruned.append(step)
    return pruned


def apply_form_state(config: Config, form: DeviceFormState) -> Config:
    """Write the form's device settings into *config*.

    When the channel counts differ from the routing mixer's, its channels
    are updated and destinations or sources that fall outside the new
    counts are dropped, along with destinations left without sources.
    Filter steps lose the channels that no longer exist at their position.
    An empty device string clears the device.
    """
    n_in = form.input_channels
    n_out = form.output_channels

    mixers = config.mixers
    routing = (config.mixers or {}).get(ROUTING_MIXER_NAME)
    if routing is not None and (routing.channels.in_ != n_in or routing.channels.out != n_out):
        mapping = _prune_mapping(routing.mapping, n_in, n_out)
        dropped = len(routing.mapping) - len(mapping)
        if dropped:
            logger.debug("dropped %d routing destination(s) after channel change", dropped)
        mixers = {
            **(config.mixers or {}),
            ROUTING_MIXER_NAME: routing.model_copy(
                update={"channels": MixerChannels(in_=n_in, out=n_out), "mapping": mapping}
            ),
        }

    capture = config.devices.capture.model_copy(
        update={
            "type": form.input_backend or config.devices.capture.type,
            "device": form.input_device or None,
            "channels": n_in,
            "format": form.input_format,
        }
    )
    playback = config.devices.playback.model_copy(
        update={
            "type": form.output_backend or config.devices.playback.type,
            "device": form.output_device or None,
            "channels": n_out,
            "format": form.output_format,
        }
    )
    devices = config.devices.model_copy(
        update={
            "samplerate": form.sample_rate,
            "chunksize": form.chunk_size,
            "capture": capture,
            "playback": playback,
        }
    )
    pipeline = _prune_pipeline(config.pipeline, mixers, n_in)
    return config.model_copy(update={"devices": devices, "mixers": mixers, "pipeline": pipeline})


def create_minimal_config(
    capture_backend: str,
    capture_device: str,
    capture_channels: int,
    playback_backend: str,
    playback_device: str,
    playback_channels: int,
    capture_format: SampleFormat = "S32LE",
    playback_format: SampleFormat = "S32LE",
    sample_rate: int = 48000,
    chunk_size: int = 1024,
) -> Config:
    """A config with only a 1:1 routing mixer between capture and playback."""
    return Config(
        devices=Devices(
            samplerate=sample_rate,
            chunksize=chunk_size,
            capture=DeviceConfig(
                type=capture_backend,
                channels=capture_channels,
                device=capture_device or None,
                format=capture_format,
            ),
            playback=DeviceConfig(
                type=playback_backend,
                channels=playback_channels,
                device=playback_device or None,
                format=playback_format,
            ),
        ),
        mixers={
            ROUTING_MIXER_NAME: create_default_routing_mixer(capture_channels, playback_channels)
        },
        pipeline=[MixerStep(name=ROUTING_MIXER_NAME)],
    )


def create_config_from_form_state(form: DeviceFormState) -> Config:
    if not form.input_backend or not form.output_backend:
        raise ConfigPreconditionError(
            "input and output backends must be selected before creating a config"
        )
    return create_minimal_config(
        capture_backend=form.input_backend,
        capture_device=form.input_device,
        capture_channels=form.input_channels,
        capture_format=form.input_format,
        playback_backend=form.output_backend,
        playback_device=form.output_device,
        playback_channels=form.output_channels,
        playback_format=form.output_format,
        sample_rate=form.sample_rate,
        chunk_size=form.chunk_size,
    )


def create_config_from_auto_result(result: AutoConfigResult) -> Config:
    """Use the detected device for both capture and playback."""
    return create_minimal_config(
        capture_backend=result.backend,
        capture_device=result.device_for_config,
        capture_channels=result.channels,
        capture_format=result.format,
        playback_backend=result.backend,
        playback_device=result.device_for_config,
        playback_channels=result.channels,
        playback_format=result.format,
        sample_rate=result.sample_rate,
        chunk_size=result.chunk_size,
    )
