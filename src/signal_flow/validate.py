from __future__ import annotations

from signal_flow.models import Config, FilterStep, MixerStep

MIN_RECOMMENDED_SAMPLERATE = 44100


class ConfigValidationError(str):
    """A structured validation error that behaves as a plain string.

    ``path`` is a dotted location in the config (``pipeline[2].channels[0]``,
    ``mixers.routing.mapping[1].dest``).
    """

    kind: str
    path: str | None
    severity: str  # "error" | "warning"

    def __new__(
        cls,
        kind: str,
        message: str,
        *,
        path: str | None = None,
        severity: str = "error",
    ) -> ConfigValidationError:
        return super().__new__(cls, message)

    def __init__(
        self,
        kind: str,
        message: str,
        *,
        path: str | None = None,
        severity: str = "error",
    ) -> None:
        self.kind = kind
        self.path = path
        self.severity = severity


def _warning(kind: str, message: str, path: str) -> ConfigValidationError:
    return ConfigValidationError(kind, message, path=path, severity="warning")


def validate_config(config: Config) -> list[ConfigValidationError]:
    """Check a schema-valid config for problems the engine would reject.

    Returns errors followed by warnings (empty = valid and clean). The channel
    count is tracked through the pipeline: it starts at the capture channel
    count and every mixer step changes it to the mixer's output count.
    """
    errors: list[ConfigValidationError] = []
    filters = config.filters or {}
    mixers = config.mixers or {}

    # 1. Pipeline references and channel counts
    current = config.devices.capture.channels
    for i, step in enumerate(config.pipeline):
        if isinstance(step, MixerStep):
            mixer = mixers.get(step.name)
            if mixer is None:
                errors.append(
                    ConfigValidationError(
                        "undefined_mixer",
                        f"Mixer '{step.name}' is not defined in mixers",
                        path=f"pipeline[{i}].name",
                    )
                )
                continue
            if mixer.channels.in_ != current:
                errors.append(
                    ConfigValidationError(
                        "mixer_channel_mismatch",
                        f"Mixer '{step.name}' expects {mixer.channels.in_} input channels, "
                        f"but the pipeline has {current} at this step",
                        path=f"pipeline[{i}].name",
                    )
                )
            for j, mapping in enumerate(mixer.mapping):
                if not 0 <= mapping.dest < mixer.channels.out:
                    errors.append(
                        ConfigValidationError(
                            "mixer_dest_out_of_range",
                            f"Destination channel {mapping.dest} is out of range "
                            f"(0..{mixer.channels.out - 1})",
                            path=f"mixers.{step.name}.mapping[{j}].dest",
                        )
                    )
                for k, source in enumerate(mapping.sources):
                    if not 0 <= source.channel < mixer.channels.in_:
                        errors.append(
                            ConfigValidationError(
                                "mixer_source_out_of_range",
                                f"Source channel {source.channel} is out of range "
                                f"(0..{mixer.channels.in_ - 1})",
                                path=f"mixers.{step.name}.mapping[{j}].sources[{k}].channel",
                            )
                        )
            current = mixer.channels.out
        elif isinstance(step, FilterStep):
            for name in step.names:
                if name not in filters:
                    errors.append(
                        ConfigValidationError(
                            "undefined_filter",
                            f"Filter '{name}' is not defined in filters",
                            path=f"pipeline[{i}].names",
                        )
                    )
            for c, channel in enumerate(step.channels or []):
                if not 0 <= channel < current:
                    errors.append(
                        ConfigValidationError(
                            "pipeline_channel_out_of_range",
                            f"Channel index {channel} is out of range "
                            f"(0..{current - 1}) at this step",
                            path=f"pipeline[{i}].channels[{c}]",
                        )
                    )

    # 2. The pipeline must end with the playback channel count
    if current != config.devices.playback.channels:
        errors.append(
            ConfigValidationError(
                "playback_channel_mismatch",
                f"Playback device expects {config.devices.playback.channels} channels, "
                f"but the pipeline ends with {current}",
                path="devices.playback.channels",
            )
        )

    # 3. Warnings
    warnings: list[ConfigValidationError] = []
    used_filters = {n for s in config.pipeline if isinstance(s, FilterStep) for n in s.names}
    for name in filters:
        if name not in used_filters:
            warnings.append(
                _warning(
                    "unused_filter",
                    f"Filter '{name}' is defined but not used in the pipeline",
                    f"filters.{name}",
                )
            )

    used_mixers = {s.name for s in config.pipeline if isinstance(s, MixerStep)}
    for name in mixers:
        if name not in used_mixers:
            warnings.append(
                _warning(
                    "unused_mixer",
                    f"Mixer '{name}' is defined but not used in the pipeline",
                    f"mixers.{name}",
                )
            )

    samplerate = config.devices.samplerate
    if samplerate < MIN_RECOMMENDED_SAMPLERATE:
        warnings.append(
            _warning(
                "low_samplerate",
                f"Sample rate {samplerate} Hz is lower than CD quality "
                f"({MIN_RECOMMENDED_SAMPLERATE} Hz)",
                "devices.samplerate",
            )
        )

    chunksize = config.devices.chunksize
    if chunksize & (chunksize - 1):
        warnings.append(
            _warning(
                "non_power_of_two_chunksize",
                f"Chunk size {chunksize} is not a power of 2",
                "devices.chunksize",
            )
        )

    return errors + warnings
