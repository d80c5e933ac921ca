from dataclasses import dataclass
from enum import IntEnum
from typing import Literal


SoxrQuality = Literal["QQ", "LQ", "MQ", "HQ", "VHQ"]
SoxrDType = Literal["float32", "float64", "int32", "int16"]


class Quality(IntEnum):
    # Values follow the soxr recipe numbering, so they are not contiguous.
    QUICK = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 4
    VERY_HIGH = 6

    @property
    def soxr_name(self) -> SoxrQuality:
        return _soxr_quality_names[self]

    @property
    def cli_name(self) -> str:
        return self.name.lower().replace("_", "-")


class SampleFormat(IntEnum):
    F32 = 0
    F64 = 1
    I32 = 2
    I16 = 3

    @property
    def dtype(self) -> SoxrDType:
        return _format_dtypes[self]

    @property
    def sample_size(self) -> int:
        return _format_sample_sizes[self]

    @property
    def cli_name(self) -> str:
        return self.name.lower()


_soxr_quality_names: dict[Quality, SoxrQuality] = {
    Quality.QUICK: "QQ",
    Quality.LOW: "LQ",
    Quality.MEDIUM: "MQ",
    Quality.HIGH: "HQ",
    Quality.VERY_HIGH: "VHQ",
}

_format_dtypes: dict[SampleFormat, SoxrDType] = {
    SampleFormat.F32: "float32",
    SampleFormat.F64: "float64",
    SampleFormat.I32: "int32",
    SampleFormat.I16: "int16",
}

_format_sample_sizes: dict[SampleFormat, int] = {
    SampleFormat.F32: 4,
    SampleFormat.F64: 8,
    SampleFormat.I32: 4,
    SampleFormat.I16: 2,
}

# Upper bound on output frames requested per engine call while draining.
# Comfortably larger than the group delay of the slowest soxr recipe.
flush_capacity_frames = 32768

default_quality = Quality.HIGH


@dataclass(frozen=True)
class ResamplerConfig:
    input_rate: float
    output_rate: float
    channels: int
    format: SampleFormat
    quality: Quality
    stream: bool = False

    @property
    def sample_size(self) -> int:
        return self.format.sample_size

    @property
    def frame_size(self) -> int:
        return self.channels * self.format.sample_size

    @property
    def dtype(self) -> SoxrDType:
        return self.format.dtype

    @property
    def ratio(self) -> float:
        return self.output_rate / self.input_rate
