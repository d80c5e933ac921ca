import logging

import numpy as np
import soxr

from resampler.engines.engine import ConversionEngine, EngineError
from resampler.resampler_config import ResamplerConfig


class SoxrEngine(ConversionEngine):
    _resampler: soxr.ResampleStream | None

    def __init__(self, config: ResamplerConfig) -> None:
        super().__init__(config)
        try:
            self._resampler = soxr.ResampleStream(
                in_rate=float(config.input_rate),
                out_rate=float(config.output_rate),
                num_channels=config.channels,
                dtype=config.dtype,
                quality=config.quality.soxr_name,
            )
        except Exception as e:
            raise EngineError(f"Failed to create soxr resampler: {e}") from e

    def _convert(self, frames: np.ndarray, last: bool) -> np.ndarray:
        if self._resampler is None:
            raise EngineError("soxr resampler is released.")
        # Older python-soxr builds only take writable, C-contiguous input.
        if not frames.flags.writeable or not frames.flags.c_contiguous:
            frames = np.array(frames, copy=True, order="C")
        try:
            resampled = self._resampler.resample_chunk(frames, last=last)
        except Exception as e:
            raise EngineError(str(e)) from e

        # soxr hands mono input back as 1-D on some versions.
        if resampled.ndim == 1:
            resampled = resampled.reshape(-1, self._config.channels)
        return resampled

    def _clear(self) -> None:
        if self._resampler is not None:
            self._resampler.clear()

    def _release(self) -> None:
        resampler = self._resampler
        self._resampler = None
        if resampler is not None and resampler.num_clips():
            logging.debug(
                "soxr clipped %d samples before release.", resampler.num_clips()
            )
