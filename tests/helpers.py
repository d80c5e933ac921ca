"""Test engines and PCM helpers."""

import numpy as np

from resampler.engines.engine import ConversionEngine, EngineError, EngineResult
from resampler.resampler_config import ResamplerConfig, SampleFormat


class DelayEngine(ConversionEngine):
    """Passes frames through unchanged, holding back `latency` frames until the last chunk."""

    latency = 4
    instances = 0
    releases = 0

    def __init__(self, config: ResamplerConfig) -> None:
        super().__init__(config)
        DelayEngine.instances += 1
        self._held = np.empty((0, config.channels), dtype=config.dtype)
        self.converted_chunks: list[tuple[int, bool]] = []

    def _convert(self, frames: np.ndarray, last: bool) -> np.ndarray:
        self.converted_chunks.append((int(frames.shape[0]), last))
        combined = np.concatenate([self._held, frames], axis=0)
        if last:
            self._held = combined[:0]
            return combined
        split = max(0, combined.shape[0] - self.latency)
        self._held = combined[split:]
        return combined[:split]

    def _clear(self) -> None:
        self._held = self._held[:0]

    def _release(self) -> None:
        DelayEngine.releases += 1


class ShortReadEngine(DelayEngine):
    """Reports reading only half of each submitted chunk."""

    latency = 0

    def process(self, frames, max_frames, last=False):
        result = super().process(frames, max_frames, last)
        if frames is None:
            return result
        return EngineResult(output=result.output, frames_read=result.frames_read // 2)


class FailingFlushEngine(DelayEngine):
    def process(self, frames, max_frames, last=False):
        if frames is None:
            raise EngineError("flush failed")
        return super().process(frames, max_frames, last)


class BrokenEngine(ConversionEngine):
    def __init__(self, config: ResamplerConfig) -> None:
        raise EngineError("cannot create engine")


def tone(frames: int, channels: int = 1, fmt: SampleFormat = SampleFormat.I16) -> bytes:
    t = np.arange(frames, dtype=np.float64)
    wave = 0.25 * np.sin(2.0 * np.pi * t / 50.0)
    if fmt in (SampleFormat.I16, SampleFormat.I32):
        wave = wave * np.iinfo(fmt.dtype).max
    samples = np.repeat(wave[:, np.newaxis], channels, axis=1)
    return samples.astype(fmt.dtype).tobytes()
