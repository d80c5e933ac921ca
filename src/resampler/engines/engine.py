from abc import abstractmethod
from collections import deque
from dataclasses import dataclass

import numpy as np

from resampler.resampler_config import ResamplerConfig


class EngineError(Exception):
    pass


@dataclass(frozen=True)
class EngineResult:
    # [frames, channels], same dtype as the input
    output: np.ndarray
    frames_read: int

    @property
    def frames_written(self) -> int:
        return int(self.output.shape[0])


class ConversionEngine:
    """
    Block-based sample rate converter with a fixed configuration.

    Output beyond what a caller asked for is queued and handed out on the
    next process() call, so a call never returns more than max_frames.
    """

    _config: ResamplerConfig
    _pending: deque[np.ndarray]
    _pending_frames: int
    _ended: bool
    _released: bool
    _flush_chunk: np.ndarray

    def __init__(self, config: ResamplerConfig) -> None:
        self._config = config
        self._pending = deque()
        self._pending_frames = 0
        self._ended = False
        self._released = False
        self._flush_chunk = np.empty((0, config.channels), dtype=config.dtype)

    @property
    def config(self) -> ResamplerConfig:
        return self._config

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def pending_frames(self) -> int:
        return self._pending_frames

    @abstractmethod
    def _convert(self, frames: np.ndarray, last: bool) -> np.ndarray:
        raise NotImplementedError()

    @abstractmethod
    def _clear(self) -> None:
        raise NotImplementedError()

    @abstractmethod
    def _release(self) -> None:
        raise NotImplementedError()

    def process(
        self, frames: np.ndarray | None, max_frames: int, last: bool = False
    ) -> EngineResult:
        if self._released:
            raise EngineError("Engine has been released.")
        if frames is not None and self._ended:
            raise EngineError("Input submitted after end of stream.")
        if max_frames < 0:
            raise EngineError(f"Invalid output capacity: {max_frames}")

        frames_read = 0
        # A None input with last=False is a plain drain of queued output.
        if frames is not None or (last and not self._ended):
            chunk = self._flush_chunk if frames is None else frames
            converted = self._convert(chunk, last)
            frames_read = int(chunk.shape[0])
            if converted.shape[0] > 0:
                self._pending.append(converted)
                self._pending_frames += int(converted.shape[0])
            if last:
                self._ended = True

        return EngineResult(output=self._take(max_frames), frames_read=frames_read)

    def _take(self, max_frames: int) -> np.ndarray:
        taken: list[np.ndarray] = []
        wanted = min(max_frames, self._pending_frames)
        while wanted > 0:
            head = self._pending.popleft()
            if head.shape[0] > wanted:
                self._pending.appendleft(head[wanted:])
                head = head[:wanted]
            taken.append(head)
            wanted -= head.shape[0]
            self._pending_frames -= head.shape[0]

        if not taken:
            return self._flush_chunk
        if len(taken) == 1:
            return np.ascontiguousarray(taken[0])
        return np.concatenate(taken, axis=0)

    def clear(self) -> None:
        if self._released:
            raise EngineError("Engine has been released.")
        self._pending.clear()
        self._pending_frames = 0
        self._ended = False
        self._clear()

    def close(self) -> None:
        if self._released:
            return
        self._released = True
        self._pending.clear()
        self._pending_frames = 0
        self._release()


EngineConstructor = type[ConversionEngine]
