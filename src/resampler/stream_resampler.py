import logging
import math
import operator
from enum import Enum
from types import TracebackType
from typing import Any

import numpy as np

from resampler.engines.engine import ConversionEngine, EngineConstructor
from resampler.engines.soxr_engine import SoxrEngine
from resampler.resampler_config import (
    Quality,
    ResamplerConfig,
    SampleFormat,
    flush_capacity_frames,
)
from resampler.sinks.sink import ByteSink


class ResamplerError(Exception):
    # Input bytes that may be considered delivered despite the error.
    consumed: int

    def __init__(self, *args: object, consumed: int = 0) -> None:
        super().__init__(*args)
        self.consumed = consumed


class ResamplerConfigError(ResamplerError):
    pass


class InvalidSinkError(ResamplerConfigError):
    pass


class InvalidRateError(ResamplerConfigError):
    pass


class InvalidChannelCountError(ResamplerConfigError):
    pass


class InvalidQualityError(ResamplerConfigError):
    pass


class InvalidFormatError(ResamplerConfigError):
    pass


class ResamplerClosedError(ResamplerError):
    pass


class IncompleteFrameError(ResamplerError):
    pass


class InsufficientInputError(ResamplerError):
    pass


class ShortWriteError(ResamplerError):
    accepted: int
    expected: int

    def __init__(
        self, *args: object, consumed: int = 0, accepted: int, expected: int
    ) -> None:
        super().__init__(*args, consumed=consumed)
        self.accepted = accepted
        self.expected = expected


class ResamplerState(Enum):
    OPEN = "open"
    CLOSED = "closed"


def _check_sink(sink: Any) -> None:
    if sink is None or not callable(getattr(sink, "write", None)):
        raise InvalidSinkError("Sink is missing or has no write() method.")


def _check_rate(rate: Any) -> float:
    if isinstance(rate, bool):
        raise InvalidRateError(f"Invalid sampling rate: {rate!r}")
    try:
        value = float(rate)
    except (TypeError, ValueError) as e:
        raise InvalidRateError(f"Invalid sampling rate: {rate!r}") from e
    if not math.isfinite(value) or value <= 0:
        raise InvalidRateError(f"Invalid sampling rate: {rate!r}")
    return value


def _check_channels(channels: Any) -> int:
    if isinstance(channels, bool):
        raise InvalidChannelCountError(f"Invalid channel count: {channels!r}")
    try:
        count = operator.index(channels)
    except TypeError as e:
        raise InvalidChannelCountError(f"Invalid channel count: {channels!r}") from e
    if count < 1:
        raise InvalidChannelCountError(f"Invalid channel count: {channels!r}")
    return count


class Resampler:
    """
    Write-side adapter that feeds raw interleaved PCM through a sample rate
    converter and writes the converted bytes to a sink.

    In stream mode every write() tells the engine more input may follow,
    and the latency tail is flushed on reset() or close(). Otherwise each
    write() is the final input: the engine is drained within the same call
    and rejects further input until reset().

    Not safe for concurrent use.
    """

    _config: ResamplerConfig
    _sink: ByteSink
    _engine: ConversionEngine | None
    _state: ResamplerState

    def __init__(
        self,
        sink: ByteSink,
        input_rate: float,
        output_rate: float,
        channels: int,
        format: SampleFormat | int,
        quality: Quality | int,
        *,
        stream: bool = False,
        engine: EngineConstructor = SoxrEngine,
    ) -> None:
        _check_sink(sink)
        in_rate = _check_rate(input_rate)
        out_rate = _check_rate(output_rate)
        channel_count = _check_channels(channels)
        try:
            if isinstance(quality, bool):
                raise ValueError(quality)
            checked_quality = Quality(quality)
        except ValueError as e:
            raise InvalidQualityError(f"Invalid quality setting: {quality!r}") from e
        try:
            if isinstance(format, bool):
                raise ValueError(format)
            checked_format = SampleFormat(format)
        except ValueError as e:
            raise InvalidFormatError(f"Invalid format setting: {format!r}") from e

        self._config = ResamplerConfig(
            input_rate=in_rate,
            output_rate=out_rate,
            channels=channel_count,
            format=checked_format,
            quality=checked_quality,
            stream=bool(stream),
        )
        self._sink = sink
        self._engine = engine(self._config)
        self._state = ResamplerState.OPEN
        logging.info(
            "Opened %s resampler: %g Hz -> %g Hz, %d channel(s), %s, quality %s.",
            "streaming" if self._config.stream else "single-shot",
            in_rate,
            out_rate,
            channel_count,
            checked_format.cli_name,
            checked_quality.cli_name,
        )

    @property
    def config(self) -> ResamplerConfig:
        return self._config

    @property
    def state(self) -> ResamplerState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is ResamplerState.CLOSED

    def _require_open(self) -> ConversionEngine:
        if self._state is ResamplerState.CLOSED or self._engine is None:
            raise ResamplerClosedError("Resampler is closed.")
        return self._engine

    def write(self, data: bytes | bytearray | memoryview) -> int:
        """
        Resample whole PCM frames from data and write them to the sink.

        Returns how many input bytes count as delivered. A trailing partial
        frame is dropped and never counted.
        """
        engine = self._require_open()
        view = memoryview(data)
        if not view.c_contiguous:
            view = memoryview(view.tobytes())
        size = view.nbytes
        if size == 0:
            return 0

        config = self._config
        frame_size = config.frame_size
        frames_in = size // frame_size
        if frames_in == 0:
            raise IncompleteFrameError(
                f"Incomplete input frame data: {size} bytes, frame size is {frame_size}."
            )
        submitted = frames_in * frame_size
        if submitted != size:
            logging.debug(
                "Dropping %d trailing bytes of a fragmented frame.", size - submitted
            )

        frames_out = math.floor(frames_in * config.output_rate / config.input_rate)
        if frames_out == 0:
            raise InsufficientInputError(
                f"Not enough input to generate output: {frames_in} frame(s) at "
                f"{config.input_rate:g} Hz -> {config.output_rate:g} Hz."
            )

        samples = np.frombuffer(
            view, dtype=config.dtype, count=frames_in * config.channels
        ).reshape(frames_in, config.channels)
        last = not config.stream
        result = engine.process(samples, frames_out, last=last)

        produced, accepted = self._send(result.output)
        if last and accepted == produced:
            tail_produced, tail_accepted = self._flush(engine)
            produced += tail_produced
            accepted += tail_accepted

        consumed = self._consumed_bytes(
            submitted, frames_in, result.frames_read, produced, accepted
        )
        if accepted < produced:
            raise ShortWriteError(
                f"Sink accepted {accepted} of {produced} bytes.",
                consumed=consumed,
                accepted=accepted,
                expected=produced,
            )
        return consumed

    def _consumed_bytes(
        self,
        submitted: int,
        frames_in: int,
        frames_read: int,
        produced: int,
        accepted: int,
    ) -> int:
        # The caller cares about how much of its input is delivered, not
        # how many bytes went downstream.
        if frames_read >= frames_in and accepted >= produced:
            return submitted

        frame_size = self._config.frame_size
        scaled = int(accepted * self._config.input_rate / self._config.output_rate)
        scaled -= scaled % frame_size
        return min(scaled, frames_read * frame_size)

    def _send(self, output: np.ndarray) -> tuple[int, int]:
        produced = int(output.nbytes)
        if produced == 0:
            return 0, 0
        written = self._sink.write(output.tobytes())
        accepted = produced if written is None else min(int(written), produced)
        return produced, accepted

    def _flush(self, engine: ConversionEngine) -> tuple[int, int]:
        produced = 0
        accepted = 0
        while True:
            result = engine.process(None, flush_capacity_frames, last=True)
            if result.frames_written == 0:
                break
            chunk_produced, chunk_accepted = self._send(result.output)
            produced += chunk_produced
            accepted += chunk_accepted
            if chunk_accepted < chunk_produced:
                break

        logging.debug("Flushed %d bytes of buffered resampler output.", produced)
        return produced, accepted

    def _drain(self, engine: ConversionEngine) -> None:
        produced, accepted = self._flush(engine)
        if accepted < produced:
            raise ShortWriteError(
                f"Sink accepted {accepted} of {produced} flushed bytes.",
                accepted=accepted,
                expected=produced,
            )

    def reset(self, sink: ByteSink) -> None:
        """
        Reuse the resampler for a new conversion into sink without
        reallocating the engine. In stream mode, buffered output is first
        flushed to the old sink; a flush failure is raised once the reset
        has completed.
        """
        engine = self._require_open()
        _check_sink(sink)

        flush_error: Exception | None = None
        if self._config.stream:
            try:
                self._drain(engine)
            except Exception as e:
                logging.warning("Flush failed while resetting resampler: %s", e)
                flush_error = e

        self._sink = sink
        engine.clear()
        if flush_error is not None:
            raise flush_error

    def close(self) -> None:
        engine = self._require_open()
        try:
            if self._config.stream:
                self._drain(engine)
        except Exception as e:
            logging.warning(
                "Flush failed while closing resampler, releasing engine anyway: %s", e
            )
            raise
        finally:
            self._engine = None
            self._state = ResamplerState.CLOSED
            engine.close()

    # File-like interface
    def writable(self) -> bool:
        return not self.closed

    def readable(self) -> bool:
        return False

    def seekable(self) -> bool:
        return False

    def __enter__(self) -> "Resampler":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self.closed:
            self.close()
