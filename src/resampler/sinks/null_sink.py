from resampler.sinks.sink import ByteSink, SinkError


class NullSink(ByteSink):
    """
    ByteSink implementation that discards converted bytes.
    """

    def __init__(self) -> None:
        self._closed = False
        self.bytes_written = 0
        self.write_calls = 0

    def write(self, data: bytes) -> int:
        if self._closed:
            raise SinkError("Null sink is closed.")
        self.write_calls += 1
        self.bytes_written += len(data)
        return len(data)

    def close(self) -> None:
        self._closed = True
