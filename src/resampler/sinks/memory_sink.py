from resampler.sinks.sink import ByteSink, SinkError


class MemorySink(ByteSink):
    """
    Collects converted bytes in memory.

    max_accept caps how many bytes a single write() takes, which models a
    downstream that only accepts part of what it is given.
    """

    def __init__(self, max_accept: int | None = None) -> None:
        self._buffer = bytearray()
        self._closed = False
        self._max_accept = max_accept
        self.write_calls = 0

    def write(self, data: bytes) -> int:
        if self._closed:
            raise SinkError("Memory sink is closed.")
        self.write_calls += 1
        accepted = data if self._max_accept is None else data[: self._max_accept]
        self._buffer.extend(accepted)
        return len(accepted)

    def getvalue(self) -> bytes:
        return bytes(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)

    def close(self) -> None:
        self._closed = True
