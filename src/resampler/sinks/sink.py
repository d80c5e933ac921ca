from abc import abstractmethod


class SinkError(Exception):
    pass


class ByteSink:
    """
    Destination for converted PCM bytes.

    The resampler only needs a callable write(), so file objects and
    io.BytesIO work as sinks too. write() returns the number of bytes
    accepted; None means all of them.
    """

    @abstractmethod
    def write(self, data: bytes) -> int | None:
        raise NotImplementedError()

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError()
