"""Byte-for-byte passthrough of the engine's stderr."""

from typing import BinaryIO


class DiagnosticRelay:
    """Copies the engine's diagnostic stream to our own, one byte at a time."""

    def __init__(self, stream: BinaryIO, sink: BinaryIO):
        self.stream = stream
        self.sink = sink

    def run(self) -> None:
        while True:
            byte = self.stream.read(1)
            if not byte:
                return
            self.sink.write(byte)
            self.sink.flush()
