"""Frame the engine's stdout byte stream into GTP responses.

GTP has no length prefix: a response ends with an empty line. The framer reads
one byte at a time and keeps the last three bytes in a sliding window. A
response is complete when the window looks like ``? \\n \\n`` or
``\\n ? \\n``, i.e. the last byte is a line break and one of the two before it
is as well. The second form tolerates ``\\r\\n`` line endings.

Each complete response (terminator included) is put on the handoff queue in
arrival order. The broker is the only consumer, and since the engine answers
commands serially the N-th response on the queue belongs to the N-th command
written to the engine.
"""

from __future__ import annotations

import logging
import queue
from collections import deque
from typing import BinaryIO, Deque, Optional

LOGGER = logging.getLogger(__name__)

LINE_BREAK = b"\n"[0]
WINDOW_SIZE = 3

# Put on the queue when the engine closes its stdout.
END_OF_STREAM = None


def is_terminator(window: Deque[int]) -> bool:
    """True when *window* (the last three bytes) closes a response."""
    return (
        len(window) == WINDOW_SIZE
        and (window[0] == LINE_BREAK or window[1] == LINE_BREAK)
        and window[2] == LINE_BREAK
    )


class ResponseFramer:
    """Reads engine stdout and emits one ``bytes`` item per GTP response."""

    def __init__(self, stream: BinaryIO, responses: queue.Queue[Optional[bytes]]):
        self.stream = stream
        self.responses = responses
        self.emitted = 0

    def run(self) -> None:
        response = bytearray()
        window: Deque[int] = deque(maxlen=WINDOW_SIZE)
        while True:
            byte = self.stream.read(1)
            if not byte:
                if response:
                    LOGGER.warning("Engine output closed mid-response; dropping %d bytes", len(response))
                LOGGER.debug("Engine output closed after %d responses", self.emitted)
                self.responses.put(END_OF_STREAM)
                return

            response += byte
            window.append(byte[0])
            if is_terminator(window):
                self.responses.put(bytes(response))
                self.emitted += 1
                response.clear()
                window.clear()
