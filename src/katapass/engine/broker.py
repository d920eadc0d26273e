"""Interception broker: the loop between the controller and the engine.

Per controller line:
    1. Read the line (end of input ends the loop).
    2. If it starts with the intercept prefix, ask the engine what the
       opponent would score if they moved here instead, then undo that
       probe move. When the mover's resulting winrate reaches the pass
       threshold, answer the controller with a pass and send the engine a
       ``play <color> pass`` so its board stays in step.
    3. Write the (possibly substituted) line to the engine.
    4. Take the matching response off the handoff queue and relay it.

The broker is the only writer of engine stdin and the only reader of the
handoff queue, and it never has more than one command in flight. That is
what keeps each response paired with the command that produced it, including
the two extra round-trips made during evaluation.
"""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass
from typing import BinaryIO, Optional

from katapass.utils.config_schema import InterceptConfig

from . import gtp
from .errors import EngineProcessError
from .framer import END_OF_STREAM

LOGGER = logging.getLogger(__name__)

# Round-trips text through bytes unchanged, even when it is not valid UTF-8.
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"


@dataclass(frozen=True)
class Evaluation:
    """Outcome of probing the engine with the opponent's move."""

    winrate: float
    pass_command: str


@dataclass(frozen=True)
class InterceptDecision:
    should_pass: bool
    command: str


class InterceptionBroker:
    """Relays controller commands to the engine, intercepting move generation.

    Args:
        config: intercept prefix and pass threshold
        controller_in: binary stream the controller writes commands to
        controller_out: binary stream responses are relayed on
        diagnostics: binary stream for the decision messages
        engine_in: the engine's stdin
        responses: handoff queue filled by the ResponseFramer
    """

    def __init__(
        self,
        config: InterceptConfig,
        controller_in: BinaryIO,
        controller_out: BinaryIO,
        diagnostics: BinaryIO,
        engine_in: BinaryIO,
        responses: queue.Queue[Optional[bytes]],
    ) -> None:
        self.config = config
        self.controller_in = controller_in
        self.controller_out = controller_out
        self.diagnostics = diagnostics
        self.engine_in = engine_in
        self.responses = responses

    def run(self) -> None:
        """Serve controller lines until end of input."""
        while True:
            raw = self.controller_in.readline()
            if not raw:
                LOGGER.info("Controller input closed")
                return
            self.handle(raw.decode(ENCODING, ENCODING_ERRORS))

    def handle(self, line: str) -> None:
        if gtp.is_blank(line):
            LOGGER.debug("Skipping blank line %r", line)
            return

        if not line.startswith(self.config.prefix):
            self._send(line)
            self._write(self.controller_out, self._receive())
            return

        self._write_diagnostic(gtp.CONSIDERING_MESSAGE)
        decision = self.decide(line)
        if decision.should_pass:
            self._write_diagnostic(gtp.PASS_MESSAGE)
            self._write(self.controller_out, gtp.PASS_OUTPUT.encode(ENCODING))
            # The controller already has its reply; the engine's ack of the
            # substituted pass only keeps the two boards in step. Relaying
            # it too would give the controller two replies to one genmove.
            self._send(decision.command)
            self._receive()
        else:
            self._write_diagnostic(gtp.PLAY_MESSAGE)
            self._send(decision.command)
            self._write(self.controller_out, self._receive())

    def decide(self, line: str) -> InterceptDecision:
        evaluation = self.evaluate(line)
        should_pass = evaluation.winrate >= self.config.pass_threshold
        LOGGER.info(
            "Winrate after passing %.4f (threshold %.2f): %s",
            evaluation.winrate,
            self.config.pass_threshold,
            "pass" if should_pass else "play",
        )
        if should_pass:
            return InterceptDecision(True, evaluation.pass_command)
        return InterceptDecision(False, line)

    def evaluate(self, line: str) -> Evaluation:
        """Estimate the mover's winrate if they passed instead of playing.

        Lets the engine generate a move for the opponent on the current
        board, takes the best winrate it reports, and undoes the move again.

        Raises:
            GTPUsageError: If *line* has no valid color argument.
            WinrateParseError: If the engine reports a malformed winrate.
        """
        color, probe = gtp.swap_color(line)
        self._send(probe)
        opponent_winrate = gtp.parse_winrate(self._receive())
        LOGGER.debug("Opponent best winrate %.4f for %r", opponent_winrate, probe)

        self._send(gtp.UNDO_COMMAND)
        self._receive()
        return Evaluation(1.0 - opponent_winrate, gtp.pass_command(color))

    def _send(self, command: str) -> None:
        LOGGER.debug("-> engine %r", command)
        self._write(self.engine_in, command.encode(ENCODING, ENCODING_ERRORS))

    def _receive(self) -> bytes:
        response = self.responses.get()
        if response is END_OF_STREAM:
            raise EngineProcessError("Engine output closed while awaiting a response")
        LOGGER.debug("<- engine %r", response)
        return response

    def _write_diagnostic(self, message: str) -> None:
        self._write(self.diagnostics, message.encode(ENCODING))

    @staticmethod
    def _write(stream: BinaryIO, data: bytes) -> None:
        stream.write(data)
        stream.flush()
