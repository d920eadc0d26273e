"""Launch the engine and run the three KataPass loops around it.

Threads:
    broker  - controller stdin -> (intercept) -> engine stdin, responses -> controller stdout
    framer  - engine stdout -> handoff queue
    relay   - engine stderr -> our stderr
    waiter  - blocks on the engine process

Each thread reports to a single event queue when it returns or raises. The
supervisor blocks on that queue and stops at the first event that settles
the session:

    engine exited         -> return its exit status
    controller input ends -> close engine stdin, wait, return its exit status
    any loop raises       -> terminate the engine and re-raise, unless the
                             engine already died with a failure status,
                             which is then returned

The framer and relay finishing on their own only means the engine closed its
pipes; the waiter's event follows. Once settled, every thread is joined with
a short timeout so responses already framed still reach the controller.
"""

from __future__ import annotations

import logging
import queue
import subprocess
import sys
import threading
from typing import BinaryIO, Callable, Optional, Tuple

from katapass.utils.config_schema import ConfigModel, EngineConfig

from .broker import InterceptionBroker
from .errors import EngineProcessError
from .framer import ResponseFramer
from .relay import DiagnosticRelay

LOGGER = logging.getLogger(__name__)

SHUTDOWN_GRACE_SECONDS = 5.0
THREAD_JOIN_SECONDS = 1.0

BROKER = "broker"
FRAMER = "framer"
RELAY = "relay"
WAITER = "waiter"

Event = Tuple[str, Optional[BaseException]]


def spawn_engine(config: EngineConfig) -> subprocess.Popen:
    """Start the engine with all three stdio streams piped (binary)."""
    argv = config.argv()
    LOGGER.info("Starting engine: %s", " ".join(argv))
    try:
        return subprocess.Popen(
            argv,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as e:
        raise EngineProcessError(f"Failed to spawn engine process {config.path!r}: {e}") from e


class EngineSupervisor:
    """Owns the engine process for one controller session."""

    def __init__(
        self,
        config: ConfigModel,
        stdin: BinaryIO,
        stdout: BinaryIO,
        stderr: BinaryIO,
        shutdown_grace: float = SHUTDOWN_GRACE_SECONDS,
    ) -> None:
        self.config = config
        self.stdin = stdin
        self.stdout = stdout
        self.stderr = stderr
        self.shutdown_grace = shutdown_grace
        self._events: queue.Queue[Event] = queue.Queue()
        self._threads: list[threading.Thread] = []

    def run(self) -> int:
        """Run until the session ends and return the engine's exit status.

        Raises:
            EngineProcessError: If the engine cannot be started.
            KataPassError, OSError: Whatever a loop failed with.
        """
        process = spawn_engine(self.config.engine)
        responses: queue.Queue[Optional[bytes]] = queue.Queue()

        broker = InterceptionBroker(
            self.config.intercept,
            self.stdin,
            self.stdout,
            self.stderr,
            process.stdin,
            responses,
        )
        self._start(BROKER, broker.run)
        self._start(FRAMER, ResponseFramer(process.stdout, responses).run)
        self._start(RELAY, DiagnosticRelay(process.stderr, self.stderr).run)
        self._start(WAITER, process.wait)

        while True:
            name, error = self._events.get()
            if error is not None:
                LOGGER.error("%s loop failed: %s", name, error)
                if self._died(process, error):
                    break
                self._terminate(process)
                raise error
            if name == WAITER:
                LOGGER.info("Engine exited with code %s", process.returncode)
                break
            if name == BROKER:
                self._shutdown(process)
                break
            LOGGER.debug("%s loop reached end of stream", name)

        self._join()
        return process.returncode

    def _start(self, name: str, target: Callable[[], object]) -> None:
        def guarded() -> None:
            try:
                target()
            except Exception as e:
                self._events.put((name, e))
            else:
                self._events.put((name, None))

        thread = threading.Thread(target=guarded, name=f"katapass-{name}", daemon=True)
        self._threads.append(thread)
        thread.start()

    def _shutdown(self, process: subprocess.Popen) -> None:
        """Graceful stop after the controller hung up."""
        LOGGER.info("Closing engine input")
        try:
            process.stdin.close()
        except OSError:
            pass
        try:
            process.wait(timeout=self.shutdown_grace)
        except subprocess.TimeoutExpired:
            LOGGER.warning("Engine did not exit within %.1fs; terminating", self.shutdown_grace)
            self._terminate(process)
        LOGGER.info("Engine exited with code %s", process.returncode)

    def _died(self, process: subprocess.Popen, error: BaseException) -> bool:
        """True when *error* only reflects the engine exiting with a failure status."""
        if not isinstance(error, (EngineProcessError, OSError)):
            return False
        try:
            process.wait(timeout=self.shutdown_grace)
        except subprocess.TimeoutExpired:
            return False
        LOGGER.info("Engine exited with code %s", process.returncode)
        return process.returncode != 0

    def _terminate(self, process: subprocess.Popen) -> None:
        if process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=self.shutdown_grace)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()

    def _join(self) -> None:
        # Lets the broker relay the engine's last response (e.g. to quit).
        # A broker still blocked on controller input is a daemon and is
        # abandoned once the timeout passes.
        for thread in self._threads:
            thread.join(timeout=THREAD_JOIN_SECONDS)


def run_proxy(
    config: ConfigModel,
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[BinaryIO] = None,
    stderr: Optional[BinaryIO] = None,
) -> int:
    """Proxy this process's stdio to the configured engine."""
    supervisor = EngineSupervisor(
        config,
        stdin if stdin is not None else sys.stdin.buffer,
        stdout if stdout is not None else sys.stdout.buffer,
        stderr if stderr is not None else sys.stderr.buffer,
    )
    return supervisor.run()
