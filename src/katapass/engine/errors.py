"""Exceptions raised by the KataPass core.

Every one of them is fatal: the CLI logs it and exits. A broken dialogue with
the engine cannot be resumed because the engine's board may no longer match
the controller's.
"""


class KataPassError(Exception):
    """Base class for KataPass failures."""


class GTPUsageError(KataPassError, ValueError):
    """An intercepted command is missing its color or names an unknown one."""


class WinrateParseError(KataPassError, ValueError):
    """A ``winrate`` marker in an engine response is not followed by a number."""


class EngineProcessError(KataPassError, RuntimeError):
    """The engine could not be started, closed its output, or exited abnormally."""
