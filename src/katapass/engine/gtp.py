"""GTP text helpers used by the interception broker.

Only two commands are ever built here: the "what if the opponent moved
instead" probe and the ``play <color> pass`` substitute. Everything else the
controller sends is forwarded untouched, so this module stays deliberately
small.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Tuple, Union

from .errors import GTPUsageError, WinrateParseError

UNDO_COMMAND = "undo\n"
PASS_OUTPUT = "=\nplay pass\n\n"

CONSIDERING_MESSAGE = "KataPass is considering passing...\n"
PLAY_MESSAGE = "KataPass has decided to play.\n"
PASS_MESSAGE = "KataPass has decided to pass.\n"

WINRATE_MARKER = "winrate"

PASS_COMMAND_PREFIX = "play "
PASS_COMMAND_SUFFIX = " pass\n"

# verb, separator, color token, everything after it
_COLOR_ARG_RE = re.compile(r"^(\s*\S+\s+)(\S+)(.*)$", re.DOTALL)


class Color(Enum):
    BLACK = "B"
    WHITE = "W"

    @classmethod
    def parse(cls, token: str) -> "Color":
        """Parse a GTP color token (``B``, ``w``, ``black``, ``White`` ...)."""
        key = token.strip().lower()
        if key in ("b", "black"):
            return cls.BLACK
        if key in ("w", "white"):
            return cls.WHITE
        raise GTPUsageError(f"Invalid color argument for genmove command: {token!r}")

    def opposite(self) -> "Color":
        return Color.WHITE if self is Color.BLACK else Color.BLACK


def split_line_ending(line: str) -> Tuple[str, str]:
    """Split *line* into its body and trailing ``\\n`` / ``\\r\\n``."""
    body = line.rstrip("\r\n")
    return body, line[len(body):]


def is_blank(line: str) -> bool:
    """True for lines carrying no command; GTP engines send no reply to them."""
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


def swap_color(line: str) -> Tuple[str, str]:
    """Return ``(color_token, line_with_opposite_color)``.

    The color is the second whitespace-delimited token. All other bytes of the
    line, including the line ending, are kept as they are.

    Raises:
        GTPUsageError: If there is no color token or it is not a color.
    """
    body, ending = split_line_ending(line)
    match = _COLOR_ARG_RE.match(body)
    if match is None:
        raise GTPUsageError(f"Genmove command requires color argument: {body!r}")
    head, token, tail = match.groups()
    opposite = Color.parse(token).opposite()
    return token, f"{head}{opposite.value}{tail}{ending}"


def pass_command(color_token: str) -> str:
    return f"{PASS_COMMAND_PREFIX}{color_token}{PASS_COMMAND_SUFFIX}"


def parse_winrate(response: Union[str, bytes]) -> float:
    """Return the highest winrate reported anywhere in *response*.

    Each line is tokenized on single spaces; the token following every
    ``winrate`` marker is read as a float. A response without markers yields
    0.0 and a marker that ends a line is ignored.

    Raises:
        WinrateParseError: If a marker is followed by something that is not a number.
    """
    if isinstance(response, bytes):
        response = response.decode("utf-8", errors="replace")

    best_winrate = 0.0
    for line in response.splitlines():
        tokens = line.split(" ")
        for marker, value in zip(tokens, tokens[1:]):
            if marker != WINRATE_MARKER:
                continue
            try:
                winrate = float(value)
            except ValueError:
                raise WinrateParseError(f"Winrate data invalid: {value!r}") from None
            if winrate > best_winrate:
                best_winrate = winrate
    return best_winrate
