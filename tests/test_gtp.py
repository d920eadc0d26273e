import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT / "src"))

import pytest

from katapass.engine import gtp
from katapass.engine.errors import GTPUsageError, WinrateParseError
from katapass.engine.gtp import Color


@pytest.mark.parametrize("color", list(Color))
def test_opposite_is_an_involution(color):
    assert color.opposite() != color
    assert color.opposite().opposite() == color


@pytest.mark.parametrize(
    "token, expected",
    [("B", Color.BLACK), ("b", Color.BLACK), ("black", Color.BLACK),
     ("W", Color.WHITE), ("White", Color.WHITE)],
)
def test_color_parse(token, expected):
    assert Color.parse(token) is expected


def test_color_parse_rejects_unknown():
    with pytest.raises(GTPUsageError):
        Color.parse("red")


def test_swap_color():
    assert gtp.swap_color("genmove B\n") == ("B", "genmove W\n")
    assert gtp.swap_color("genmove w\r\n") == ("w", "genmove B\r\n")


def test_swap_color_keeps_other_tokens():
    token, swapped = gtp.swap_color("kata-genmove_analyze B 50 ownership true\n")
    assert token == "B"
    assert swapped == "kata-genmove_analyze W 50 ownership true\n"


@pytest.mark.parametrize("line", ["genmove\n", "genmove \n", "genmove"])
def test_swap_color_requires_color(line):
    with pytest.raises(GTPUsageError):
        gtp.swap_color(line)


def test_swap_color_rejects_unknown_color():
    with pytest.raises(GTPUsageError):
        gtp.swap_color("genmove X\n")


def test_pass_command():
    assert gtp.pass_command("B") == "play B pass\n"


def test_split_line_ending():
    assert gtp.split_line_ending("genmove B\r\n") == ("genmove B", "\r\n")
    assert gtp.split_line_ending("genmove B") == ("genmove B", "")


@pytest.mark.parametrize("line", ["\n", "   \r\n", "# a comment\n"])
def test_is_blank(line):
    assert gtp.is_blank(line)


def test_is_blank_false_for_commands():
    assert not gtp.is_blank("name\n")


def test_parse_winrate_takes_maximum():
    response = (
        "= D4\n"
        "info move D4 visits 120 winrate 0.12 pv D4\n"
        "info move Q16 visits 300 winrate 0.77 pv Q16 D4\n"
        "info move C3 visits 10 winrate 0.45\n"
        "\n"
    )
    assert gtp.parse_winrate(response) == 0.77


def test_parse_winrate_several_markers_on_one_line():
    response = "info move D4 winrate 0.3 info move Q4 winrate 0.6\n\n"
    assert gtp.parse_winrate(response) == 0.6


def test_parse_winrate_accepts_bytes():
    assert gtp.parse_winrate(b"= D4\nwinrate 0.85\n\n") == 0.85


def test_parse_winrate_without_marker():
    assert gtp.parse_winrate("= D4\n\n") == 0.0


def test_parse_winrate_ignores_trailing_marker():
    assert gtp.parse_winrate("note winrate\n\n") == 0.0


def test_parse_winrate_malformed():
    with pytest.raises(WinrateParseError):
        gtp.parse_winrate("info move D4 winrate high\n\n")
