import sys
from io import BytesIO
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT / "src"))

from unittest.mock import MagicMock

from katapass.engine.relay import DiagnosticRelay


def test_relay_copies_bytes_verbatim():
    data = "KataGo v1.12\r\nLoaded model é\x00\n".encode("utf-8")
    sink = BytesIO()
    DiagnosticRelay(BytesIO(data), sink).run()
    assert sink.getvalue() == data


def test_relay_flushes_every_byte():
    sink = MagicMock()
    DiagnosticRelay(BytesIO(b"ok\n"), sink).run()
    assert sink.write.call_count == 3
    assert sink.flush.call_count == 3
