import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT / "src"))

from unittest.mock import patch

import pytest
import yaml

from katapass import cli
from katapass.engine.errors import EngineProcessError


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "katapass.yaml"
    path.write_text(yaml.safe_dump({
        "engine": {"path": "katago", "args": "gtp"},
        "intercept": {"prefix": "genmove"},
    }))
    return path


def run_main(argv, **run_proxy_kwargs):
    """Run cli.main with the proxy and the final process exit stubbed out."""
    with patch("katapass.cli.run_proxy", **run_proxy_kwargs) as run_proxy, \
         patch("katapass.cli.terminate") as terminate:
        cli.main(argv)
    return run_proxy, terminate.call_args.args[0]


def test_main_exits_with_engine_status(config_path):
    run_proxy, code = run_main([str(config_path)], return_value=0)
    assert code == 0
    config = run_proxy.call_args.args[0]
    assert config.engine.path == "katago"


def test_main_propagates_nonzero_engine_status(config_path):
    _, code = run_main([str(config_path)], return_value=2)
    assert code == 2


def test_main_maps_signal_to_shell_status(config_path):
    _, code = run_main([str(config_path)], return_value=-9)
    assert code == 137


@pytest.mark.parametrize("returncode, expected", [(0, 0), (3, 3), (-15, 143)])
def test_exit_status(returncode, expected):
    assert cli.exit_status(returncode) == expected


def test_main_missing_config(tmp_path):
    with pytest.raises(SystemExit) as exc:
        cli.main([str(tmp_path / "missing.yaml")])
    assert exc.value.code == 1


def test_main_config_path_is_directory(tmp_path):
    with pytest.raises(SystemExit) as exc:
        cli.main([str(tmp_path)])
    assert exc.value.code == 1


def test_main_fatal_error(config_path):
    _, code = run_main([str(config_path)], side_effect=EngineProcessError("boom"))
    assert code == 1


def test_log_level_override(config_path):
    with patch("katapass.cli.setup_logging") as setup_logging:
        run_main([str(config_path), "--log-level", "debug"], return_value=0)
    assert setup_logging.call_args.args[0] == "DEBUG"
