import configparser
import os

import yaml
from pydantic import ValidationError

from .config_schema import ConfigModel

LEGACY_SECTION = "KATAPASS"
LEGACY_FIELDS = {
    "ENGINE": ("engine", "path"),
    "ARGS": ("engine", "args"),
    "INTERCEPT": ("intercept", "prefix"),
}
LEGACY_SUFFIXES = (".ini", ".cfg")


def _read_legacy_ini(config_path: str) -> dict:
    """Map a ``[KATAPASS]`` INI file onto the YAML layout."""
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str.upper
    try:
        parser.read(config_path, encoding="utf-8")
    except configparser.Error as e:
        raise ValueError(f"Failed to parse config file {config_path}: {e}") from e

    if not parser.has_section(LEGACY_SECTION):
        raise ValueError(f"Section missing from config: {LEGACY_SECTION}")

    raw_config: dict = {}
    for field, (section, key) in LEGACY_FIELDS.items():
        if not parser.has_option(LEGACY_SECTION, field):
            raise ValueError(f"Field missing from config: {field}")
        raw_config.setdefault(section, {})[key] = parser.get(LEGACY_SECTION, field)
    return raw_config


def load_config(config_path: str = "configs/katapass.yaml") -> ConfigModel:
    """Load and validate a KataPass configuration file.

    YAML is the native format. Files ending in ``.ini`` or ``.cfg`` are read
    as legacy KataPass configs with ``ENGINE``, ``ARGS`` and ``INTERCEPT`` keys
    in a ``[KATAPASS]`` section.

    Args:
        config_path: Path to the configuration file.

    Returns:
        ConfigModel: The validated configuration with defaults applied.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ValueError: If the file cannot be parsed or fails schema validation.
    """

    if not os.path.isfile(config_path):
        raise FileNotFoundError(f"Configuration file not found at: {config_path}")

    if config_path.lower().endswith(LEGACY_SUFFIXES):
        raw_config = _read_legacy_ini(config_path)
    else:
        with open(config_path, "r", encoding="utf-8") as f:
            try:
                raw_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Failed to parse config file {config_path}: {e}") from e
        if not isinstance(raw_config, dict):
            raise ValueError(f"Invalid configuration: expected a mapping in {config_path}")

    try:
        return ConfigModel(**raw_config)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
