"""
Loading and saving trace configurations as files.

Configurations are stored as tagged JSON documents. YAML is accepted when
loading, so hand-written configurations may use either syntax.
"""

import json
import logging
from pathlib import Path
from typing import Union

import yaml

from .exceptions import ConfigLoadError
from .model.base import TraceConfig
from .model.bw import BwTraceConfig

logger = logging.getLogger(__name__)


def load_config(
    path: Union[str, Path],
    kind: type = BwTraceConfig,
    human: bool = False,
) -> TraceConfig:
    """
    Load a trace configuration from a JSON or YAML file.

    Args:
        path: Path to the configuration file.
        kind: Expected configuration kind, e.g. BwTraceConfig or
            DelayTraceConfig. TraceConfig accepts any kind.
        human: Whether bandwidths and durations are written as strings
            ("12Mbps", "1s") instead of structured mappings.

    Returns:
        The decoded configuration.

    Raises:
        ConfigLoadError: If the file cannot be read or parsed.
        ConfigDecodeError: If the document is not a valid configuration.

    Example:
        >>> config = load_config("bw.json")
        >>> trace = config.build()
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = f.read()
    except FileNotFoundError:
        raise ConfigLoadError(str(path), "file not found")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(str(path), str(e))

    # YAML 1.1 reads exponent floats such as 1e-05 as strings, so JSON
    # documents go through the JSON parser.
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigLoadError(str(path), f"invalid YAML/JSON: {e}")

    if not data:
        raise ConfigLoadError(str(path), "empty file")

    config = kind.from_dict(data, human=human)
    logger.info(f"Loaded {type(config).__name__} from {path}")
    return config


def dump_config(
    config: TraceConfig, path: Union[str, Path], human: bool = False
) -> None:
    """
    Write a trace configuration to a file as compact JSON.

    Args:
        config: The configuration to save.
        path: Destination file.
        human: Write bandwidths and durations as human-readable strings.
    """
    Path(path).write_text(config.to_json(human=human), encoding="utf-8")
    logger.info(f"Saved {type(config).__name__} to {path}")
