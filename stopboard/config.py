import json
import logging
import os
from typing import Any, List

from .errors import ConfigError
from .models import System

log = logging.getLogger("stopboard")


def env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def env_csv(name: str, default: str) -> List[str]:
    value = os.getenv(name, default)
    return [item.strip() for item in value.split(",") if item.strip()]


def reject_constant(name: str) -> Any:
    # NaN and Infinity are accepted by the json module but are not JSON
    raise ValueError(f"Invalid JSON constant ({name})")


def load_system(filename: str) -> System:
    """Read the JSON configuration file and build the transit system from it."""
    if not filename:
        raise ConfigError("No configuration provided. Use '--config=<config filename>'")
    try:
        with open(filename, encoding="utf-8") as f:
            doc = json.load(f, parse_constant=reject_constant)
    except OSError as exc:
        raise ConfigError(f"Unable to open configuration file ({filename})") from exc
    except (ValueError, RecursionError) as exc:
        raise ConfigError("Malformed json configuration") from exc

    log.info("Using configuration file (%s)", filename)
    return System.from_document(doc, ConfigError)
