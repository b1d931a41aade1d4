"""Engine configuration loaded from an optional YAML file and the environment."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from jsonschema import ValidationError, validate

from .errors import ConfigError

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "storeDir": {"type": "string"},
        "defaultSnoozeDays": {"type": "integer", "minimum": 0},
        "taxDueMonth": {"type": "integer", "minimum": 1, "maximum": 12},
        "taxDueDay": {"type": "integer", "minimum": 1, "maximum": 31},
        "oilDistanceKm": {"type": "integer", "minimum": 1},
    },
}


@dataclass
class EngineConfig:
    """Tunable values for the reminder engine."""

    store_dir: Path = field(default_factory=lambda: Path("data"))
    default_snooze_days: int = 7
    tax_due_month: int = 5
    tax_due_day: int = 31
    oil_distance_km: int = 5000


def load_config(
    filename: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> EngineConfig:
    """
    Build an EngineConfig.

    Order: defaults, then the YAML file (path argument or REMINDERS_CONFIG),
    then REMINDERS_DIR for the store directory.
    """
    env = os.environ if environ is None else environ
    config = EngineConfig()

    filename = filename or env.get("REMINDERS_CONFIG")
    if filename:
        data = _load_yaml(Path(filename))
        if "storeDir" in data:
            config.store_dir = Path(data["storeDir"])
        config.default_snooze_days = data.get("defaultSnoozeDays", config.default_snooze_days)
        config.tax_due_month = data.get("taxDueMonth", config.tax_due_month)
        config.tax_due_day = data.get("taxDueDay", config.tax_due_day)
        config.oil_distance_km = data.get("oilDistanceKm", config.oil_distance_km)

    if env.get("REMINDERS_DIR"):
        config.store_dir = Path(env["REMINDERS_DIR"])

    return config


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r") as fp:
            data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
        validate(instance=data, schema=CONFIG_SCHEMA)
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML parse error in {path}: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}: {e.message}") from e
    return data
