"""
Configuration management and loading.

Handles the price table and settings taken from environment variables.
"""

import math
import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import yaml

from ai_cost_estimator.core.debounce import DEFAULT_DELAY_SECONDS
from ai_cost_estimator.core.pricing import PriceEntry, PricingTable
from ai_cost_estimator.storage.db import DEFAULT_DB_PATH

ENV_DB_PATH = "AI_COST_ESTIMATOR_DB"
ENV_PRICING_PATH = "AI_COST_ESTIMATOR_PRICING"
ENV_MODEL = "AI_COST_ESTIMATOR_MODEL"
ENV_DEBOUNCE = "AI_COST_ESTIMATOR_DEBOUNCE"

DEFAULT_GENERATION_MODEL = "gpt-4.1-mini"

_ENTRY_KEYS = {'model', 'capability_score', 'input_cost_per_1k', 'output_cost_per_1k'}


@dataclass(frozen=True)
class Settings:
    """Runtime settings."""
    db_path: str = DEFAULT_DB_PATH
    pricing_path: Optional[str] = None
    generation_model: str = DEFAULT_GENERATION_MODEL
    debounce_seconds: float = DEFAULT_DELAY_SECONDS

    def __post_init__(self):
        """Validate settings values."""
        if not self.db_path:
            raise ValueError("db_path cannot be empty")
        if not self.generation_model:
            raise ValueError("generation_model cannot be empty")
        if self.debounce_seconds < 0:
            raise ValueError("debounce_seconds must be >= 0")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from environment variables.

    Raises:
        ValueError: If a variable holds an invalid value
    """
    env = os.environ if env is None else env

    raw_debounce = env.get(ENV_DEBOUNCE)
    if raw_debounce:
        try:
            debounce = float(raw_debounce)
        except ValueError:
            raise ValueError(f"{ENV_DEBOUNCE} must be a number, got {raw_debounce!r}")
    else:
        debounce = DEFAULT_DELAY_SECONDS

    return Settings(
        db_path=env.get(ENV_DB_PATH) or DEFAULT_DB_PATH,
        pricing_path=env.get(ENV_PRICING_PATH) or None,
        generation_model=env.get(ENV_MODEL) or DEFAULT_GENERATION_MODEL,
        debounce_seconds=debounce,
    )


def load_price_table(path: Optional[str] = None) -> PricingTable:
    """Load and validate a price table from YAML.

    Without a path the table bundled with the package is used. Validation is
    strict: a silently skipped entry would make a model vanish from results.

    Args:
        path: Path to a YAML price table, or None for the bundled one

    Returns:
        Validated PricingTable in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If the table is invalid
    """
    if path is None:
        source = "bundled pricing.yaml"
        text = resources.files("ai_cost_estimator.config").joinpath("pricing.yaml").read_text(encoding="utf-8")
    else:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Price table file not found: {path}")
        source = path
        with open(config_path, 'r', encoding='utf-8') as f:
            text = f.read()

    try:
        raw_config = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML in price table {source}: {e}")

    if not raw_config:
        raise ValueError("Price table is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Price table must be a dictionary")

    unknown_keys = set(raw_config.keys()) - {'models'}
    if unknown_keys:
        raise ValueError(f"Unknown price table keys: {unknown_keys}")

    if 'models' not in raw_config:
        raise ValueError("Missing required 'models' section")

    models_data = raw_config['models']
    if not isinstance(models_data, list) or not models_data:
        raise ValueError("'models' must be a non-empty list")

    entries: List[PriceEntry] = []
    for index, entry_data in enumerate(models_data):
        if not isinstance(entry_data, dict):
            raise ValueError(f"models[{index}] must be a dictionary")
        entries.append(_parse_entry(entry_data, f"models[{index}]"))

    return PricingTable(entries)


def _parse_entry(data: Dict, path: str) -> PriceEntry:
    """Parse and validate one price table entry.

    Args:
        data: Entry data
        path: Path for error messages

    Returns:
        Validated PriceEntry

    Raises:
        ValueError: If the entry is invalid
    """
    unknown_keys = set(data.keys()) - _ENTRY_KEYS
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    for key in sorted(_ENTRY_KEYS):
        if key not in data:
            raise ValueError(f"Missing required '{key}' in {path}")

    model = data['model']
    if not isinstance(model, str) or not model.strip():
        raise ValueError(f"'model' in {path} must be a non-empty string")

    numbers = {}
    for key in ('capability_score', 'input_cost_per_1k', 'output_cost_per_1k'):
        value = data[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
            raise ValueError(f"'{key}' in {path} must be a number >= 0")
        numbers[key] = float(value)

    return PriceEntry(
        model=model.strip(),
        capability_score=numbers['capability_score'],
        input_unit_price=numbers['input_cost_per_1k'],
        output_unit_price=numbers['output_cost_per_1k'],
    )
