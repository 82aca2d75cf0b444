"""
Unit tests for configuration loading and validation.

Tests strict validation of price tables and environment settings.
"""

import os
import tempfile

import pytest
import yaml

from ai_cost_estimator.config.loader import (
    DEFAULT_DB_PATH,
    DEFAULT_GENERATION_MODEL,
    Settings,
    load_price_table,
    load_settings,
)
from ai_cost_estimator.core.pricing import PricingTable


class TestPriceTableLoading:
    """Test price table loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "pricing.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def _entry(self, model="model-a", **overrides):
        entry = {
            "model": model,
            "capability_score": 50,
            "input_cost_per_1k": 0.5,
            "output_cost_per_1k": 1.5,
        }
        entry.update(overrides)
        return entry

    def test_valid_table_loads_correctly(self):
        """Test that a valid table loads in file order."""
        config_path = self._write_config({"models": [
            self._entry("zeta", input_cost_per_1k=2, output_cost_per_1k=6),
            self._entry("alpha", capability_score=80.5),
        ]})
        table = load_price_table(config_path)

        assert isinstance(table, PricingTable)
        assert table.models == ["zeta", "alpha"]
        zeta = table.get_pricing("zeta")
        assert zeta.input_unit_price == 2.0
        assert zeta.output_unit_price == 6.0
        assert table.get_pricing("alpha").capability_score == 80.5

    def test_bundled_table_loads(self):
        """Test that the bundled price table is valid."""
        table = load_price_table()
        assert len(table) > 0
        assert "gpt-4.1-mini" in table.models
        for entry in table:
            assert entry.input_unit_price >= 0
            assert entry.output_unit_price >= 0

    def test_missing_file_raises_error(self):
        """Test that missing price table raises error."""
        with pytest.raises(FileNotFoundError, match="Price table file not found"):
            load_price_table("nonexistent.yaml")

    def test_empty_table_raises_error(self):
        """Test that an empty file raises error."""
        config_path = self._write_config({})
        with pytest.raises(ValueError, match="Price table is empty"):
            load_price_table(config_path)

    def test_invalid_yaml_raises_error(self):
        """Test that invalid YAML raises error."""
        config_path = os.path.join(self.temp_dir, "invalid.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write("models: [\n  - model: a\n    bad")
        with pytest.raises(yaml.YAMLError, match="Invalid YAML"):
            load_price_table(config_path)

    def test_unknown_top_level_key(self):
        """Test that unknown top-level keys are rejected."""
        config_path = self._write_config({"models": [self._entry()], "currency": "EUR"})
        with pytest.raises(ValueError, match="Unknown price table keys"):
            load_price_table(config_path)

    def test_models_must_be_list(self):
        """Test that models must be a non-empty list."""
        with pytest.raises(ValueError, match="non-empty list"):
            load_price_table(self._write_config({"models": {"a": 1}}))
        with pytest.raises(ValueError, match="non-empty list"):
            load_price_table(self._write_config({"models": []}))

    def test_missing_field(self):
        """Test that entries must carry every field."""
        entry = self._entry()
        del entry["output_cost_per_1k"]
        config_path = self._write_config({"models": [entry]})
        with pytest.raises(ValueError, match="Missing required 'output_cost_per_1k' in models\\[0\\]"):
            load_price_table(config_path)

    def test_unknown_entry_key(self):
        """Test that unknown entry keys are rejected."""
        config_path = self._write_config({"models": [self._entry(provider="openai")]})
        with pytest.raises(ValueError, match="Unknown keys in models\\[0\\]"):
            load_price_table(config_path)

    @pytest.mark.parametrize("value", [-1, "cheap", True, None])
    def test_invalid_price(self, value):
        """Test that prices must be non-negative numbers."""
        config_path = self._write_config({"models": [self._entry(input_cost_per_1k=value)]})
        with pytest.raises(ValueError, match="'input_cost_per_1k' in models\\[0\\] must be a number >= 0"):
            load_price_table(config_path)

    def test_empty_model_name(self):
        """Test that model names must be non-empty strings."""
        config_path = self._write_config({"models": [self._entry(model=" ")]})
        with pytest.raises(ValueError, match="'model' in models\\[0\\]"):
            load_price_table(config_path)

    def test_duplicate_models(self):
        """Test that duplicate model names are rejected."""
        config_path = self._write_config({"models": [self._entry("a"), self._entry("a")]})
        with pytest.raises(ValueError, match="Duplicate model"):
            load_price_table(config_path)

    def test_entry_must_be_dict(self):
        """Test that entries must be dictionaries."""
        config_path = self._write_config({"models": ["gpt-4"]})
        with pytest.raises(ValueError, match="models\\[0\\] must be a dictionary"):
            load_price_table(config_path)


class TestSettings:
    """Test settings from environment variables."""

    def test_defaults(self):
        """Test defaults with an empty environment."""
        settings = load_settings({})
        assert settings.db_path == DEFAULT_DB_PATH
        assert settings.pricing_path is None
        assert settings.generation_model == DEFAULT_GENERATION_MODEL
        assert settings.debounce_seconds == 0.2

    def test_overrides(self):
        """Test environment overrides."""
        settings = load_settings({
            "AI_COST_ESTIMATOR_DB": "/tmp/profile.db",
            "AI_COST_ESTIMATOR_PRICING": "/tmp/pricing.yaml",
            "AI_COST_ESTIMATOR_MODEL": "gpt-4o",
            "AI_COST_ESTIMATOR_DEBOUNCE": "0.5",
        })
        assert settings == Settings("/tmp/profile.db", "/tmp/pricing.yaml", "gpt-4o", 0.5)

    def test_invalid_debounce(self):
        """Test invalid debounce values."""
        with pytest.raises(ValueError, match="must be a number"):
            load_settings({"AI_COST_ESTIMATOR_DEBOUNCE": "soon"})
        with pytest.raises(ValueError, match="debounce_seconds must be >= 0"):
            load_settings({"AI_COST_ESTIMATOR_DEBOUNCE": "-1"})
