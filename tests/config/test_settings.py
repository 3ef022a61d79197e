"""
Tests for settings loading and the module config dataclasses.
"""

from decimal import Decimal

import pytest
import yaml

from inventory_config import (
    CONFIG_ENV_VAR,
    DATABASE_URL_ENV_VAR,
    get_settings,
    load_settings,
    reset_settings,
)
from inventory_config.loader import compute_checksum, merge_settings, parse_settings
from inventory_engines.landed_cost import LandedCostMethod
from inventory_modules.classification.config import ClassificationConfig
from inventory_modules.restock.config import RestockConfig


@pytest.fixture
def write_settings(tmp_path):
    def _write(data) -> str:
        path = tmp_path / "inventory.yaml"
        path.write_text(yaml.safe_dump(data))
        return str(path)

    return _write


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


class TestLoadSettings:

    def test_packaged_defaults(self):
        settings = load_settings(env={})

        assert settings.source is None
        assert settings.database.url == "sqlite:///inventory.db"
        assert settings.database.pool_recycle == 1800
        assert settings.logging.level == "INFO"
        assert settings.restock["landed_cost_method"] == "by_value"
        assert settings.classification["lookback_days"] == 180
        assert len(settings.checksum) == 64

    def test_file_merged_over_defaults(self, write_settings):
        path = write_settings({
            "database": {"url": "postgresql://inv:pwd@db/inventory", "pool_size": 5},
            "classification": {"lookback_days": 90},
        })

        settings = load_settings(path, env={})

        assert settings.source == path
        assert settings.database.url == "postgresql://inv:pwd@db/inventory"
        assert settings.database.pool_size == 5
        assert settings.database.max_overflow == 10
        assert settings.classification["lookback_days"] == 90
        assert settings.classification["a_pct"] == "80"

    def test_env_var_names_file(self, write_settings):
        path = write_settings({"logging": {"level": "DEBUG"}})

        settings = load_settings(env={CONFIG_ENV_VAR: path})

        assert settings.logging.level == "DEBUG"

    def test_database_url_env_wins(self, write_settings):
        path = write_settings({"database": {"url": "sqlite:///from-file.db"}})

        settings = load_settings(path, env={DATABASE_URL_ENV_VAR: "sqlite:///from-env.db"})

        assert settings.database.url == "sqlite:///from-env.db"

    def test_checksum_tracks_content(self, write_settings):
        default = load_settings(env={})
        changed = load_settings(write_settings({"logging": {"level": "ERROR"}}), env={})

        assert default.checksum != changed.checksum
        assert load_settings(env={}).checksum == default.checksum

    def test_trace_logged(self, captured_logs):
        load_settings(env={})

        traces = [r for r in captured_logs() if r["message"] == "INVENTORY_CONFIG_TRACE"]
        assert traces[0]["source"] == "defaults"
        assert traces[0]["database_dialect"] == "sqlite"

    def test_get_settings_cached(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert get_settings() is get_settings()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml", env={})


class TestInvalidSettings:

    def test_unknown_section(self, write_settings):
        with pytest.raises(ValueError, match="Unknown settings sections"):
            load_settings(write_settings({"metrics": {"enabled": True}}), env={})

    def test_unknown_key(self, write_settings):
        with pytest.raises(ValueError, match="database"):
            load_settings(write_settings({"database": {"uri": "x"}}), env={})

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            parse_settings({"logging": {"level": "LOUD"}})

    def test_invalid_pool_size(self):
        with pytest.raises(ValueError):
            parse_settings({"database": {"pool_size": 0}})

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_settings(path, env={})


class TestLoaderHelpers:

    def test_merge_is_section_wise(self):
        merged = merge_settings(
            {"database": {"url": "a", "echo": False}},
            {"database": {"url": "b"}, "logging": {"level": "DEBUG"}},
        )
        assert merged == {"database": {"url": "b", "echo": False}, "logging": {"level": "DEBUG"}}

    def test_checksum_key_order_independent(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})


class TestModuleConfigs:

    def test_restock_from_settings(self):
        config = RestockConfig.from_dict(load_settings(env={}).restock)

        assert config.landed_cost_method == "by_value"
        assert config.cost_quantum == Decimal("0.0001")
        assert config.format_order_number(7) == "PO-0007"

    def test_restock_accepts_enum(self):
        config = RestockConfig(landed_cost_method=LandedCostMethod.BY_QUANTITY)
        assert config.landed_cost_method == "by_quantity"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"landed_cost_method": "by_weight"},
            {"cost_quantum": "0"},
            {"order_number_prefix": ""},
            {"order_number_width": 0},
            {"receive_reason_template": "Received"},
        ],
    )
    def test_restock_invalid(self, kwargs):
        with pytest.raises(ValueError):
            RestockConfig(**kwargs)

    def test_classification_from_settings(self):
        config = ClassificationConfig.from_dict(load_settings(env={}).classification)

        assert config.a_pct == Decimal("80")
        assert config.b_pct == Decimal("15")
        assert config.counted_statuses == ("PAID", "SENT")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"a_pct": "-1"},
            {"a_pct": "90", "b_pct": "20"},
            {"lookback_days": 0},
            {"counted_statuses": ()},
            {"counted_statuses": ("REFUNDED",)},
        ],
    )
    def test_classification_invalid(self, kwargs):
        with pytest.raises(ValueError):
            ClassificationConfig(**kwargs)
