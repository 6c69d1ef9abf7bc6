"""
Tests for ledger_config: YAML loading, parsing and the config bridges.
"""

import pytest

from ledger_config import get_active_config, reset_active_config
from ledger_config.bridges import build_reporting_config, build_synonym_table
from ledger_config.loader import (
    load_settings,
    parse_cash_flow,
    parse_chart,
    parse_reporting,
)
from ledger_kernel.domain.chart import DEFAULT_SYNONYMS

MINIMAL_CHART = """
main_groups:
  - name: balance_sheet
    code: BS
    children:
      - name: assets
        code: BS-A
journal_entry_types:
  - code: JE
    name: Journal Entry
"""


@pytest.fixture
def config_dir(tmp_path):
    (tmp_path / "chart.yaml").write_text(MINIMAL_CHART)
    return tmp_path


class TestLoadSettings:

    def test_packaged_defaults(self):
        settings = load_settings(environ={})
        assert settings.database.url.startswith("postgresql+psycopg2://")
        assert settings.logging.level == "INFO"
        assert settings.chart.account_code_width == 3
        assert settings.reporting.fiscal_year_start_month == 1
        assert "non_current_assets" in settings.reporting.cash_flow.investing
        assert [g.name for g in settings.standard_chart.main_groups] == ["balance_sheet", "profit_and_loss"]
        assert {t.code for t in settings.standard_chart.journal_entry_types} >= {"JE", "INV", "PMT"}

    def test_database_url_override(self):
        settings = load_settings(environ={"LEDGER_DATABASE_URL": "sqlite:///ledger.db"})
        assert settings.database.url == "sqlite:///ledger.db"

    def test_config_path_from_environment(self, config_dir):
        path = config_dir / "ledger.yaml"
        path.write_text("logging:\n  level: debug\nstandard_chart_file: chart.yaml\n")

        settings = load_settings(environ={"LEDGER_CONFIG_PATH": str(path)})
        assert settings.source_path == str(path)
        assert settings.logging.level == "DEBUG"
        assert settings.database.url == "sqlite:///:memory:"
        (main,) = settings.standard_chart.main_groups
        assert main.children[0].code == "BS-A"

    def test_unknown_section_rejected(self, config_dir):
        path = config_dir / "ledger.yaml"
        path.write_text("database:\n  echo: true\nmetrics:\n  enabled: true\n")
        with pytest.raises(ValueError, match="metrics"):
            load_settings(path, environ={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml", environ={})

    def test_empty_file_uses_defaults(self, config_dir):
        path = config_dir / "ledger.yaml"
        path.write_text("")
        settings = load_settings(path, environ={})
        assert settings.database.pool_size == 5
        assert settings.reporting.cash_flow.default_bucket == "operating"


class TestParsers:

    def test_synonyms_as_pairs_or_mappings(self):
        chart = parse_chart({"synonyms": [["income", "incomes"], {"expense": "expenses"}]})
        assert chart.synonyms == (("income", "incomes"), ("expense", "expenses"))

    @pytest.mark.parametrize("month", [0, 13])
    def test_fiscal_month_bounds(self, month):
        with pytest.raises(ValueError):
            parse_reporting({"fiscal_year_start_month": month})

    def test_bad_default_bucket(self):
        with pytest.raises(ValueError):
            parse_cash_flow({"default_bucket": "other"})

    def test_cash_flow_lists(self):
        cash_flow = parse_cash_flow({"investing": ["non_current_assets"]})
        assert cash_flow.investing == ("non_current_assets",)
        assert cash_flow.operating == ()


class TestBridges:

    def test_reporting_config_from_settings(self):
        config = build_reporting_config(load_settings(environ={}))
        assert config.fiscal_year_start_month == 1
        assert config.bucket_for("capital") == "financing"
        assert config.bucket_for("non_current_assets") == "investing"
        assert config.bucket_for("sales") == "operating"

    def test_empty_synonyms_fall_back(self, config_dir):
        path = config_dir / "ledger.yaml"
        path.write_text("standard_chart_file: chart.yaml\n")
        assert build_synonym_table(load_settings(path, environ={})) is DEFAULT_SYNONYMS


class TestActiveConfig:

    @pytest.fixture(autouse=True)
    def _reset(self):
        reset_active_config()
        yield
        reset_active_config()

    def test_cached(self, monkeypatch):
        monkeypatch.delenv("LEDGER_CONFIG_PATH", raising=False)
        assert get_active_config() is get_active_config()

    def test_reset_reloads(self, monkeypatch, config_dir):
        path = config_dir / "ledger.yaml"
        path.write_text("reporting:\n  fiscal_year_start_month: 4\nstandard_chart_file: chart.yaml\n")
        monkeypatch.delenv("LEDGER_CONFIG_PATH", raising=False)
        first = get_active_config()

        monkeypatch.setenv("LEDGER_CONFIG_PATH", str(path))
        assert get_active_config() is first
        reset_active_config()
        assert get_active_config().reporting.fiscal_year_start_month == 4
