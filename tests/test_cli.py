"""Smoke tests for the command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from mindful_trader.main import app

runner = CliRunner()


@pytest.fixture
def export_file(tmp_path, trade_rows):
    path = tmp_path / "trades.json"
    path.write_text(json.dumps(trade_rows))
    return path


@pytest.fixture
def broker_csv(tmp_path):
    path = tmp_path / "broker.csv"
    path.write_text(
        "Symbol,Side,Entry Date,Exit Date,Entry Price,Exit Price,Quantity\n"
        "AAPL,buy,2024-01-16 10:00,2024-01-16 11:00,100,105,10\n"
        ",buy,2024-01-16 10:00,,100,,10\n"
    )
    return path


class TestCLI:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "stats" in result.output

    def test_summary(self, export_file):
        result = runner.invoke(app, ["stats", "summary", str(export_file)])
        assert result.exit_code == 0
        assert "Performance Summary" in result.output

    def test_missing_file_exits_with_error(self, tmp_path):
        result = runner.invoke(app, ["stats", "summary", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_heatmap_invalid_period(self, export_file):
        result = runner.invoke(app, ["stats", "heatmap", str(export_file), "--period", "minute"])
        assert result.exit_code == 1
        assert "Invalid granularity" in result.output

    def test_heatmap(self, export_file):
        result = runner.invoke(app, ["stats", "heatmap", str(export_file), "--period", "day"])
        assert result.exit_code == 0
        assert "Time Heatmap" in result.output

    def test_times_invalid_limit(self, export_file):
        result = runner.invoke(app, ["stats", "times", str(export_file), "--limit", "0"])
        assert result.exit_code == 1

    def test_market(self, export_file):
        result = runner.invoke(app, ["stats", "market", str(export_file)])
        assert result.exit_code == 0
        assert "Market Summary" in result.output

    def test_market_invalid_group_by(self, export_file):
        result = runner.invoke(app, ["stats", "market", str(export_file), "--group-by", "ticker"])
        assert result.exit_code == 1

    def test_psychology(self, export_file):
        result = runner.invoke(
            app, ["stats", "psychology", str(export_file), "--period", "all", "--as-of", "2024-02-01"]
        )
        assert result.exit_code == 0
        assert "Discipline Score" in result.output

    def test_psychology_invalid_period(self, export_file):
        result = runner.invoke(app, ["stats", "psychology", str(export_file), "--period", "year"])
        assert result.exit_code == 1

    def test_weekly(self, export_file):
        result = runner.invoke(app, ["stats", "weekly", str(export_file), "--as-of", "2024-01-20"])
        assert result.exit_code == 0
        assert "This week you made 2 trades" in result.output

    def test_strategies(self, export_file):
        result = runner.invoke(app, ["stats", "strategies", str(export_file)])
        assert result.exit_code == 0
        assert "Strategy Leaderboard" in result.output

    def test_progress(self, export_file):
        result = runner.invoke(app, ["stats", "progress", str(export_file)])
        assert result.exit_code == 0
        assert "Level 1" in result.output

    def test_import_preview(self, broker_csv):
        result = runner.invoke(app, ["import", "preview", str(broker_csv)])
        assert result.exit_code == 0
        assert "1 valid" in result.output
        assert "Row 2: Ticker is required" in result.output

    def test_config_show(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "Timezone" in result.output
