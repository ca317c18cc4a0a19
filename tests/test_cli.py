"""Tests for the command-line interface."""

import json

import pandas as pd
import pytest
from click.testing import CliRunner

from wristvitals import cli


@pytest.fixture
def runner(monkeypatch) -> CliRunner:
	monkeypatch.setattr(cli, "configure_logging", lambda level: None)
	return CliRunner()


@pytest.fixture
def recording(tmp_path, bvp_window):
	values, timestamps = bvp_window
	path = tmp_path / "session.csv"
	pd.DataFrame({"timestamp_ms": timestamps, "bvp": values}).to_csv(path, index=False)
	return path


def json_readings(output: str) -> list[dict]:
	return [json.loads(line) for line in output.splitlines() if line.startswith('{"timestamp_ms"')]


class TestCli:
	def test_replay_json(self, runner, recording):
		result = runner.invoke(cli.main, ["replay", str(recording), "--json", "--age", "30"])
		assert result.exit_code == 0, result.output
		readings = json_readings(result.output)
		assert len(readings) == 3
		assert readings[2]["systolic_mmhg"] is not None

	def test_replay_through_worker(self, runner, recording, monkeypatch):
		monkeypatch.setenv("WRISTVITALS_WORKER_QUEUE", "32")
		result = runner.invoke(cli.main, ["replay", str(recording), "--json"])
		assert result.exit_code == 0, result.output
		readings = json_readings(result.output)
		assert [r["timestamp_ms"] is not None for r in readings] == [True, True, True]

	def test_replay_table(self, runner, recording):
		result = runner.invoke(cli.main, ["replay", str(recording)])
		assert result.exit_code == 0, result.output
		assert "Done!" in result.output
		assert "1280 samples" in result.output

	def test_replay_unsupported_file(self, runner, tmp_path):
		path = tmp_path / "session.json"
		path.write_text("{}")
		result = runner.invoke(cli.main, ["replay", str(path)])
		assert result.exit_code == 1

	def test_simulate(self, runner):
		result = runner.invoke(cli.main, ["simulate", "-d", "20", "--seed", "1", "--rr-strategy", "spectral"])
		assert result.exit_code == 0, result.output
		assert "Simulated" in result.output

	def test_show_config(self, runner):
		result = runner.invoke(cli.main, ["show-config", "--age", "30", "--bp-strategy", "feature_regression"])
		assert result.exit_code == 0, result.output
		assert '"user_age": 30' in result.output
		assert '"strategy": "feature_regression"' in result.output

	def test_invalid_config_exits(self, runner):
		result = runner.invoke(cli.main, ["show-config", "--sample-rate", "4"])
		assert result.exit_code == 2
		assert "Invalid configuration" in result.output

	def test_invalid_strategy_choice(self, runner):
		result = runner.invoke(cli.main, ["show-config", "--rr-strategy", "magic"])
		assert result.exit_code != 0
