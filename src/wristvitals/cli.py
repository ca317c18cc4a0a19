"""Command-line interface."""

from __future__ import annotations

import json
import sys
import time

import click
import structlog
from rich.console import Console
from rich.live import Live
from rich.table import Table

from wristvitals.config import BP_STRATEGIES, RR_STRATEGIES, AppConfig, configure_logging
from wristvitals.vitals.monitor import VitalsMonitor, VitalsReading
from wristvitals.vitals.worker import SampleWorker

logger = structlog.get_logger(__name__)
console = Console()


def _fmt(value: float | None, unit: str) -> str:
	return f"{value:.1f} {unit}" if value is not None else "---"


def _readings_table(readings: list[VitalsReading], title: str) -> Table:
	t = Table(title=title)
	t.add_column("Time (s)", style="dim", justify="right")
	t.add_column("Heart Rate", style="green")
	t.add_column("Respiratory Rate", style="cyan")
	t.add_column("Blood Pressure", style="magenta")
	for r in readings:
		bp = f"{r.systolic_mmhg:.0f}/{r.diastolic_mmhg:.0f} mmHg" if r.systolic_mmhg is not None else "---"
		t.add_row(
			f"{r.timestamp_ms / 1000:.1f}",
			_fmt(r.heart_rate_bpm, "BPM"),
			_fmt(r.respiratory_rate_bpm, "br/min"),
			bp,
		)
	return t


def _build_config(
	config_file: str | None,
	age: int | None,
	rr_strategy: str | None,
	bp_strategy: str | None,
	sample_rate: float | None,
) -> AppConfig:
	config = AppConfig.from_file(config_file) if config_file else AppConfig()
	config.apply_env()
	if sample_rate is not None:
		config.set_sample_rate(sample_rate)
	if age is not None:
		config.blood_pressure.user_age = age
	if rr_strategy is not None:
		config.respiratory.strategy = rr_strategy
	if bp_strategy is not None:
		config.blood_pressure.strategy = bp_strategy

	errors = config.validate()
	if errors:
		for error in errors:
			console.print(f"[red]Invalid configuration: {error}[/]")
		sys.exit(2)
	return config


def pipeline_options(func):
	"""Options shared by every command that builds a VitalsMonitor."""
	func = click.option("--sample-rate", type=float, default=None, help="Sample rate in Hz")(func)
	func = click.option("--bp-strategy", type=click.Choice(BP_STRATEGIES), default=None, help="Blood pressure strategy")(func)
	func = click.option("--rr-strategy", type=click.Choice(RR_STRATEGIES), default=None, help="Respiratory rate strategy")(func)
	func = click.option("--age", type=int, default=None, help="User age in years")(func)
	func = click.option("--config", "config_file", type=click.Path(exists=True), help="JSON config file")(func)
	return func


@click.group()
@click.version_option(package_name="wristvitals")
@click.option("--log-level", default="WARNING", envvar="WRISTVITALS_LOG_LEVEL", help="Logging level")
def main(log_level: str) -> None:
	"""wristvitals - heart rate, respiration and blood pressure from BVP."""
	configure_logging(log_level)


@main.command()
@click.argument("path", type=click.Path(exists=True))
@pipeline_options
@click.option("--json", "as_json", is_flag=True, help="Print one JSON object per reading")
def replay(
	path: str,
	config_file: str | None,
	age: int | None,
	rr_strategy: str | None,
	bp_strategy: str | None,
	sample_rate: float | None,
	as_json: bool,
) -> None:
	"""Feed a recorded BVP stream through the estimators."""
	from wristvitals.storage import RecordingReader

	config = _build_config(config_file, age, rr_strategy, bp_strategy, sample_rate)
	try:
		reader = RecordingReader(path)
		monitor = VitalsMonitor(config)
		readings: list[VitalsReading] = []

		def emit(reading: VitalsReading) -> None:
			readings.append(reading)
			if as_json:
				click.echo(json.dumps(reading.to_dict()))

		monitor.on_reading(emit)
		if config.worker.enabled:
			with SampleWorker(monitor, max_queue_size=config.worker.max_queue_size) as worker:
				for sample in reader:
					worker.submit(sample.value, sample.timestamp_ms)
		else:
			for sample in reader:
				monitor.on_sample(sample.value, sample.timestamp_ms)
	except (OSError, ValueError) as e:
		console.print(f"[red]Error: {e}[/]")
		logger.exception("replay_error")
		sys.exit(1)

	if not as_json:
		console.print(_readings_table(readings, f"Replay: {path}"))
		console.print(f"[green]Done![/] {monitor.sample_count} samples, {len(readings)} readings")


@main.command()
@pipeline_options
@click.option("-d", "--duration", type=float, default=60.0, help="Simulated seconds")
@click.option("--hr", "heart_rate", type=float, default=72.0, help="Simulated heart rate (BPM)")
@click.option("--rr", "breathing_rate", type=float, default=15.0, help="Simulated breathing rate (breaths/min)")
@click.option("--seed", type=int, default=None, help="Noise seed")
@click.option("--realtime", is_flag=True, help="Pace samples at the sample rate and show a live table")
def simulate(
	config_file: str | None,
	age: int | None,
	rr_strategy: str | None,
	bp_strategy: str | None,
	sample_rate: float | None,
	duration: float,
	heart_rate: float,
	breathing_rate: float,
	seed: int | None,
	realtime: bool,
) -> None:
	"""Drive the estimators from the synthetic BVP sensor."""
	from wristvitals.sensor import MockBvpSensor, MockConfig

	config = _build_config(config_file, age, rr_strategy, bp_strategy, sample_rate)
	monitor = VitalsMonitor(config)
	sensor = MockBvpSensor(
		MockConfig(
			sample_rate_hz=config.heart_rate.sample_rate_hz,
			heart_rate_bpm=heart_rate,
			breathing_rate_bpm=breathing_rate,
			seed=seed,
		)
	)
	total = int(duration * config.heart_rate.sample_rate_hz)
	readings: list[VitalsReading] = []

	if not realtime:
		for value, ts in sensor.stream(max_samples=total):
			reading = monitor.on_sample(value, ts)
			if reading is not None:
				readings.append(reading)
		console.print(_readings_table(readings, f"Simulated {heart_rate:.0f} BPM / {breathing_rate:.0f} br/min"))
		return

	console.print("Press Ctrl+C to stop...")
	start = time.time()
	try:
		with Live(_readings_table(readings, "Vital Signs Monitor"), refresh_per_second=2) as live:
			for value, ts in sensor.stream(max_samples=total, realtime=True):
				reading = monitor.on_sample(value, ts)
				if reading is not None:
					readings.append(reading)
					live.update(_readings_table(readings[-10:], "Vital Signs Monitor"))
	except KeyboardInterrupt:
		console.print("\n[yellow]Stopped[/]")

	elapsed = time.time() - start
	console.print(f"\n[green]Done![/] {monitor.sample_count} samples, {elapsed:.1f}s")


@main.command("show-config")
@pipeline_options
def show_config(
	config_file: str | None,
	age: int | None,
	rr_strategy: str | None,
	bp_strategy: str | None,
	sample_rate: float | None,
) -> None:
	"""Print the effective configuration."""
	config = _build_config(config_file, age, rr_strategy, bp_strategy, sample_rate)
	console.print_json(json.dumps(config.to_dict()))


if __name__ == "__main__":
	main()
