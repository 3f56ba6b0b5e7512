#!/usr/bin/env python3
import argparse
import sys
from datetime import datetime

import rich.console
import rich.table

from metricslib import pipeline_settings
from metricslib import site_metrics
from metricslib import validation_rules


RICH_CONSOLE = rich.console.Console()


#============================================
def log_step(message: str, style: str = "cyan") -> None:
	"""
	Print one timestamped progress line.
	"""
	now_text = datetime.now().strftime("%H:%M:%S")
	RICH_CONSOLE.print(
		f"[validate_metrics {now_text}] {message}",
		style=style,
		markup=False,
		highlight=False,
	)


#============================================
def parse_args() -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Check the metrics JSON against honesty and completeness rules."
	)
	parser.add_argument(
		"--settings",
		default=pipeline_settings.DEFAULT_SETTINGS_PATH,
		help="YAML settings path for path overrides.",
	)
	parser.add_argument(
		"--input",
		default=None,
		help="Path to metrics JSON input (defaults to data/metrics.json).",
	)
	args = parser.parse_args()
	return args


#============================================
def render_findings(findings: list[validation_rules.Finding]) -> None:
	"""
	Print warnings then errors, followed by a count table.
	"""
	warnings = [finding for finding in findings if not finding.is_error]
	errors = [finding for finding in findings if finding.is_error]
	if warnings:
		log_step("Warnings:", style="yellow")
		for finding in warnings:
			RICH_CONSOLE.print(f"   - {finding.message}", style="yellow", markup=False)
	if errors:
		log_step("Validation errors:", style="bold red")
		for finding in errors:
			RICH_CONSOLE.print(f"   - {finding.message}", style="red", markup=False)
	table = rich.table.Table(title="Metrics Validation Summary")
	table.add_column("Severity", style="bold cyan")
	table.add_column("Count", justify="right")
	table.add_row("error", str(len(errors)))
	table.add_row("warning", str(len(warnings)))
	RICH_CONSOLE.print(table)


#============================================
def main() -> None:
	"""
	Validate the metrics document and exit non-zero on any error finding.
	"""
	args = parse_args()
	settings, _ = pipeline_settings.load_settings(args.settings)
	input_path = pipeline_settings.resolve_path_setting(
		args.input,
		settings,
		["metrics", "output_path"],
		site_metrics.DEFAULT_METRICS_PATH,
	)
	log_step(f"Validating {input_path}")
	findings = validation_rules.validate_metrics_file(input_path)
	render_findings(findings)
	if validation_rules.count_errors(findings) > 0:
		log_step("Fix these errors before deploying.", style="bold red")
		sys.exit(1)
	log_step("All validations passed.", style="green")


if __name__ == "__main__":
	main()
