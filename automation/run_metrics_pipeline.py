#!/usr/bin/env python3
import argparse
import os
import subprocess
import sys
import time
from datetime import datetime

import rich.console
import rich.table


#============================================
def log_step(console: rich.console.Console, message: str, style: str = "cyan") -> None:
	"""
	Print one timestamped progress line with color.
	"""
	now_text = datetime.now().strftime("%H:%M:%S")
	console.print(f"[run_metrics_pipeline {now_text}] {message}", style=style, markup=False)


#============================================
def parse_args() -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Run fetch, validate, and export stages in order."
	)
	parser.add_argument(
		"--settings",
		default="settings.yaml",
		help="YAML settings path passed to every stage.",
	)
	parser.add_argument(
		"--skip-fetch",
		action="store_true",
		help="Reuse the existing metrics JSON instead of calling the GitHub API.",
	)
	return parser.parse_args()


#============================================
def resolve_repo_root() -> str:
	"""
	Resolve repository root from this script location.
	"""
	return os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


#============================================
def make_stage_commands(args: argparse.Namespace) -> list[tuple[str, list[str]]]:
	"""
	Build ordered stage command list.
	"""
	stages = [
		("fetch", "pipeline/fetch_metrics.py"),
		("validate", "pipeline/validate_metrics.py"),
		("export_readme", "pipeline/export_readme_metrics.py"),
		("export_bullets", "pipeline/export_bullets.py"),
	]
	if args.skip_fetch:
		stages = [item for item in stages if item[0] != "fetch"]
	return [
		(stage_name, [sys.executable, script_path, "--settings", args.settings])
		for stage_name, script_path in stages
	]


#============================================
def run_stage(
	console: rich.console.Console,
	repo_root: str,
	stage_name: str,
	command_args: list[str],
) -> float:
	"""
	Run one stage once; a failing stage raises CalledProcessError.
	"""
	start = time.time()
	log_step(console, f"Starting stage: {stage_name}")
	try:
		subprocess.run(command_args, cwd=repo_root, check=True)
	except subprocess.CalledProcessError as error:
		elapsed = time.time() - start
		log_step(
			console,
			f"Stage failed: {stage_name} ({elapsed:.1f}s, exit={error.returncode})",
			style="red",
		)
		raise
	elapsed = time.time() - start
	log_step(console, f"Completed stage: {stage_name} ({elapsed:.1f}s)", style="green")
	return elapsed


#============================================
def render_summary_table(
	console: rich.console.Console,
	stage_rows: list[tuple[str, str, str]],
) -> None:
	"""
	Render final stage summary table.
	"""
	table = rich.table.Table(title="Metrics Pipeline Summary")
	table.add_column("Stage", style="bold cyan")
	table.add_column("Status", style="bold")
	table.add_column("Elapsed (s)", justify="right")
	for stage_name, status_text, elapsed_text in stage_rows:
		table.add_row(stage_name, status_text, elapsed_text)
	console.print(table)


#============================================
def main() -> None:
	"""
	Run pipeline stages in order and stop at the first failure.
	"""
	args = parse_args()
	console = rich.console.Console()
	repo_root = resolve_repo_root()
	log_step(console, f"Starting metrics pipeline from {repo_root}")
	if args.skip_fetch:
		log_step(console, "Mode: --skip-fetch enabled (fetch stage skipped).", style="yellow")
	stage_rows = []
	exit_code = 0
	for stage_name, command_args in make_stage_commands(args):
		try:
			elapsed = run_stage(console, repo_root, stage_name, command_args)
		except subprocess.CalledProcessError as error:
			stage_rows.append((stage_name, "[red]failed[/red]", "-"))
			exit_code = error.returncode or 1
			break
		stage_rows.append((stage_name, "[green]ok[/green]", f"{elapsed:.1f}"))
	render_summary_table(console, stage_rows)
	if exit_code:
		sys.exit(exit_code)


if __name__ == "__main__":
	main()
