#!/usr/bin/env python3
import argparse
import os
import sys
from datetime import datetime
from datetime import timezone

import rich.console

from metricslib import pipeline_settings
from metricslib import site_metrics


BEGIN_MARKER = "<!-- AUTO-GENERATED METRICS:BEGIN -->"
END_MARKER = "<!-- AUTO-GENERATED METRICS:END -->"
DEFAULT_README_PATH = "README.md"
STAGE_BADGES = {
	"production": "🟢 PRODUCTION",
	"synthetic_benchmark": "🔵 SYNTHETIC",
	"prototype": "🟡 PROTOTYPE",
}
RICH_CONSOLE = rich.console.Console()


#============================================
class MarkerError(RuntimeError):
	"""
	Raised when README markers are present but out of order.
	"""


#============================================
def log_step(message: str, style: str = "cyan") -> None:
	"""
	Print one timestamped progress line.
	"""
	now_text = datetime.now().strftime("%H:%M:%S")
	RICH_CONSOLE.print(
		f"[export_readme_metrics {now_text}] {message}",
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
		description="Write the auto-generated metrics section into a README."
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
	parser.add_argument(
		"--readme",
		default=None,
		help="README file to update in place (defaults to README.md).",
	)
	args = parser.parse_args()
	return args


#============================================
def stage_badge(stage: str) -> str:
	return STAGE_BADGES.get(stage, stage.upper())


#============================================
def format_timestamp(iso_text: str) -> str:
	"""
	Normalize an ISO timestamp to UTC; unparsable text is returned unchanged.
	"""
	try:
		parsed = datetime.fromisoformat(iso_text.replace("Z", "+00:00"))
	except ValueError:
		return iso_text
	if parsed.tzinfo is None:
		parsed = parsed.replace(tzinfo=timezone.utc)
	return parsed.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


#============================================
def find_kpi_source(site: site_metrics.SiteMetrics, key: str):
	"""
	Return (project, metric) for the first non-prototype project carrying key.
	"""
	for project in site.projects:
		if project.stage == "prototype":
			continue
		for metric in project.metrics.values():
			if metric.key == key:
				return project, metric
	return None, None


#============================================
def kpi_line(headline: str, qualifier: str, project, metric) -> str:
	"""
	Build one KPI bullet with an optional qualifier and evidence link.
	"""
	parts = [f"- **{headline}**"]
	if qualifier:
		parts.append(f"({qualifier})")
	parts.append(f"- {project.title}")
	link = metric.first_evidence()
	if link is not None:
		parts.append(f"[📊 Evidence]({link.href})")
	return " ".join(parts)


#============================================
def generate_kpi_lines(site: site_metrics.SiteMetrics) -> list[str]:
	"""
	Summarize hero KPIs; prototype projects never back a KPI line.
	"""
	lines = []
	hero = site.hero
	if hero.best_accuracy:
		project, metric = find_kpi_source(site, "accuracy")
		if project is not None:
			lines.append(kpi_line(f"{hero.best_accuracy}% Model Accuracy", metric.note or "", project, metric))
	if hero.fastest_p95_ms:
		project, metric = find_kpi_source(site, "p95_latency_ms")
		if project is not None:
			lines.append(kpi_line(f"{hero.fastest_p95_ms}ms P95 Latency", "", project, metric))
	if hero.docker_reduction_pct:
		project, metric = find_kpi_source(site, "docker_reduction")
		if project is not None:
			lines.append(kpi_line(f"{hero.docker_reduction_pct}% Docker Reduction", metric.note or "", project, metric))
	benchmarked = [project for project in site.projects if project.stage != "prototype"]
	lines.append(f"- **{len(benchmarked)} ML Systems** with published benchmarks")
	return lines


#============================================
def generate_project_lines(project: site_metrics.ProjectMetrics, top_n: int = 3) -> list[str]:
	lines = [f"#### {project.title} {stage_badge(project.stage)}", ""]
	if project.summary:
		lines += [project.summary, ""]
	metrics = list(project.metrics.values())
	if metrics:
		lines.append("**Key Metrics:**")
		for metric in metrics[:top_n]:
			description = site_metrics.describe_metric(metric)
			line = f"- {site_metrics.format_metric_value(metric)} {description}"
			links = [f"[{link.label}]({link.href})" for link in metric.evidence if link.href]
			if links:
				line += " - " + ", ".join(links)
			lines.append(line)
		lines.append("")
	if project.tech:
		lines += [f"**Tech:** {', '.join(project.tech)}", ""]
	lines += [f"[View on GitHub](https://github.com/{project.repo})", ""]
	return lines


#============================================
def generate_metrics_block(site: site_metrics.SiteMetrics) -> list[str]:
	"""
	Build the README metrics section as a list of Markdown lines.
	"""
	lines = [
		"",
		"## Verified Project Metrics",
		"",
		"> All metrics below are auto-generated from data/metrics.json with GitHub artifacts as evidence.",
		"> Synthetic benchmarks are clearly labeled. Prototype projects are excluded from headline KPIs.",
		"",
		"### Key Performance Indicators",
		"",
	]
	lines += generate_kpi_lines(site)
	lines += ["", "### Project Portfolio", ""]
	for project in site.projects:
		lines += generate_project_lines(project)
	lines += [
		"### Benchmark Methodology",
		"",
		"1. **Provenance-First:** Every metric records its source (GitHub artifact, README, etc.)",
		"2. **Stage Labels:** Projects are labeled as Production, Synthetic Benchmark, or Prototype",
		"3. **Evidence Links:** Reproducible metrics link directly to GitHub artifacts",
		"4. **Honest Reporting:** Missing artifacts mean the metric is hidden",
		"",
		f"*Last updated: {format_timestamp(site.last_generated_iso)}*",
		"",
	]
	return lines


#============================================
def splice_metrics_block(readme_text: str, block_text: str) -> str:
	"""
	Replace the text between the markers, or append a marked block.

	Content outside the marker span is preserved exactly.
	"""
	if (BEGIN_MARKER not in readme_text) or (END_MARKER not in readme_text):
		return f"{readme_text}\n\n{BEGIN_MARKER}\n{block_text}{END_MARKER}\n"
	begin_index = readme_text.index(BEGIN_MARKER)
	end_index = readme_text.index(END_MARKER)
	if end_index <= begin_index:
		raise MarkerError("End marker appears before begin marker in README")
	head = readme_text[:begin_index + len(BEGIN_MARKER)]
	tail = readme_text[end_index:]
	return f"{head}\n{block_text}{tail}"


#============================================
def update_readme(readme_path: str, block_text: str) -> bool:
	"""
	Rewrite the README with the new block; return True when markers existed.
	"""
	with open(readme_path, "r", encoding="utf-8") as handle:
		readme_text = handle.read()
	had_markers = (BEGIN_MARKER in readme_text) and (END_MARKER in readme_text)
	updated = splice_metrics_block(readme_text, block_text)
	with open(readme_path, "w", encoding="utf-8") as handle:
		handle.write(updated)
	return had_markers


#============================================
def main() -> None:
	"""
	Render metrics JSON into the README marker block.
	"""
	args = parse_args()
	settings, _ = pipeline_settings.load_settings(args.settings)
	input_path = pipeline_settings.resolve_path_setting(
		args.input, settings, ["metrics", "output_path"], site_metrics.DEFAULT_METRICS_PATH,
	)
	readme_path = pipeline_settings.resolve_path_setting(
		args.readme, settings, ["metrics", "readme_path"], DEFAULT_README_PATH,
	)
	log_step(f"Generating README metrics block from {input_path}")
	try:
		site = site_metrics.load_site_metrics(input_path)
	except FileNotFoundError as error:
		log_step(str(error), style="bold red")
		log_step("Run fetch_metrics.py first.", style="yellow")
		sys.exit(1)
	except site_metrics.MetricsFileError as error:
		log_step(f"Failed to parse metrics document: {error}", style="bold red")
		sys.exit(1)
	if not os.path.isfile(readme_path):
		log_step(f"README not found at {readme_path}", style="bold red")
		sys.exit(1)

	block_text = "\n".join(generate_metrics_block(site))
	try:
		had_markers = update_readme(readme_path, block_text)
	except MarkerError as error:
		log_step(f"{error}; fix the markers in {readme_path}", style="bold red")
		sys.exit(1)
	if not had_markers:
		log_step("Markers not found in README, appended a new block.", style="yellow")
	log_step(f"Wrote metrics block to {readme_path}", style="green")


if __name__ == "__main__":
	main()
