#!/usr/bin/env python3
import argparse
import os
import sys
from datetime import datetime

import rich.console

from metricslib import pipeline_settings
from metricslib import site_metrics


DEFAULT_EXPORTS_DIR = "exports"
LINKEDIN_FILENAME = "linkedin_bullets.md"
RESUME_FILENAME = "resume_snippets.md"
INTERNAL_NOTE = "internal metric, not publicly reproducible"
RICH_CONSOLE = rich.console.Console()


#============================================
def log_step(message: str, style: str = "cyan") -> None:
	"""
	Print one timestamped progress line.
	"""
	now_text = datetime.now().strftime("%H:%M:%S")
	RICH_CONSOLE.print(
		f"[export_bullets {now_text}] {message}",
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
		description="Export LinkedIn and resume bullet lists from metrics JSON."
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
		"--output-dir",
		default=None,
		help="Directory for exported Markdown files (defaults to exports/).",
	)
	args = parser.parse_args()
	return args


#============================================
def metric_highlight(metric: site_metrics.Metric) -> str:
	description = site_metrics.describe_metric(metric)
	return f"{site_metrics.format_metric_value(metric)} {description}"


#============================================
def first_evidence_link(metrics: list[site_metrics.Metric]):
	for metric in metrics:
		link = metric.first_evidence()
		if link is not None:
			return link
	return None


#============================================
def generate_linkedin_bullets(site: site_metrics.SiteMetrics, top_n: int = 3) -> list[str]:
	"""
	One achievement bullet per project plus an internal impact section.
	"""
	lines = [
		"# LinkedIn Profile Bullets",
		"",
		"Copy and paste these achievement bullets into your LinkedIn profile.",
		"",
		"---",
		"",
	]
	for project in site.projects:
		lines += [f"## {project.title}", ""]
		metrics = list(project.metrics.values())
		if not metrics:
			lines += [f"- Built {project.title} with {', '.join(project.tech[:3])}", ""]
			continue
		highlights = ", ".join(metric_highlight(metric) for metric in metrics[:top_n])
		link = first_evidence_link(metrics)
		evidence_text = f" ([evidence]({link.href}))" if link is not None else ""
		lines += [f"- Shipped {project.title}: {highlights}{evidence_text}", ""]
	lines += ["## Impact Highlights (Internal)", ""]
	for impact in site.impact_bullets:
		value = site_metrics.format_metric_value(impact)
		lines.append(f"- {site_metrics.describe_metric(impact)}: {value} ({INTERNAL_NOTE})")
	lines.append("")
	return lines


#============================================
def generate_resume_snippets(site: site_metrics.SiteMetrics, top_n: int = 2) -> list[str]:
	"""
	Short resume lines per project, internal impact, and summary stats.
	"""
	lines = [
		"# Resume Snippets",
		"",
		"Copy these concise achievement statements for your resume.",
		"",
		"---",
		"",
		"## Technical Projects",
		"",
	]
	for project in site.projects:
		metrics = list(project.metrics.values())
		if not metrics:
			continue
		values = ", ".join(site_metrics.format_metric_value(metric) for metric in metrics[:top_n])
		tech = ", ".join(project.tech[:4])
		lines.append(f"- **{project.title}:** {values} | {tech}")
	lines += ["", "## Professional Impact (Internal)", ""]
	for impact in site.impact_bullets:
		value = site_metrics.format_metric_value(impact)
		lines.append(f"- {site_metrics.describe_metric(impact)}: {value} ({INTERNAL_NOTE})")
	lines += ["", "## Summary Stats", ""]
	hero = site.hero
	lines.append(f"- {hero.projects_count} ML systems with verified benchmarks")
	if hero.best_accuracy:
		lines.append(f"- Up to {hero.best_accuracy}% model accuracy")
	if hero.fastest_p95_ms:
		lines.append(f"- API latency as low as {hero.fastest_p95_ms}ms P95")
	if hero.docker_reduction_pct:
		lines.append(f"- Docker image size reduced by up to {hero.docker_reduction_pct}%")
	lines.append("")
	return lines


#============================================
def write_lines(path: str, lines: list[str]) -> None:
	with open(path, "w", encoding="utf-8") as handle:
		handle.write("\n".join(lines))


#============================================
def main() -> None:
	"""
	Write LinkedIn and resume Markdown exports.
	"""
	args = parse_args()
	settings, _ = pipeline_settings.load_settings(args.settings)
	input_path = pipeline_settings.resolve_path_setting(
		args.input, settings, ["metrics", "output_path"], site_metrics.DEFAULT_METRICS_PATH,
	)
	output_dir = pipeline_settings.resolve_path_setting(
		args.output_dir, settings, ["metrics", "exports_dir"], DEFAULT_EXPORTS_DIR,
	)
	log_step(f"Generating LinkedIn and resume bullets from {input_path}")
	try:
		site = site_metrics.load_site_metrics(input_path)
	except FileNotFoundError as error:
		log_step(str(error), style="bold red")
		log_step("Run fetch_metrics.py first.", style="yellow")
		sys.exit(1)
	except site_metrics.MetricsFileError as error:
		log_step(f"Failed to parse metrics document: {error}", style="bold red")
		sys.exit(1)

	os.makedirs(output_dir, exist_ok=True)
	linkedin_path = os.path.join(output_dir, LINKEDIN_FILENAME)
	resume_path = os.path.join(output_dir, RESUME_FILENAME)
	write_lines(linkedin_path, generate_linkedin_bullets(site))
	write_lines(resume_path, generate_resume_snippets(site))
	log_step(f"Wrote LinkedIn bullets to {linkedin_path}", style="green")
	log_step(f"Wrote resume snippets to {resume_path}", style="green")


if __name__ == "__main__":
	main()
