#!/usr/bin/env python3
import argparse
import sys
from datetime import datetime
from datetime import timezone

import rich.console

from metricslib import github_client
from metricslib import pipeline_settings
from metricslib import repo_config
from metricslib import repo_extractors
from metricslib import site_metrics


RICH_CONSOLE = rich.console.Console()


#============================================
def log_step(message: str) -> None:
	"""
	Print one timestamped progress line.
	"""
	now_text = datetime.now().strftime("%H:%M:%S")
	line = f"[fetch_metrics {now_text}] {message}"
	lower = message.lower()
	style = "cyan"
	if ("failed" in lower) or ("error" in lower):
		style = "bold red"
	elif ("rate limit" in lower) or ("not found" in lower) or ("skipping" in lower) or ("could not" in lower):
		style = "yellow"
	elif ("wrote " in lower) or ("extracted" in lower) or ("loaded" in lower):
		style = "green"
	RICH_CONSOLE.print(line, style=style, markup=False, highlight=False)


#============================================
def parse_args() -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Fetch metric artifacts from GitHub and write the SiteMetrics JSON."
	)
	parser.add_argument(
		"--settings",
		default=pipeline_settings.DEFAULT_SETTINGS_PATH,
		help="YAML settings path for repo list and output overrides.",
	)
	parser.add_argument(
		"--output",
		default=None,
		help="Path to metrics JSON output (defaults to data/metrics.json).",
	)
	args = parser.parse_args()
	return args


#============================================
def utc_now_iso() -> str:
	"""
	Return UTC now as an ISO-8601 string.
	"""
	return datetime.now(timezone.utc).isoformat()


#============================================
def fetch_text(client, config: repo_config.RepoConfig, path: str, log_fn=log_step) -> str | None:
	"""
	Fetch one file; any failure is logged and treated as absent.
	"""
	try:
		text = client.get_file_text(config.full_name, path, config.branch)
	except github_client.FetchError as error:
		log_fn(f"Fetch failed for {config.full_name}/{path}: {error}")
		return None
	if text is None:
		log_fn(f"File not found: {path}")
	return text


#============================================
def fetch_artifacts(client, config: repo_config.RepoConfig, log_fn=log_step) -> dict[str, str]:
	"""
	Fetch every configured artifact path, skipping the ones that are absent.
	"""
	artifacts = {}
	for path in config.artifact_paths:
		log_fn(f"Fetching {path}")
		text = fetch_text(client, config, path, log_fn)
		if text is None:
			continue
		artifacts[path] = text
		log_fn(f"Loaded {path}")
	return artifacts


#============================================
def fetch_artifact_dates(client, config: repo_config.RepoConfig, paths, log_fn=log_step) -> dict[str, str]:
	"""
	Look up the last commit timestamp of each loaded artifact.
	"""
	dates = {}
	for path in paths:
		try:
			date_text = client.get_last_commit_date(config.full_name, path, config.branch)
		except github_client.FetchError as error:
			log_fn(f"Could not fetch commit date for {path}: {error}")
			continue
		if date_text:
			dates[path] = date_text
	return dates


#============================================
def stamp_artifact_dates(
	metrics: dict,
	artifact_dates: dict[str, str],
	config: repo_config.RepoConfig,
) -> None:
	"""
	Set lastUpdatedISO on metrics whose evidence points at a dated artifact.
	"""
	href_dates = {
		repo_extractors.blob_url(config.repo_url, config.branch, path): date_text
		for path, date_text in artifact_dates.items()
	}
	for metric in metrics.values():
		for link in metric.evidence:
			if link.href in href_dates:
				metric.last_updated_iso = href_dates[link.href]
				break


#============================================
def build_project_metrics(
	client,
	config: repo_config.RepoConfig,
	log_fn=log_step,
	fetch_dates: bool = True,
) -> site_metrics.ProjectMetrics:
	"""
	Fetch and parse one repository into a ProjectMetrics entry.
	"""
	log_fn(f"Processing {config.full_name}")
	artifacts = fetch_artifacts(client, config, log_fn)
	readme = None
	if config.readme_path:
		log_fn("Fetching README")
		readme = fetch_text(client, config, config.readme_path, log_fn)
		if readme is not None:
			log_fn("Loaded README")

	extractor = repo_extractors.get_extractor(config.extractor_key)
	metrics = {}
	if extractor is None:
		log_fn(f"Skipping extraction: no extractor registered for '{config.extractor_key}'")
	else:
		try:
			metrics = extractor(artifacts, readme, config.repo_url, config.branch, log_fn)
		except (ArithmeticError, ValueError, TypeError, KeyError) as error:
			log_fn(f"Extraction failed for {config.full_name}: {error}")
			metrics = {}
	if fetch_dates and artifacts and metrics:
		artifact_dates = fetch_artifact_dates(client, config, list(artifacts), log_fn)
		stamp_artifact_dates(metrics, artifact_dates, config)
	log_fn(f"Extracted {len(metrics)} metric(s) from {config.full_name}")

	return site_metrics.ProjectMetrics(
		repo=config.full_name,
		title=config.title,
		stage=config.stage,
		summary=config.summary,
		case_study_path=config.case_study_path,
		tech=list(config.tech),
		metrics=metrics,
	)


#============================================
def numeric_values(projects: list[site_metrics.ProjectMetrics], key: str) -> list:
	"""
	Collect numeric values for one metric key across every project.
	"""
	values = []
	for project in projects:
		for metric in project.metrics.values():
			if metric.key == key and site_metrics.is_numeric(metric.value):
				values.append(metric.value)
	return values


#============================================
def compute_hero_kpis(projects: list[site_metrics.ProjectMetrics]) -> site_metrics.HeroKPIs:
	"""
	Derive headline figures; each falls back to 0 without a qualifying metric.
	"""
	projects_count = 0
	for project in projects:
		if any(metric.reproducible for metric in project.metrics.values()):
			projects_count += 1
	accuracy_values = numeric_values(projects, "accuracy")
	latency_values = numeric_values(projects, "p95_latency_ms")
	docker_values = numeric_values(projects, "docker_reduction")
	return site_metrics.HeroKPIs(
		projects_count=projects_count,
		best_accuracy=max(accuracy_values) if accuracy_values else 0,
		fastest_p95_ms=min(latency_values) if latency_values else 0,
		docker_reduction_pct=max(docker_values) if docker_values else 0,
	)


#============================================
def build_site_metrics(
	client,
	configs: list[repo_config.RepoConfig],
	impact_bullets: list[site_metrics.Metric],
	generated_iso: str | None = None,
	log_fn=log_step,
	fetch_dates: bool = True,
) -> site_metrics.SiteMetrics:
	"""
	Process every configured repository in order and assemble the document.
	"""
	projects = []
	for config in configs:
		projects.append(build_project_metrics(client, config, log_fn, fetch_dates))
	return site_metrics.SiteMetrics(
		hero=compute_hero_kpis(projects),
		impact_bullets=list(impact_bullets),
		projects=projects,
		last_generated_iso=generated_iso or utc_now_iso(),
	)


#============================================
def main() -> None:
	"""
	Run the metrics fetch and write the JSON document.
	"""
	args = parse_args()
	settings, settings_path = pipeline_settings.load_settings(args.settings)
	log_step(f"Using settings file: {settings_path}")
	output_path = pipeline_settings.resolve_path_setting(
		args.output,
		settings,
		["metrics", "output_path"],
		site_metrics.DEFAULT_METRICS_PATH,
	)
	try:
		configs = repo_config.load_repo_configs(settings)
		impact_bullets = repo_config.load_impact_bullets(settings)
		fetch_dates = pipeline_settings.get_setting_bool(settings, ["metrics", "fetch_commit_dates"], True)
	except RuntimeError as error:
		log_step(f"Configuration error: {error}")
		sys.exit(1)

	token = pipeline_settings.get_github_token(settings)
	if token:
		log_step("Using authenticated GitHub API mode.")
	else:
		log_step("Using unauthenticated GitHub API mode (lower rate limit).")
	try:
		client = github_client.GitHubClient(
			token,
			log_fn=log_step,
			low_remaining_threshold=pipeline_settings.get_setting_int(
				settings, ["github", "low_rate_limit_threshold"], 5,
			),
		)
	except RuntimeError as error:
		log_step(str(error))
		log_step("Aborting fetch run before network calls.")
		sys.exit(1)
	client.log_rate_limit("start")

	log_step(f"Fetching metrics from {len(configs)} repo(s)")
	site = build_site_metrics(client, configs, impact_bullets, fetch_dates=fetch_dates)

	try:
		written_path = site_metrics.write_site_metrics(output_path, site)
	except OSError as error:
		log_step(f"Failed to write {output_path}: {error}")
		sys.exit(1)
	log_step(f"Wrote {written_path}")
	log_step(f"Projects: {len(site.projects)}")
	log_step(f"Projects with evidence: {site.hero.projects_count}")
	log_step(f"Best accuracy: {site.hero.best_accuracy}%")
	log_step(f"Fastest P95: {site.hero.fastest_p95_ms}ms")
	log_step(f"Docker reduction: {site.hero.docker_reduction_pct}%")
	usage = client.api_usage_snapshot()
	log_step(f"GitHub API usage: calls={usage.get('api_call_count', 0)}")


if __name__ == "__main__":
	main()
