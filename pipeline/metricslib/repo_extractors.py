"""Per-repository metric extraction strategies.

Each source repository publishes its numbers differently: some ship JSON
benchmark reports, others only describe results in README prose. Every
strategy here is a pure function

	extract(artifacts, readme, repo_url, branch, log_fn=None) -> dict[str, Metric]

where ``artifacts`` maps a repository path to its decoded text. Strategies are
registered in EXTRACTORS under a stable key, and the fetch stage looks them up
by the key configured for each repository.

Artifact-derived metrics always win over text-derived ones for the same key.
"""

import json
import math
import os
import re

from metricslib import site_metrics


P95_RE = re.compile(r"P95[:\s]+~?(\d+)\s*ms", re.IGNORECASE)
P95_UPPER_BOUND_RE = re.compile(r"P95[:\s]+<\s*(\d+)\s*ms", re.IGNORECASE)
CACHE_HIT_RE = re.compile(r"cache hit rate[:\s]+~?(\d+)%", re.IGNORECASE)
DOCKER_SIZE_RE = re.compile(r"(\d+\.?\d*)\s*GB\s*(?:→|->)\s*(\d+)\s*MB")
RELEVANCE_RE = re.compile(r"\+(\d+)%\s+relevance", re.IGNORECASE)
R2_POINTS_RE = re.compile(r"Points.*?R²[:\s]+(\d+\.\d+)", re.IGNORECASE)
RECORDS_RE = re.compile(r"(\d+)K\+?\s+(?:game\s+)?records", re.IGNORECASE)
FEATURES_RE = re.compile(r"(\d+)\+?\s+(?:engineered\s+)?features", re.IGNORECASE)
FEATURES_PLUS_RE = re.compile(r"(\d+)\+\s+features", re.IGNORECASE)
ACCURACY_RE = re.compile(r"(\d+\.\d+)%\s+accuracy", re.IGNORECASE)
CACHED_LATENCY_RE = re.compile(r"<(\d+)\s*ms\s+cached", re.IGNORECASE)


#============================================
def round_half_up(value: float) -> int:
	"""
	Round .5 away from zero for positive values.
	"""
	return int(math.floor(value + 0.5))


#============================================
def blob_url(repo_url: str, branch: str, path: str) -> str:
	return f"{repo_url}/blob/{branch}/{path}"


#============================================
def artifact_metric(
	key: str,
	value,
	unit: str | None,
	note: str,
	href: str,
	label: str,
) -> site_metrics.Metric:
	"""
	Build a metric backed by a structured artifact file.
	"""
	return site_metrics.Metric(
		key=key,
		value=value,
		unit=unit,
		note=note,
		evidence=[site_metrics.EvidenceLink(label=label, href=href)],
		provenance="repo_artifact",
		reproducible=True,
	)


#============================================
def text_metric(
	key: str,
	value,
	unit: str | None,
	note: str,
	href: str,
	label: str,
	reproducible: bool,
) -> site_metrics.Metric:
	"""
	Build a metric parsed out of README or docs prose.
	"""
	return site_metrics.Metric(
		key=key,
		value=value,
		unit=unit,
		note=note,
		evidence=[site_metrics.EvidenceLink(label=label, href=href)],
		provenance="readme_text",
		reproducible=reproducible,
	)


#============================================
def merge_metrics(*sources: dict) -> dict:
	"""
	Merge metric maps in priority order; the first source to supply a key wins.
	"""
	merged: dict[str, site_metrics.Metric] = {}
	for source in sources:
		for key, metric in source.items():
			if key not in merged:
				merged[key] = metric
	return merged


#============================================
def load_json_artifact(artifacts: dict, path: str, log_fn=None) -> dict | None:
	"""
	Parse one JSON artifact; log and return None when absent or invalid.
	"""
	text = artifacts.get(path)
	if text is None:
		return None
	try:
		data = json.loads(text)
	except json.JSONDecodeError as error:
		if log_fn is not None:
			log_fn(f"Could not parse {path}: {error}")
		return None
	if not isinstance(data, dict):
		if log_fn is not None:
			log_fn(f"Could not parse {path}: expected a JSON object")
		return None
	return data


#============================================
def lookup_path(data: dict, path: tuple):
	"""
	Walk nested mappings; return None when any step is missing.
	"""
	current = data
	for step in path:
		if not isinstance(current, dict) or step not in current:
			return None
		current = current[step]
	return current


# transforms applied to raw JSON numbers
def as_int(value):
	return round_half_up(value)


def as_percent(value):
	return round_half_up(value * 100)


def as_2dp(value):
	return round(float(value), 2)


def as_3dp(value):
	return round(float(value), 3)


#============================================
def extract_json_fields(
	artifacts: dict,
	path: str,
	fields: list[tuple],
	repo_url: str,
	branch: str,
	log_fn=None,
) -> dict:
	"""
	Pull metrics out of one JSON artifact using a field table.

	Each field is (json_path, metric_key, unit, note, transform).
	"""
	data = load_json_artifact(artifacts, path, log_fn)
	if data is None:
		return {}
	href = blob_url(repo_url, branch, path)
	label = os.path.basename(path)
	metrics = {}
	for json_path, key, unit, note, transform in fields:
		raw = lookup_path(data, json_path)
		if raw is None:
			continue
		if not site_metrics.is_numeric(raw):
			if log_fn is not None:
				log_fn(f"Ignoring non-numeric {'.'.join(json_path)} in {path}")
			continue
		if not math.isfinite(raw):
			if log_fn is not None:
				log_fn(f"Ignoring non-finite {'.'.join(json_path)} in {path}")
			continue
		metrics[key] = artifact_metric(key, transform(raw), unit, note, href, label)
	return metrics


#============================================
# README pattern helpers; each returns None when the pattern is absent

def find_p95_ms(text: str) -> int | None:
	match = P95_RE.search(text)
	return int(match.group(1)) if match else None


def find_p95_upper_bound_ms(text: str) -> int | None:
	match = P95_UPPER_BOUND_RE.search(text)
	return int(match.group(1)) if match else None


def find_cache_hit_pct(text: str) -> int | None:
	match = CACHE_HIT_RE.search(text)
	return int(match.group(1)) if match else None


def find_docker_sizes(text: str) -> tuple[float, int] | None:
	"""
	Return (before_gb, after_mb) from an "X GB → Y MB" phrase.

	A zero starting size yields None since no reduction can be computed.
	"""
	match = DOCKER_SIZE_RE.search(text)
	if not match:
		return None
	before_gb = float(match.group(1))
	if before_gb <= 0:
		return None
	return before_gb, int(match.group(2))


def find_relevance_boost_pct(text: str) -> int | None:
	match = RELEVANCE_RE.search(text)
	return int(match.group(1)) if match else None


def find_r2_points(text: str) -> float | None:
	match = R2_POINTS_RE.search(text)
	return float(match.group(1)) if match else None


def find_records_thousands(text: str) -> int | None:
	match = RECORDS_RE.search(text)
	return int(match.group(1)) if match else None


def find_feature_count(text: str, require_plus: bool = False) -> int | None:
	pattern = FEATURES_PLUS_RE if require_plus else FEATURES_RE
	match = pattern.search(text)
	return int(match.group(1)) if match else None


def find_accuracy_pct(text: str) -> float | None:
	match = ACCURACY_RE.search(text)
	return float(match.group(1)) if match else None


def find_cached_latency_ms(text: str) -> int | None:
	match = CACHED_LATENCY_RE.search(text)
	return int(match.group(1)) if match else None


#============================================
def docker_reduction_pct(before_gb: float, after_mb: int) -> int:
	"""
	Percent image size reduction from GB before to MB after.
	"""
	return round_half_up((1 - after_mb / (before_gb * 1024)) * 100)


#============================================
def format_gb(value: float) -> str:
	if value == int(value):
		return str(int(value))
	return str(value)


#============================================
CHAT_BENCHMARK_FIELDS = [
	(("p95_latency_ms",), "p95_latency_ms", "ms", "local synthetic benchmark", as_int),
]
CHAT_CACHE_FIELDS = [
	(("cache_hit_rate",), "cache_hit_rate", "%", "semantic cache", as_percent),
	(("cost_reduction",), "cost_reduction", "%", "API cost savings", as_percent),
]
K6_FIELDS = [
	(("metrics", "http_req_duration", "p(95)"), "load_test_p95_ms", "ms", "k6 load test", as_int),
	(("metrics", "http_reqs", "rate"), "load_test_rps", " RPS", "k6 load test throughput", as_2dp),
]


#============================================
def extract_chat_platform(artifacts: dict, readme: str | None, repo_url: str, branch: str, log_fn=None) -> dict:
	artifact_metrics = merge_metrics(
		extract_json_fields(
			artifacts, "benchmarks/results/benchmark_summary.json",
			CHAT_BENCHMARK_FIELDS, repo_url, branch, log_fn,
		),
		extract_json_fields(
			artifacts, "benchmarks/results/cache_metrics_latest.json",
			CHAT_CACHE_FIELDS, repo_url, branch, log_fn,
		),
		extract_json_fields(
			artifacts, "benchmarks/load_tests/k6_results.json",
			K6_FIELDS, repo_url, branch, log_fn,
		),
	)
	readme_metrics = {}
	if readme:
		# README numbers here are not tied to a committed report
		href = f"{repo_url}#verified-performance-metrics-local-synthetic-benchmarks"
		p95 = find_p95_ms(readme)
		if p95 is not None:
			readme_metrics["p95_latency_ms"] = text_metric(
				"p95_latency_ms", p95, "ms", "from README", href, "README.md", False,
			)
		cache_hit = find_cache_hit_pct(readme)
		if cache_hit is not None:
			readme_metrics["cache_hit_rate"] = text_metric(
				"cache_hit_rate", cache_hit, "%", "from README", href, "README.md", False,
			)
	return merge_metrics(artifact_metrics, readme_metrics)


#============================================
DOC_INTEL_RETRIEVAL_FIELDS = [
	(("cache_hit_rate",), "cache_hit_rate", "%", "semantic cache", as_percent),
	(("p95_latency_ms",), "p95_latency_ms", "ms", "query latency", as_int),
]


#============================================
def parse_doc_intel_text(text: str, href: str, label: str) -> dict:
	"""
	Parse Document Intelligence README/docs prose.
	"""
	metrics = {}
	cache_hit = find_cache_hit_pct(text)
	if cache_hit is not None:
		metrics["cache_hit_rate"] = text_metric(
			"cache_hit_rate", cache_hit, "%", "semantic cache", href, label, True,
		)
	p95 = find_p95_upper_bound_ms(text)
	if p95 is not None:
		metrics["p95_latency_ms"] = text_metric(
			"p95_latency_ms", p95, "ms", "query latency", href, label, True,
		)
	sizes = find_docker_sizes(text)
	if sizes is not None:
		before_gb, after_mb = sizes
		metrics["docker_reduction"] = text_metric(
			"docker_reduction",
			docker_reduction_pct(before_gb, after_mb),
			"%",
			f"{format_gb(before_gb)}GB → {after_mb}MB",
			href,
			label,
			True,
		)
	boost = find_relevance_boost_pct(text)
	if boost is not None:
		metrics["relevance_boost"] = text_metric(
			"relevance_boost", boost, "%", "cross-encoder reranking", href, label, True,
		)
	return metrics


#============================================
def extract_doc_intel(artifacts: dict, readme: str | None, repo_url: str, branch: str, log_fn=None) -> dict:
	artifact_metrics = extract_json_fields(
		artifacts, "eval/retrieval_metrics.json",
		DOC_INTEL_RETRIEVAL_FIELDS, repo_url, branch, log_fn,
	)
	docs_metrics = {}
	docs_text = artifacts.get("docs/metrics.md")
	if docs_text:
		docs_metrics = parse_doc_intel_text(
			docs_text, blob_url(repo_url, branch, "docs/metrics.md"), "metrics.md",
		)
	readme_metrics = {}
	if readme:
		readme_metrics = parse_doc_intel_text(readme, f"{repo_url}#key-performance-metrics", "README.md")
	return merge_metrics(artifact_metrics, docs_metrics, readme_metrics)


#============================================
def parse_nba_text(text: str, href: str, label: str) -> dict:
	"""
	Parse NBA prediction README/docs prose.
	"""
	metrics = {}
	r2_points = find_r2_points(text)
	if r2_points is not None:
		metrics["r2_points"] = text_metric(
			"r2_points", r2_points, None, "points prediction", href, label, True,
		)
	p95 = find_p95_ms(text)
	if p95 is not None:
		metrics["p95_latency_ms"] = text_metric(
			"p95_latency_ms", p95, "ms", "API latency", href, label, True,
		)
	records = find_records_thousands(text)
	if records is not None:
		metrics["records_processed"] = text_metric(
			"records_processed", f"{records}K+", None, "ETL pipeline", href, label, True,
		)
	features = find_feature_count(text)
	if features is not None:
		metrics["features"] = text_metric(
			"features", f"{features}+", None, "feature engineering", href, label, True,
		)
	return metrics


#============================================
def extract_nba(artifacts: dict, readme: str | None, repo_url: str, branch: str, log_fn=None) -> dict:
	docs_metrics = {}
	docs_text = artifacts.get("docs/model_performance.md")
	if docs_text:
		docs_metrics = parse_nba_text(
			docs_text,
			blob_url(repo_url, branch, "docs/model_performance.md"),
			"model_performance.md",
		)
	readme_metrics = {}
	if readme:
		readme_metrics = parse_nba_text(readme, f"{repo_url}#model-performance", "README.md")
	return merge_metrics(docs_metrics, readme_metrics)


#============================================
def extract_fantasy(artifacts: dict, readme: str | None, repo_url: str, branch: str, log_fn=None) -> dict:
	if not readme:
		return {}
	href = f"{repo_url}#verified-production-metrics"
	metrics = {}
	accuracy = find_accuracy_pct(readme)
	if accuracy is not None:
		metrics["accuracy"] = text_metric(
			"accuracy", accuracy, "%", "within ±3 fantasy points", href, "README.md", True,
		)
	cached = find_cached_latency_ms(readme)
	if cached is not None:
		metrics["latency_cached_ms"] = text_metric(
			"latency_cached_ms", cached, "ms", "cached response", href, "README.md", True,
		)
	features = find_feature_count(readme, require_plus=True)
	if features is not None:
		metrics["features"] = text_metric(
			"features", f"{features}+", None, "engineered features", href, "README.md", True,
		)
	return metrics


#============================================
RAG_RESULTS_FIELDS = [
	(("p99_latency_ms",), "p99_latency_ms", "ms", "local synthetic", as_int),
	(("throughput_rps",), "throughput_rps", " RPS", "requests per second", as_2dp),
]
RAGAS_FIELDS = [
	(("answer_relevancy",), "ragas_answer_relevancy", None, "RAGAS metric", as_3dp),
	(("context_recall",), "ragas_context_recall", None, "RAGAS metric", as_3dp),
	(("faithfulness",), "ragas_faithfulness", None, "RAGAS metric", as_3dp),
]


#============================================
def extract_rag_pipeline(artifacts: dict, readme: str | None, repo_url: str, branch: str, log_fn=None) -> dict:
	return merge_metrics(
		extract_json_fields(artifacts, "results/metrics.json", RAG_RESULTS_FIELDS, repo_url, branch, log_fn),
		extract_json_fields(artifacts, "results/ragas_evaluation.json", RAGAS_FIELDS, repo_url, branch, log_fn),
	)


EXTRACTORS = {
	"chatbot-ai-system": extract_chat_platform,
	"document-intelligence-ai": extract_doc_intel,
	"nba-ai-ml": extract_nba,
	"fantasy-football-ai": extract_fantasy,
	"rag-pipeline": extract_rag_pipeline,
}


#============================================
def get_extractor(key: str):
	"""
	Return the extraction strategy registered under key, or None.
	"""
	return EXTRACTORS.get(key)
