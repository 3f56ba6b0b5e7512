import json
import os
import sys


REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
PIPELINE_DIR = os.path.join(REPO_ROOT, "pipeline")
if PIPELINE_DIR not in sys.path:
	sys.path.insert(0, PIPELINE_DIR)

from metricslib import repo_extractors


REPO_URL = "https://github.com/owner/chatbot-ai-system"

CHAT_README = """\
# Chat Platform

## Verified Performance Metrics (Local Synthetic Benchmarks)

- P95: ~190 ms end-to-end
- Cache hit rate: ~70% on repeated prompts
"""

DOC_INTEL_README = """\
## Key Performance Metrics

| Metric | Value |
| --- | --- |
| Semantic cache hit rate: 42% | measured |
| Query latency P95: < 200 ms | measured |

Docker image slimmed from 3.3 GB → 402 MB.
Cross-encoder reranking gives +15% relevance.
"""

NBA_README = """\
## Model Performance

- Points prediction R²: 0.942
- API P95: 87 ms
- 169K+ game records processed
- 40+ engineered features
"""

FANTASY_README = """\
## Verified Production Metrics

- 93.1% accuracy within ±3 fantasy points
- <100 ms cached responses, <200 ms uncached
- 50+ features per player
"""


#============================================
def test_find_helpers_return_none_when_absent() -> None:
	"""
	Every README pattern helper is silent on unrelated text.
	"""
	text = "Nothing to see here."
	assert repo_extractors.find_p95_ms(text) is None
	assert repo_extractors.find_p95_upper_bound_ms(text) is None
	assert repo_extractors.find_cache_hit_pct(text) is None
	assert repo_extractors.find_docker_sizes(text) is None
	assert repo_extractors.find_relevance_boost_pct(text) is None
	assert repo_extractors.find_r2_points(text) is None
	assert repo_extractors.find_records_thousands(text) is None
	assert repo_extractors.find_feature_count(text) is None
	assert repo_extractors.find_accuracy_pct(text) is None
	assert repo_extractors.find_cached_latency_ms(text) is None


#============================================
def test_docker_reduction_pct_rounds_half_up() -> None:
	assert repo_extractors.docker_reduction_pct(3.3, 402) == 88
	assert repo_extractors.round_half_up(72.5) == 73


#============================================
def test_merge_metrics_first_source_wins() -> None:
	artifact = {"p95_latency_ms": "artifact"}
	readme = {"p95_latency_ms": "readme", "cache_hit_rate": "readme"}
	merged = repo_extractors.merge_metrics(artifact, readme)
	assert merged == {"p95_latency_ms": "artifact", "cache_hit_rate": "readme"}


#============================================
def test_chat_platform_prefers_artifacts_per_key() -> None:
	"""
	Artifact p95 wins; README only fills the missing cache hit key.
	"""
	artifacts = {
		"benchmarks/results/benchmark_summary.json": json.dumps({"p95_latency_ms": 185.6}),
	}
	metrics = repo_extractors.extract_chat_platform(artifacts, CHAT_README, REPO_URL, "main")
	p95 = metrics["p95_latency_ms"]
	assert p95.value == 186
	assert p95.provenance == "repo_artifact"
	assert p95.reproducible is True
	assert p95.evidence[0].href == f"{REPO_URL}/blob/main/benchmarks/results/benchmark_summary.json"
	cache = metrics["cache_hit_rate"]
	assert cache.value == 70
	assert cache.provenance == "readme_text"
	assert cache.reproducible is False


#============================================
def test_chat_platform_cache_fractions_become_percent() -> None:
	artifacts = {
		"benchmarks/results/cache_metrics_latest.json": json.dumps(
			{"cache_hit_rate": 0.731, "cost_reduction": 0.7}
		),
	}
	metrics = repo_extractors.extract_chat_platform(artifacts, None, REPO_URL, "main")
	assert metrics["cache_hit_rate"].value == 73
	assert metrics["cost_reduction"].value == 70
	assert metrics["cost_reduction"].unit == "%"


#============================================
def test_invalid_json_artifact_is_skipped_and_logged() -> None:
	"""
	A broken artifact is skipped while its sibling still contributes.
	"""
	messages = []
	artifacts = {
		"benchmarks/results/benchmark_summary.json": "{not json",
		"benchmarks/results/cache_metrics_latest.json": json.dumps({"cache_hit_rate": 0.5}),
	}
	metrics = repo_extractors.extract_chat_platform(
		artifacts, None, REPO_URL, "main", messages.append,
	)
	assert list(metrics) == ["cache_hit_rate"]
	assert any("benchmark_summary.json" in message for message in messages)


#============================================
def test_non_numeric_json_field_is_ignored() -> None:
	artifacts = {"results/metrics.json": json.dumps({"p99_latency_ms": "fast", "throughput_rps": 20.784})}
	metrics = repo_extractors.extract_rag_pipeline(artifacts, None, REPO_URL, "main")
	assert "p99_latency_ms" not in metrics
	assert metrics["throughput_rps"].value == 20.78


#============================================
def test_non_finite_json_values_are_ignored() -> None:
	"""
	NaN and Infinity parse as floats but never become metrics.
	"""
	messages = []
	artifacts = {
		"benchmarks/results/benchmark_summary.json": '{"p95_latency_ms": NaN}',
		"benchmarks/results/cache_metrics_latest.json": '{"cache_hit_rate": Infinity, "cost_reduction": 0.7}',
	}
	metrics = repo_extractors.extract_chat_platform(artifacts, None, REPO_URL, "main", messages.append)
	assert list(metrics) == ["cost_reduction"]
	assert sum(1 for message in messages if "non-finite" in message) == 2


#============================================
def test_zero_gb_docker_phrase_is_skipped() -> None:
	readme = "Cache hit rate: 42%\nDocker image 0 GB → 400 MB\n"
	assert repo_extractors.find_docker_sizes(readme) is None
	metrics = repo_extractors.extract_doc_intel({}, readme, REPO_URL, "main")
	assert "docker_reduction" not in metrics
	assert metrics["cache_hit_rate"].value == 42


#============================================
def test_k6_nested_fields() -> None:
	artifacts = {
		"benchmarks/load_tests/k6_results.json": json.dumps(
			{"metrics": {"http_req_duration": {"p(95)": 210.4}, "http_reqs": {"rate": 12.346}}}
		),
	}
	metrics = repo_extractors.extract_chat_platform(artifacts, None, REPO_URL, "main")
	assert metrics["load_test_p95_ms"].value == 210
	assert metrics["load_test_rps"].value == 12.35


#============================================
def test_doc_intel_readme_metrics() -> None:
	metrics = repo_extractors.extract_doc_intel({}, DOC_INTEL_README, REPO_URL, "main")
	assert metrics["cache_hit_rate"].value == 42
	assert metrics["p95_latency_ms"].value == 200
	docker = metrics["docker_reduction"]
	assert docker.value == 88
	assert docker.note == "3.3GB → 402MB"
	assert metrics["relevance_boost"].value == 15
	assert all(metric.provenance == "readme_text" for metric in metrics.values())
	assert all(metric.reproducible for metric in metrics.values())


#============================================
def test_nba_readme_metrics() -> None:
	metrics = repo_extractors.extract_nba({}, NBA_README, REPO_URL, "main")
	assert metrics["r2_points"].value == 0.942
	assert metrics["p95_latency_ms"].value == 87
	assert metrics["records_processed"].value == "169K+"
	assert metrics["features"].value == "40+"


#============================================
def test_fantasy_accuracy_note_carries_definition() -> None:
	metrics = repo_extractors.extract_fantasy({}, FANTASY_README, REPO_URL, "main")
	accuracy = metrics["accuracy"]
	assert accuracy.value == 93.1
	assert "±3" in accuracy.note
	assert metrics["latency_cached_ms"].value == 100
	assert metrics["features"].value == "50+"


#============================================
def test_fantasy_without_readme_is_empty() -> None:
	assert repo_extractors.extract_fantasy({}, None, REPO_URL, "main") == {}


#============================================
def test_rag_pipeline_ragas_fields() -> None:
	artifacts = {
		"results/ragas_evaluation.json": json.dumps(
			{"answer_relevancy": 0.91234, "context_recall": 0.8, "faithfulness": 0.9566}
		),
	}
	metrics = repo_extractors.extract_rag_pipeline(artifacts, None, REPO_URL, "main")
	assert metrics["ragas_answer_relevancy"].value == 0.912
	assert metrics["ragas_faithfulness"].value == 0.957
	assert metrics["ragas_context_recall"].unit is None


#============================================
def test_get_extractor_lookup() -> None:
	assert repo_extractors.get_extractor("rag-pipeline") is repo_extractors.extract_rag_pipeline
	assert repo_extractors.get_extractor("unknown-repo") is None
