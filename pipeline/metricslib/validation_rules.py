"""Honesty and completeness rules for the metrics document.

Rules work on the raw JSON mapping rather than the typed dataclasses so that
missing fields can be reported instead of silently defaulted. Every rule is
independent and returns a list of findings; validate_document() runs all of
them and keeps every finding.
"""

import json
import re
from dataclasses import dataclass

from metricslib import site_metrics


ERROR = "error"
WARNING = "warning"

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_RE = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b")
UPTIME_WORDS = ("uptime", "availability")
STATUS_PAGE_HINTS = ("status.", "statuspage.io", "uptime.io", "/status")
UPTIME_FIGURE_RE = re.compile(r"99\.\d%")

# (hero field, source metric key); None means "any reproducible metric"
HERO_KPI_SOURCES = [
	("projectsCount", None),
	("bestAccuracy", "accuracy"),
	("fastestP95ms", "p95_latency_ms"),
	("dockerReductionPct", "docker_reduction"),
]

# editorial guardrails keyed by a case-insensitive project title substring
NOTE_RULES = [
	{"title_match": "fantasy", "metric_key": "accuracy", "required_note": "±3"},
]
STAGE_RULES = [
	{"title_match": "chat", "required_stage": "synthetic_benchmark"},
]


#============================================
@dataclass(frozen=True)
class Finding:
	severity: str
	message: str
	subject: str = ""

	@property
	def is_error(self) -> bool:
		return self.severity == ERROR


#============================================
def iter_project_metrics(data: dict):
	"""
	Yield (project, metric_name, metric) for every metric mapping in every project.
	"""
	for project in data.get("projects", []):
		for metric_name, metric in (project.get("metrics") or {}).items():
			yield project, metric_name, metric


#============================================
def project_label(project: dict) -> str:
	return str(project.get("repo") or project.get("title") or "(unknown)")


#============================================
def check_hero_kpis(data: dict) -> list[Finding]:
	"""
	A hero KPI must not be 0 when a qualifying source metric exists.
	"""
	findings = []
	hero = data.get("hero") or {}
	metrics = [metric for _, _, metric in iter_project_metrics(data) if isinstance(metric, dict)]
	for field_name, source_key in HERO_KPI_SOURCES:
		if source_key is None:
			has_source = any(metric.get("reproducible") is True for metric in metrics)
			source_text = "reproducible metrics"
		else:
			has_source = any(metric.get("key") == source_key for metric in metrics)
			source_text = f"'{source_key}' metrics"
		if not has_source:
			continue
		if not hero.get(field_name):
			findings.append(Finding(
				ERROR,
				f"Hero KPI {field_name} is 0, but {source_text} exist in projects",
				field_name,
			))
	return findings


#============================================
def check_metric_fields(data: dict) -> list[Finding]:
	"""
	Every project metric needs key, value, provenance and reproducible.
	"""
	findings = []
	for project, metric_name, metric in iter_project_metrics(data):
		label = project_label(project)
		if not isinstance(metric, dict):
			findings.append(Finding(ERROR, f"Project {label}: Metric '{metric_name}' is not an object", metric_name))
			continue
		key = metric.get("key")
		if not key:
			findings.append(Finding(ERROR, f"Project {label}: Metric missing 'key' field", metric_name))
			key = metric_name
		if metric.get("value") is None:
			findings.append(Finding(ERROR, f"Project {label}: Metric '{key}' missing 'value' field", key))
		provenance = metric.get("provenance")
		if not provenance:
			findings.append(Finding(ERROR, f"Project {label}: Metric '{key}' missing 'provenance' field", key))
		elif provenance not in site_metrics.PROVENANCES:
			findings.append(Finding(ERROR, f"Project {label}: Metric '{key}' has unknown provenance '{provenance}'", key))
		if not isinstance(metric.get("reproducible"), bool):
			findings.append(Finding(ERROR, f"Project {label}: Metric '{key}' missing 'reproducible' field", key))
	return findings


#============================================
def check_production_reproducible(data: dict) -> list[Finding]:
	"""
	Production-stage claims must all be reproducible.
	"""
	findings = []
	for project, metric_name, metric in iter_project_metrics(data):
		if project.get("stage") != "production" or not isinstance(metric, dict):
			continue
		if metric.get("reproducible") is not True:
			key = metric.get("key") or metric_name
			findings.append(Finding(
				ERROR,
				f"Project {project_label(project)}: Metric '{key}' is labeled 'production' but reproducible=false",
				key,
			))
	return findings


#============================================
def check_evidence_links(data: dict) -> list[Finding]:
	findings = []
	for project, metric_name, metric in iter_project_metrics(data):
		if not isinstance(metric, dict) or metric.get("reproducible") is not True:
			continue
		if not metric.get("evidence"):
			key = metric.get("key") or metric_name
			findings.append(Finding(
				WARNING,
				f"Project {project_label(project)}: Metric '{key}' is reproducible but has no evidence links",
				key,
			))
	return findings


#============================================
def check_empty_projects(data: dict) -> list[Finding]:
	findings = []
	for project in data.get("projects", []):
		if not project.get("metrics"):
			label = project_label(project)
			findings.append(Finding(WARNING, f"Project {label}: No metrics found", label))
	return findings


#============================================
def check_impact_bullets(data: dict) -> list[Finding]:
	"""
	Internal facts must never look publicly verifiable.
	"""
	findings = []
	for bullet in data.get("impactBullets", []):
		key = str(bullet.get("key") or "(unknown)")
		provenance = bullet.get("provenance")
		if provenance != "resume_internal":
			findings.append(Finding(
				ERROR,
				f"Impact bullet '{key}': Expected provenance='resume_internal', got '{provenance}'",
				key,
			))
		if bullet.get("reproducible") is not False:
			findings.append(Finding(
				ERROR,
				f"Impact bullet '{key}': Internal metrics should have reproducible=false",
				key,
			))
		for link in bullet.get("evidence") or []:
			if isinstance(link, dict) and link.get("href"):
				findings.append(Finding(
					ERROR,
					f"Impact bullet '{key}': Internal metrics must not link to {link.get('href')}",
					key,
				))
				break
	return findings


#============================================
def matching_projects(data: dict, title_match: str) -> list[dict]:
	needle = title_match.lower()
	return [
		project for project in data.get("projects", [])
		if needle in str(project.get("title") or "").lower()
	]


#============================================
def check_note_rules(data: dict, rules: list[dict] = NOTE_RULES) -> list[Finding]:
	"""
	Named projects must qualify specific metrics with a required note.
	"""
	findings = []
	for rule in rules:
		for project in matching_projects(data, rule["title_match"]):
			for metric in (project.get("metrics") or {}).values():
				if not isinstance(metric, dict) or metric.get("key") != rule["metric_key"]:
					continue
				if rule["required_note"] not in str(metric.get("note") or ""):
					findings.append(Finding(
						ERROR,
						f"Project {project_label(project)}: '{rule['metric_key']}' note must include "
						+ f"\"{rule['required_note']}\"",
						rule["metric_key"],
					))
	return findings


#============================================
def check_stage_rules(data: dict, rules: list[dict] = STAGE_RULES) -> list[Finding]:
	findings = []
	for rule in rules:
		for project in matching_projects(data, rule["title_match"]):
			if project.get("stage") != rule["required_stage"]:
				findings.append(Finding(
					ERROR,
					f"Project {project_label(project)}: must have stage='{rule['required_stage']}', "
					+ f"found '{project.get('stage')}'",
					project_label(project),
				))
	return findings


#============================================
def check_pii(data: dict) -> list[Finding]:
	"""
	Scan the serialized document for email and phone number patterns.
	"""
	findings = []
	text = json.dumps(data, ensure_ascii=False)
	if EMAIL_RE.search(text):
		findings.append(Finding(ERROR, "Potential email address found in metrics document - remove all PII", "pii"))
	if PHONE_RE.search(text):
		findings.append(Finding(ERROR, "Potential phone number found in metrics document - remove all PII", "pii"))
	return findings


#============================================
def is_uptime_claim(metric: dict) -> bool:
	"""
	True when key or note names uptime, or value or note carries a 99.x% figure.
	"""
	text = f"{metric.get('key') or ''} {metric.get('note') or ''}".lower()
	if any(word in text for word in UPTIME_WORDS):
		return True
	figure_text = f"{metric.get('value')} {metric.get('note') or ''}"
	return UPTIME_FIGURE_RE.search(figure_text) is not None


#============================================
def has_status_page_link(metric: dict) -> bool:
	for link in metric.get("evidence") or []:
		if not isinstance(link, dict):
			continue
		href = str(link.get("href") or "").lower()
		if any(hint in href for hint in STATUS_PAGE_HINTS):
			return True
	return False


#============================================
def check_uptime_claims(data: dict) -> list[Finding]:
	"""
	Uptime or availability metrics need a public status page link.
	"""
	findings = []
	candidates = [
		(project_label(project), metric)
		for project, _, metric in iter_project_metrics(data)
		if isinstance(metric, dict)
	]
	candidates += [("impactBullets", bullet) for bullet in data.get("impactBullets", [])]
	for label, metric in candidates:
		if is_uptime_claim(metric) and not has_status_page_link(metric):
			key = str(metric.get("key") or "(unknown)")
			findings.append(Finding(
				ERROR,
				f"{label}: Uptime claim '{key}' has no public status page link",
				key,
			))
	return findings


RULES = [
	check_hero_kpis,
	check_metric_fields,
	check_production_reproducible,
	check_evidence_links,
	check_empty_projects,
	check_impact_bullets,
	check_note_rules,
	check_stage_rules,
	check_pii,
	check_uptime_claims,
]


#============================================
def validate_document(data: dict) -> list[Finding]:
	"""
	Run every rule on an already-parsed document.
	"""
	findings = []
	for rule in RULES:
		findings.extend(rule(data))
	return findings


#============================================
def validate_metrics_file(path: str) -> list[Finding]:
	"""
	Load and validate a metrics file; load failures short-circuit to one error.
	"""
	try:
		data = site_metrics.read_metrics_json(path)
	except FileNotFoundError:
		return [Finding(ERROR, f"Metrics file not found at {path}. Run fetch_metrics.py first.", path)]
	except site_metrics.MetricsFileError as error:
		return [Finding(ERROR, f"Failed to parse metrics document: {error}", path)]
	return validate_document(data)


#============================================
def count_errors(findings: list[Finding]) -> int:
	return sum(1 for finding in findings if finding.is_error)
