"""Typed view of the SiteMetrics JSON document shared by every pipeline stage."""

import json
import os
from dataclasses import dataclass
from dataclasses import field


PROVENANCES = ("repo_artifact", "readme_text", "commit_stats", "resume_internal")
STAGES = ("production", "synthetic_benchmark", "prototype")
DEFAULT_METRICS_PATH = "data/metrics.json"


#============================================
class MetricsFileError(RuntimeError):
	"""
	Raised when the metrics document cannot be parsed into SiteMetrics shape.
	"""


#============================================
def is_numeric(value) -> bool:
	"""
	True for int and float values, false for bool and text.
	"""
	if isinstance(value, bool):
		return False
	return isinstance(value, (int, float))


#============================================
@dataclass
class EvidenceLink:
	label: str
	href: str

	def to_dict(self) -> dict:
		return {"label": self.label, "href": self.href}

	@classmethod
	def from_dict(cls, data: dict) -> "EvidenceLink":
		return cls(
			label=str(data.get("label") or ""),
			href=str(data.get("href") or ""),
		)


#============================================
@dataclass
class Metric:
	key: str
	value: int | float | str
	provenance: str
	reproducible: bool
	unit: str | None = None
	note: str | None = None
	evidence: list[EvidenceLink] = field(default_factory=list)
	last_updated_iso: str | None = None

	#============================================
	def to_dict(self) -> dict:
		"""
		Serialize to the camelCase JSON shape, omitting unset optional fields.
		"""
		data = {
			"key": self.key,
			"value": self.value,
		}
		if self.unit is not None:
			data["unit"] = self.unit
		if self.note is not None:
			data["note"] = self.note
		data["evidence"] = [link.to_dict() for link in self.evidence]
		if self.last_updated_iso is not None:
			data["lastUpdatedISO"] = self.last_updated_iso
		data["provenance"] = self.provenance
		data["reproducible"] = self.reproducible
		return data

	#============================================
	@classmethod
	def from_dict(cls, data: dict) -> "Metric":
		"""
		Build a Metric from its JSON mapping.
		"""
		evidence = [
			EvidenceLink.from_dict(item)
			for item in (data.get("evidence") or [])
			if isinstance(item, dict)
		]
		return cls(
			key=str(data.get("key") or ""),
			value=data.get("value"),
			provenance=str(data.get("provenance") or ""),
			reproducible=bool(data.get("reproducible", False)),
			unit=data.get("unit"),
			note=data.get("note"),
			evidence=evidence,
			last_updated_iso=data.get("lastUpdatedISO"),
		)

	#============================================
	def first_evidence(self) -> EvidenceLink | None:
		"""
		Return the first evidence link with a non-empty href.
		"""
		for link in self.evidence:
			if link.href:
				return link
		return None


#============================================
@dataclass
class ProjectMetrics:
	repo: str
	title: str
	stage: str
	summary: str
	case_study_path: str
	tech: list[str] = field(default_factory=list)
	metrics: dict[str, Metric] = field(default_factory=dict)

	def to_dict(self) -> dict:
		return {
			"repo": self.repo,
			"title": self.title,
			"stage": self.stage,
			"metrics": {key: metric.to_dict() for key, metric in self.metrics.items()},
			"summary": self.summary,
			"caseStudyPath": self.case_study_path,
			"tech": list(self.tech),
		}

	@classmethod
	def from_dict(cls, data: dict) -> "ProjectMetrics":
		raw_metrics = data.get("metrics") or {}
		if not isinstance(raw_metrics, dict):
			raise MetricsFileError(f"Project {data.get('repo')}: metrics must be a mapping")
		metrics = {}
		for key, raw in raw_metrics.items():
			if not isinstance(raw, dict):
				raise MetricsFileError(f"Project {data.get('repo')}: metric {key} must be a mapping")
			metrics[key] = Metric.from_dict(raw)
		return cls(
			repo=str(data.get("repo") or ""),
			title=str(data.get("title") or ""),
			stage=str(data.get("stage") or ""),
			summary=str(data.get("summary") or ""),
			case_study_path=str(data.get("caseStudyPath") or ""),
			tech=[str(item) for item in (data.get("tech") or [])],
			metrics=metrics,
		)


#============================================
@dataclass
class HeroKPIs:
	projects_count: int = 0
	best_accuracy: int | float = 0
	fastest_p95_ms: int | float = 0
	docker_reduction_pct: int | float = 0

	def to_dict(self) -> dict:
		return {
			"projectsCount": self.projects_count,
			"bestAccuracy": self.best_accuracy,
			"fastestP95ms": self.fastest_p95_ms,
			"dockerReductionPct": self.docker_reduction_pct,
		}

	@classmethod
	def from_dict(cls, data: dict) -> "HeroKPIs":
		return cls(
			projects_count=data.get("projectsCount") or 0,
			best_accuracy=data.get("bestAccuracy") or 0,
			fastest_p95_ms=data.get("fastestP95ms") or 0,
			docker_reduction_pct=data.get("dockerReductionPct") or 0,
		)


#============================================
@dataclass
class SiteMetrics:
	hero: HeroKPIs
	impact_bullets: list[Metric]
	projects: list[ProjectMetrics]
	last_generated_iso: str

	def to_dict(self) -> dict:
		return {
			"hero": self.hero.to_dict(),
			"impactBullets": [metric.to_dict() for metric in self.impact_bullets],
			"projects": [project.to_dict() for project in self.projects],
			"lastGeneratedISO": self.last_generated_iso,
		}

	@classmethod
	def from_dict(cls, data: dict) -> "SiteMetrics":
		check_document_shape(data)
		return cls(
			hero=HeroKPIs.from_dict(data["hero"]),
			impact_bullets=[Metric.from_dict(item) for item in data["impactBullets"]],
			projects=[ProjectMetrics.from_dict(item) for item in data["projects"]],
			last_generated_iso=str(data.get("lastGeneratedISO") or ""),
		)


#============================================
def check_document_shape(data) -> None:
	"""
	Raise MetricsFileError unless data has the SiteMetrics root layout.
	"""
	if not isinstance(data, dict):
		raise MetricsFileError("metrics document root must be an object")
	if not isinstance(data.get("hero"), dict):
		raise MetricsFileError("metrics document is missing the 'hero' object")
	if not isinstance(data.get("projects"), list):
		raise MetricsFileError("metrics document is missing the 'projects' list")
	if not isinstance(data.get("impactBullets"), list):
		raise MetricsFileError("metrics document is missing the 'impactBullets' list")
	for index, project in enumerate(data["projects"]):
		if not isinstance(project, dict):
			raise MetricsFileError(f"projects[{index}] must be an object")
		if not isinstance(project.get("metrics", {}), dict):
			raise MetricsFileError(f"projects[{index}].metrics must be a mapping")
	for index, bullet in enumerate(data["impactBullets"]):
		if not isinstance(bullet, dict):
			raise MetricsFileError(f"impactBullets[{index}] must be an object")


#============================================
def read_metrics_json(path: str) -> dict:
	"""
	Load the raw metrics JSON mapping from disk.
	"""
	if not os.path.isfile(path):
		raise FileNotFoundError(f"Missing metrics input: {path}")
	try:
		with open(path, "r", encoding="utf-8") as handle:
			data = json.load(handle)
	except (json.JSONDecodeError, UnicodeDecodeError) as error:
		raise MetricsFileError(f"Failed to parse {path}: {error}") from error
	check_document_shape(data)
	return data


#============================================
def load_site_metrics(path: str) -> SiteMetrics:
	"""
	Load and type the metrics document.
	"""
	data = read_metrics_json(path)
	return SiteMetrics.from_dict(data)


#============================================
def write_site_metrics(path: str, site: SiteMetrics) -> str:
	"""
	Replace the metrics document on disk with a pretty-printed snapshot.
	"""
	output_path = os.path.abspath(path)
	output_dir = os.path.dirname(output_path)
	if output_dir:
		os.makedirs(output_dir, exist_ok=True)
	with open(output_path, "w", encoding="utf-8") as handle:
		json.dump(site.to_dict(), handle, ensure_ascii=False, indent=2)
		handle.write("\n")
	return output_path


#============================================
def format_metric_value(metric: Metric) -> str:
	"""
	Render value with its unit suffix when present.
	"""
	if metric.unit:
		return f"{metric.value}{metric.unit}"
	return f"{metric.value}"


#============================================
def humanize_key(key: str, unit: str | None = None) -> str:
	"""
	Turn a snake_case metric key into words.

	A trailing token that repeats the unit (p95_ms with unit "ms") is dropped.
	"""
	words = key.split("_")
	unit_text = (unit or "").strip().lower()
	if unit_text and len(words) > 1 and words[-1].lower() == unit_text:
		words = words[:-1]
	return " ".join(words)


#============================================
def describe_metric(metric: Metric) -> str:
	"""
	Return the metric note, or readable words from its key.
	"""
	return metric.note or humanize_key(metric.key, metric.unit)
