import json
import os
import sys

import pytest


REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
PIPELINE_DIR = os.path.join(REPO_ROOT, "pipeline")
if PIPELINE_DIR not in sys.path:
	sys.path.insert(0, PIPELINE_DIR)

import export_bullets
import export_readme_metrics
import validate_metrics


#============================================
def write_document(path, bullet_provenance: str = "resume_internal", evidence: bool = True) -> str:
	"""
	Write a small metrics document and return its path.
	"""
	links = [{"label": "report.json", "href": "https://github.com/o/r/blob/main/report.json"}]
	data = {
		"hero": {"projectsCount": 1, "bestAccuracy": 0, "fastestP95ms": 87, "dockerReductionPct": 0},
		"impactBullets": [
			{
				"key": "hours_saved_weekly",
				"value": "20+",
				"evidence": [],
				"provenance": bullet_provenance,
				"reproducible": False,
			},
		],
		"projects": [
			{
				"repo": "o/nba",
				"title": "NBA Prediction",
				"stage": "synthetic_benchmark",
				"metrics": {
					"p95_latency_ms": {
						"key": "p95_latency_ms",
						"value": 87,
						"unit": "ms",
						"evidence": links if evidence else [],
						"provenance": "repo_artifact",
						"reproducible": True,
					},
				},
				"summary": "",
				"caseStudyPath": "",
				"tech": [],
			},
		],
		"lastGeneratedISO": "2026-01-01T00:00:00+00:00",
	}
	path.write_text(json.dumps(data), encoding="utf-8")
	return str(path)


#============================================
def set_argv(monkeypatch, tmp_path, script: str, *extra: str) -> None:
	settings_path = str(tmp_path / "no-settings.yaml")
	monkeypatch.setattr(sys, "argv", [script, "--settings", settings_path, *extra])


#============================================
def test_validate_exits_one_on_error(monkeypatch, tmp_path) -> None:
	input_path = write_document(tmp_path / "metrics.json", bullet_provenance="readme_text")
	set_argv(monkeypatch, tmp_path, "validate_metrics.py", "--input", input_path)
	with pytest.raises(SystemExit) as exc_info:
		validate_metrics.main()
	assert exc_info.value.code == 1


#============================================
def test_validate_passes_with_warnings_only(monkeypatch, tmp_path) -> None:
	"""
	Warnings alone do not fail the stage.
	"""
	input_path = write_document(tmp_path / "metrics.json", evidence=False)
	set_argv(monkeypatch, tmp_path, "validate_metrics.py", "--input", input_path)
	validate_metrics.main()


#============================================
def test_validate_exits_one_on_missing_file(monkeypatch, tmp_path) -> None:
	set_argv(monkeypatch, tmp_path, "validate_metrics.py", "--input", str(tmp_path / "missing.json"))
	with pytest.raises(SystemExit) as exc_info:
		validate_metrics.main()
	assert exc_info.value.code == 1


#============================================
def test_readme_export_exits_one_on_missing_input(monkeypatch, tmp_path) -> None:
	readme_path = tmp_path / "README.md"
	readme_path.write_text("# Me\n", encoding="utf-8")
	set_argv(
		monkeypatch, tmp_path, "export_readme_metrics.py",
		"--input", str(tmp_path / "missing.json"), "--readme", str(readme_path),
	)
	with pytest.raises(SystemExit) as exc_info:
		export_readme_metrics.main()
	assert exc_info.value.code == 1
	assert readme_path.read_text(encoding="utf-8") == "# Me\n"


#============================================
def test_readme_export_exits_one_on_inverted_markers(monkeypatch, tmp_path) -> None:
	input_path = write_document(tmp_path / "metrics.json")
	readme_path = tmp_path / "README.md"
	original = f"{export_readme_metrics.END_MARKER}\n{export_readme_metrics.BEGIN_MARKER}\n"
	readme_path.write_text(original, encoding="utf-8")
	set_argv(monkeypatch, tmp_path, "export_readme_metrics.py", "--input", input_path, "--readme", str(readme_path))
	with pytest.raises(SystemExit) as exc_info:
		export_readme_metrics.main()
	assert exc_info.value.code == 1
	assert readme_path.read_text(encoding="utf-8") == original


#============================================
def test_readme_export_writes_block(monkeypatch, tmp_path) -> None:
	input_path = write_document(tmp_path / "metrics.json")
	readme_path = tmp_path / "README.md"
	readme_path.write_text("# Me\n", encoding="utf-8")
	set_argv(monkeypatch, tmp_path, "export_readme_metrics.py", "--input", input_path, "--readme", str(readme_path))
	export_readme_metrics.main()
	text = readme_path.read_text(encoding="utf-8")
	assert text.startswith("# Me\n")
	assert "#### NBA Prediction" in text


#============================================
def test_bullet_export_exits_one_on_missing_input(monkeypatch, tmp_path) -> None:
	output_dir = tmp_path / "exports"
	set_argv(
		monkeypatch, tmp_path, "export_bullets.py",
		"--input", str(tmp_path / "missing.json"), "--output-dir", str(output_dir),
	)
	with pytest.raises(SystemExit) as exc_info:
		export_bullets.main()
	assert exc_info.value.code == 1
	assert not output_dir.exists()


#============================================
def test_bullet_export_exits_one_on_unparsable_input(monkeypatch, tmp_path) -> None:
	input_path = tmp_path / "metrics.json"
	input_path.write_text("{broken", encoding="utf-8")
	set_argv(
		monkeypatch, tmp_path, "export_bullets.py",
		"--input", str(input_path), "--output-dir", str(tmp_path / "exports"),
	)
	with pytest.raises(SystemExit) as exc_info:
		export_bullets.main()
	assert exc_info.value.code == 1


#============================================
def test_bullet_export_writes_both_files(monkeypatch, tmp_path) -> None:
	input_path = write_document(tmp_path / "metrics.json")
	output_dir = tmp_path / "exports"
	set_argv(monkeypatch, tmp_path, "export_bullets.py", "--input", input_path, "--output-dir", str(output_dir))
	export_bullets.main()
	assert (output_dir / export_bullets.LINKEDIN_FILENAME).is_file()
	assert (output_dir / export_bullets.RESUME_FILENAME).is_file()
