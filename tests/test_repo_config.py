import os
import sys

import pytest


REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
PIPELINE_DIR = os.path.join(REPO_ROOT, "pipeline")
if PIPELINE_DIR not in sys.path:
	sys.path.insert(0, PIPELINE_DIR)

from metricslib import repo_config
from metricslib import repo_extractors


#============================================
def test_impact_bullets_are_internal() -> None:
	for bullet in repo_config.DEFAULT_IMPACT_BULLETS:
		assert bullet.provenance == "resume_internal"
		assert bullet.reproducible is False
		assert bullet.first_evidence() is None


#============================================
def test_default_configs_have_registered_extractors() -> None:
	for config in repo_config.DEFAULT_REPO_CONFIGS:
		assert repo_extractors.get_extractor(config.extractor_key) is not None


#============================================
def test_config_urls() -> None:
	config = repo_config.DEFAULT_REPO_CONFIGS[0]
	assert config.full_name == "cbratkovics/chatbot-ai-system"
	assert config.repo_url == "https://github.com/cbratkovics/chatbot-ai-system"


#============================================
def test_load_repo_configs_from_settings() -> None:
	settings = {
		"metrics": {
			"repos": [
				{
					"owner": "me",
					"repo": "tool",
					"title": "Tool",
					"stage": "prototype",
					"artifact_paths": ["results/metrics.json"],
					"extractor": "rag-pipeline",
				},
			],
		},
	}
	configs = repo_config.load_repo_configs(settings)
	assert len(configs) == 1
	assert configs[0].full_name == "me/tool"
	assert configs[0].artifact_paths == ("results/metrics.json",)
	assert configs[0].extractor_key == "rag-pipeline"
	assert configs[0].readme_path == "README.md"
	assert configs[0].branch == "main"


#============================================
def test_readme_can_be_disabled() -> None:
	entry = {"owner": "me", "repo": "r", "title": "T", "stage": "prototype", "readme_path": None}
	config = repo_config.parse_repo_config(entry, 0)
	assert config.readme_path is None
	assert config.extractor_key == "r"


#============================================
@pytest.mark.parametrize("entry", [
	{"owner": "me", "repo": "r", "title": "T", "stage": "beta"},
	{"owner": "me", "repo": "r", "stage": "prototype"},
	"me/r",
])
def test_invalid_repo_entries_raise(entry) -> None:
	with pytest.raises(RuntimeError):
		repo_config.load_repo_configs({"metrics": {"repos": [entry]}})


#============================================
def test_load_repo_configs_defaults() -> None:
	assert repo_config.load_repo_configs({}) == repo_config.DEFAULT_REPO_CONFIGS


#============================================
def test_impact_bullets_from_settings_default_to_internal() -> None:
	settings = {"metrics": {"impact_bullets": [{"key": "teams_led", "value": 3, "note": "Teams led"}]}}
	bullets = repo_config.load_impact_bullets(settings)
	assert len(bullets) == 1
	assert bullets[0].provenance == "resume_internal"
	assert bullets[0].reproducible is False
	assert bullets[0].value == 3


#============================================
def test_impact_bullets_must_be_list() -> None:
	with pytest.raises(RuntimeError):
		repo_config.load_impact_bullets({"metrics": {"impact_bullets": "none"}})
