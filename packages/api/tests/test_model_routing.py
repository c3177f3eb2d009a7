# This project was developed with assistance from AI tools.
"""Tests for model routing config loading and scoring task routing."""

import os
from pathlib import Path

import pytest
import yaml

from src.inference import config as config_mod
from src.inference.config import (
    _resolve_env_vars,
    get_config,
    get_model_config,
    get_task_tier,
    load_config,
)

SCORING_TASKS = ("credit_assessment", "allocation", "score_update")


@pytest.fixture(autouse=True)
def _reset_config_cache():
    """Reset the config module cache before each test."""
    config_mod._cached_config = None
    config_mod._cached_mtime = 0.0
    original_path = config_mod._CONFIG_PATH
    yield
    config_mod._CONFIG_PATH = original_path
    config_mod._cached_config = None
    config_mod._cached_mtime = 0.0


def _model(name: str) -> dict:
    return {
        "provider": "openai_compatible",
        "model_name": name,
        "endpoint": "http://localhost:8000/v1",
    }


def _routing_yaml(small: str = "scorer-small", tasks: dict | None = None, **models) -> str:
    models = models or {"fast_small": _model(small), "capable_large": _model("scorer-large")}
    routing = {"default_tier": "capable_large" if "capable_large" in models else "fast_small"}
    if tasks is not None:
        routing["tasks"] = tasks
    return yaml.safe_dump({"routing": routing, "models": models})


def _use_config(path: Path, text: str, bump: int = 0) -> None:
    """Write the config and push its mtime forward so the loader sees a change."""
    path.write_text(text)
    stamp = path.stat().st_mtime + bump
    os.utime(path, (stamp, stamp))
    config_mod._CONFIG_PATH = path


@pytest.fixture
def routing_file(tmp_path) -> Path:
    path = tmp_path / "models.yaml"
    _use_config(path, _routing_yaml(tasks={"allocation": "fast_small"}))
    return path


# -- Validation --


@pytest.mark.parametrize(
    "text,message",
    [
        (
            yaml.safe_dump(
                {
                    "routing": {"default_tier": "fast_small"},
                    "models": {"fast_small": {"provider": "openai_compatible"}},
                }
            ),
            "missing required fields",
        ),
        (
            yaml.safe_dump(
                {"routing": {"default_tier": "gpu_cluster"}, "models": {"fast_small": _model("m")}}
            ),
            "routing.default_tier 'gpu_cluster'",
        ),
        (
            _routing_yaml(tasks={"allocation": "huge_model"}),
            "routing.tasks.allocation 'huge_model'",
        ),
        (yaml.safe_dump({"models": {"fast_small": _model("m")}}), "'routing' section"),
    ],
)
def test_invalid_config_rejected(tmp_path, text, message):
    path = tmp_path / "models.yaml"
    path.write_text(text)
    with pytest.raises(ValueError, match=message):
        load_config(path)


def test_placeholders_resolve_from_environment(monkeypatch):
    monkeypatch.setenv("TRUSTPOOL_TEST_LLM_URL", "http://scorer:8080/v1")
    resolved = _resolve_env_vars(
        {
            "endpoint": "${TRUSTPOOL_TEST_LLM_URL:-http://fallback}",
            "headers": ["${TRUSTPOOL_UNSET_TOKEN:-anonymous}"],
            "temperature": 0.2,
        }
    )
    assert resolved == {
        "endpoint": "http://scorer:8080/v1",
        "headers": ["anonymous"],
        "temperature": 0.2,
    }


def test_shipped_config_routes_every_scoring_task():
    """The repository's models.yaml loads and names a tier for each scoring task."""
    config = load_config()
    tasks = config["routing"]["tasks"]
    assert set(SCORING_TASKS) <= set(tasks)
    assert all(tasks[t] in config["models"] for t in SCORING_TASKS)


# -- Task routing --


def test_task_routing(routing_file):
    assert get_task_tier("allocation") == "fast_small"
    # Not listed under routing.tasks
    assert get_task_tier("score_update") == "capable_large"
    assert get_model_config(get_task_tier("allocation"))["model_name"] == "scorer-small"


def test_unknown_tier_lookup(routing_file):
    with pytest.raises(KeyError, match="Unknown model tier 'gpu_cluster'"):
        get_model_config("gpu_cluster")


# -- Hot reload --


def test_reload_follows_file_changes(routing_file):
    assert get_config()["models"]["fast_small"]["model_name"] == "scorer-small"

    _use_config(routing_file, _routing_yaml(small="scorer-small-v2"), bump=5)
    assert get_config()["models"]["fast_small"]["model_name"] == "scorer-small-v2"


def test_bad_reload_keeps_last_good_config_until_fixed(routing_file):
    get_config()

    _use_config(routing_file, "models: {bad yaml: [unterminated", bump=5)
    assert get_config()["models"]["fast_small"]["model_name"] == "scorer-small"

    _use_config(routing_file, _routing_yaml(small="scorer-recovered"), bump=10)
    assert get_config()["models"]["fast_small"]["model_name"] == "scorer-recovered"


def test_startup_without_config_fails():
    config_mod._CONFIG_PATH = Path("/nonexistent/models.yaml")
    with pytest.raises(FileNotFoundError):
        get_config()


def test_startup_with_invalid_config_fails(tmp_path):
    _use_config(tmp_path / "models.yaml", "models: not_a_dict")
    with pytest.raises(ValueError, match="'models' section"):
        get_config()
