# tests/test_config.py

import pytest

from src.utils.config import DEFAULT_CONFIG, build_agent_configs, load_config
from src.utils.errors import ConfigError


def test_no_path_returns_defaults_copy():
    cfg = load_config()
    assert cfg == DEFAULT_CONFIG
    cfg["data"]["days"] = 99
    assert DEFAULT_CONFIG["data"]["days"] == 30


def test_yaml_is_merged_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("llm:\n  model_creative: gemini-pro\npipeline:\n  retrieval_delay_seconds: 0\n", encoding="utf-8")
    cfg = load_config(str(path))
    assert cfg["llm"]["model_creative"] == "gemini-pro"
    assert cfg["llm"]["model_fast"] == DEFAULT_CONFIG["llm"]["model_fast"]
    assert cfg["pipeline"]["retrieval_delay_seconds"] == 0


def test_build_agent_configs_splits_sections():
    cfg = load_config()
    cfg["llm"]["model_creative"] = "creative-model"
    agent_cfgs = build_agent_configs(cfg)
    assert agent_cfgs["planner"]["model"] == cfg["llm"]["model_fast"]
    assert agent_cfgs["creative"]["model"] == "creative-model"
    assert agent_cfgs["data_agent"]["retrieval_delay_seconds"] == 0.8


@pytest.mark.parametrize("content", ["llm: [unclosed", "- just\n- a list\n"])
def test_bad_yaml_raises_config_error(tmp_path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(path))


def test_missing_file_raises_config_error(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "nope.yaml"))
