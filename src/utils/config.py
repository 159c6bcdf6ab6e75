# src/utils/config.py
"""
Config loading for the analyst.

A YAML file (config/config.yaml) is merged over DEFAULT_CONFIG and then split
into per-agent dicts by build_agent_configs(), the same way the CLI wires
every agent.
"""

import copy
from typing import Any, Dict, Optional

import yaml

from src.utils.errors import ConfigError, wrap_exc

DEFAULT_CONFIG: Dict[str, Any] = {
    "data": {
        "source": "synthetic",   # "synthetic" | "csv"
        "path": None,
        "days": 30,
        "seed": None,
        "fatigued_campaign": "Prospecting_Broad_US",
        "fatigue_days": 10,
        "fatigue_factor": 0.6,
    },
    "llm": {
        "provider": "gemini",
        "api_key_env": "GEMINI_API_KEY",
        "model_fast": "gemini-2.5-flash",
        "model_creative": "gemini-2.5-flash",
        "temperature": 0.2,
        "timeout_seconds": 60,
    },
    "pipeline": {
        "retrieval_delay_seconds": 0.8,
    },
    "logging": {
        "outdir": "logs",
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Read a YAML config and merge it over DEFAULT_CONFIG.
    No path means defaults only.
    """
    if not config_path:
        return copy.deepcopy(DEFAULT_CONFIG)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise wrap_exc(f"Could not read config file {config_path}", e, ConfigError)
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping at the top level")
    return _deep_merge(DEFAULT_CONFIG, raw)


def build_agent_configs(cfg: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    Split the global config.yaml into per-agent configs.
    """
    data_cfg = cfg.get("data", {})
    llm_cfg = cfg.get("llm", {})
    pipeline_cfg = cfg.get("pipeline", {})

    planner_cfg = {
        "model": llm_cfg.get("model_fast", "gemini-2.5-flash"),
    }

    data_agent_cfg = {
        "retrieval_delay_seconds": pipeline_cfg.get("retrieval_delay_seconds", 0.8),
    }

    insight_cfg = {
        "model": llm_cfg.get("model_fast", "gemini-2.5-flash"),
    }

    creative_cfg = {
        "model": llm_cfg.get("model_creative", "gemini-2.5-flash"),
    }

    return {
        "data": data_cfg,
        "llm": llm_cfg,
        "planner": planner_cfg,
        "data_agent": data_agent_cfg,
        "insight": insight_cfg,
        "creative": creative_cfg,
        "logging": cfg.get("logging", {}),
    }
