# tests/test_logger.py

import json

from src.utils.logger import AgentLogger


def test_entries_land_in_redirected_dir_with_run_id(tmp_path):
    lg = AgentLogger("Insight Agent", run_id="r42")
    lg.warn("generation_failed", "Insight generation failed", {"error": "timeout"})

    path = tmp_path / "logs" / "Insight_Agent_r42.jsonl"
    assert lg.path == str(path)
    entry = json.loads(path.read_text(encoding="utf-8").splitlines()[0])
    assert entry["level"] == "WARN"
    assert entry["agent"] == "Insight_Agent"
    assert entry["run_id"] == "r42"
    assert entry["metadata"] == {"error": "timeout"}
