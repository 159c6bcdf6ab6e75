# src/utils/logger.py
"""
Diagnostic logging for the analyst's agents, the generation client and the
dashboard. This is not the user-facing AgentLogEntry progress log.

Each component writes JSON lines to <log dir>/<component>_<run_id>.jsonl:
    {"ts", "level", "agent", "run_id", "event", "message", "metadata"}
Every component built for one CLI run shares that run's id, so one analysis
can be followed across files with a single grep.
"""
import json
import os
import datetime
from typing import Any, Dict, Optional

DEFAULT_LOGS_DIR = "logs"

def _logs_dir() -> str:
    # looked up per logger: run.py and the tests redirect it after import
    return os.environ.get("KASPARRO_LOG_DIR", DEFAULT_LOGS_DIR)

def _ensure_dir(path: str):
    os.makedirs(path, exist_ok=True)

def _utc_stamp(fmt: str) -> str:
    return datetime.datetime.now(datetime.timezone.utc).strftime(fmt)

class AgentLogger:
    """
    JSONL logger for one component within one analysis run.
    Usage:
        lg = AgentLogger("InsightAgent", run_id="20251201_120000")
        lg.warn("generation_failed", "Insight generation failed", {"error": "timeout"})
    appends to logs/InsightAgent_20251201_120000.jsonl. Without a run_id the
    current UTC second is used, e.g. for Aggregation warnings outside a run.
    """
    def __init__(self, agent_name: str, run_id: Optional[str] = None):
        logs_dir = _logs_dir()
        _ensure_dir(logs_dir)
        self.agent = agent_name.replace(" ", "_")
        self.run_id = run_id or _utc_stamp("%Y%m%d_%H%M%S")
        self.path = os.path.join(logs_dir, f"{self.agent}_{self.run_id}.jsonl")
        open(self.path, "a").close()

    def _emit(self, level: str, event: str, message: str, metadata: Optional[Dict[str, Any]] = None):
        entry = {
            "ts": _utc_stamp("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": level,
            "agent": self.agent,
            "run_id": self.run_id,
            "event": event,
            "message": message,
            "metadata": metadata or {}
        }
        # default=str: metadata may carry enums, timestamps or exceptions
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str, ensure_ascii=False) + "\n")

    def info(self, event: str, message: str, metadata: Optional[Dict[str, Any]] = None):
        self._emit("INFO", event, message, metadata)

    def warn(self, event: str, message: str, metadata: Optional[Dict[str, Any]] = None):
        self._emit("WARN", event, message, metadata)

    def error(self, event: str, message: str, metadata: Optional[Dict[str, Any]] = None):
        self._emit("ERROR", event, message, metadata)

    def debug(self, event: str, message: str, metadata: Optional[Dict[str, Any]] = None):
        self._emit("DEBUG", event, message, metadata)
