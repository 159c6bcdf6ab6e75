# src/orchestrator/state.py
"""
Types shared by the pipeline, its stage agents and the session store.

The pipeline is a small tagged state machine: `Stage` names where the run is,
`PipelineState` carries what the finished stages produced, and each stage
agent returns a `StageOutcome` (new state + the text of its closing log entry).
"""

import dataclasses
import enum
import time
import uuid
from typing import Any, Dict, List, Optional


class Stage(str, enum.Enum):
    PLANNING = "planning"
    RETRIEVING = "retrieving"
    DIAGNOSING = "diagnosing"
    RECOMMENDING = "recommending"
    DONE = "done"


STAGE_ORDER = [Stage.PLANNING, Stage.RETRIEVING, Stage.DIAGNOSING, Stage.RECOMMENDING]

NEXT_STAGE = {
    Stage.PLANNING: Stage.RETRIEVING,
    Stage.RETRIEVING: Stage.DIAGNOSING,
    Stage.DIAGNOSING: Stage.RECOMMENDING,
    Stage.RECOMMENDING: Stage.DONE,
}


class AgentStatus(str, enum.Enum):
    IDLE = "idle"
    WORKING = "working"
    COMPLETED = "completed"
    ERROR = "error"


@dataclasses.dataclass(frozen=True)
class AgentLogEntry:
    id: str
    stage: Stage
    message: str
    timestamp: float
    status: AgentStatus
    details: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "stage": self.stage.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "status": self.status.value,
            "details": self.details,
        }


def make_log_entry(
    stage: Stage,
    status: AgentStatus,
    message: str,
    details: Any = None,
    suffix: str = "",
) -> AgentLogEntry:
    now = time.time()
    step = STAGE_ORDER.index(stage) + 1 if stage in STAGE_ORDER else 0
    entry_id = f"log-{int(now * 1000)}-{step}{suffix}-{uuid.uuid4().hex[:6]}"
    return AgentLogEntry(
        id=entry_id,
        stage=stage,
        message=message,
        timestamp=now,
        status=status,
        details=details,
    )


@dataclasses.dataclass(frozen=True)
class PipelineState:
    query: str
    context: Dict[str, Any]
    plan: List[str] = dataclasses.field(default_factory=list)
    analysis_context: Optional[str] = None
    insights: List[Dict[str, Any]] = dataclasses.field(default_factory=list)
    recommendations: List[Dict[str, Any]] = dataclasses.field(default_factory=list)


@dataclasses.dataclass(frozen=True)
class StageOutcome:
    state: PipelineState
    message: str
    details: Any = None
    status: AgentStatus = AgentStatus.COMPLETED


@dataclasses.dataclass
class PipelineResult:
    plan: List[str]
    insights: List[Dict[str, Any]]
    recommendations: List[Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@dataclasses.dataclass
class Session:
    """What the rendering layer reads. Only SessionStore mutates it."""
    id: str
    query: str = ""
    logs: List[AgentLogEntry] = dataclasses.field(default_factory=list)
    plan: List[str] = dataclasses.field(default_factory=list)
    insights: List[Dict[str, Any]] = dataclasses.field(default_factory=list)
    recommendations: List[Dict[str, Any]] = dataclasses.field(default_factory=list)
    is_processing: bool = False
    error: Optional[str] = None
