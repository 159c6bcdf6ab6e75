"""
DataAgent

Role:
    Stage 2 (`retrieving`). The aggregated context is computed outside the
    pipeline; this stage stands in for the query/execution step a real data
    backend would need. It waits a fixed delay, then prepares the
    prompt-ready JSON rendering of the context for the insight stage.

Outputs:
    - PipelineState.analysis_context (str)
    - closing log details: "Processed N days of campaign data."

This stage makes no external call and cannot fail.
"""

from typing import Dict, Any, Optional
import asyncio
import dataclasses
import json

from src.data.aggregation import to_jsonable
from src.orchestrator.state import PipelineState, Stage, StageOutcome
from src.utils.logger import AgentLogger


def serialize_context(context: Dict[str, Any]) -> str:
    """Pretty JSON used as the diagnosing prompt payload."""
    return json.dumps(to_jsonable(context), indent=2)


class DataAgent:
    stage = Stage.RETRIEVING
    start_message = "Executing data retrieval steps..."

    def __init__(self, config: Optional[Dict[str, Any]] = None, run_id: Optional[str] = None):
        self.config = {"retrieval_delay_seconds": 0.8}
        if config:
            self.config.update(config)
        self.run_id = run_id
        self.logger = AgentLogger("DataAgent", run_id=self.run_id)
        self.logger.debug("init", "DataAgent initialized", {"config": self.config})

    async def run(self, state: PipelineState) -> StageOutcome:
        delay = float(self.config.get("retrieval_delay_seconds") or 0)
        self.logger.info("start", "DataAgent.run starting", {"delay_seconds": delay})
        if delay > 0:
            await asyncio.sleep(delay)

        analysis_context = serialize_context(state.context)
        n_days = len(state.context.get("trend", []))
        self.logger.info(
            "success",
            "Context prepared",
            {
                "n_days": n_days,
                "n_campaigns": len(state.context.get("campaign_stats", [])),
                "n_low_performers": len(state.context.get("low_performing_creatives", [])),
            },
        )
        return StageOutcome(
            state=dataclasses.replace(state, analysis_context=analysis_context),
            message="Data aggregated and structured for analysis.",
            details=f"Processed {n_days} days of campaign data.",
        )
