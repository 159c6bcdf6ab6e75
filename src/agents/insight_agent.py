"""
InsightAgent

Role:
    Stage 3 (`diagnosing`). Sends the serialized aggregated context plus the
    user's question to the generation backend and collects root-cause
    insights.

Inputs:
    - PipelineState.query
    - PipelineState.analysis_context (prepared by DataAgent; serialized here
      if the retrieving stage was skipped)

Outputs:
    - PipelineState.insights: list of
        {title, description, severity: high|medium|low, metric, change}

Assumptions:
    - A failed generation call leaves insights empty. There is no fallback
      content; the failure is reported through the closing log entry
      (status `error`) and the run carries on.
"""

from typing import Dict, Any, List, Optional
import dataclasses
import traceback

from src.agents.data_agent import serialize_context
from src.llm.client import GenerationClient
from src.llm.prompts import SYSTEM_INSTRUCTION_INSIGHT, insight_prompt
from src.orchestrator.state import AgentStatus, PipelineState, Stage, StageOutcome
from src.utils.errors import GenerationFailure, wrap_exc
from src.utils.logger import AgentLogger

SEVERITIES = ("high", "medium", "low")


def normalize_insight(raw: Any) -> Optional[Dict[str, Any]]:
    """Coerce one generated insight into the InsightResult shape; drop non-objects."""
    if not isinstance(raw, dict):
        return None
    severity = str(raw.get("severity", "")).strip().lower()
    if severity not in SEVERITIES:
        severity = "medium"
    return {
        "title": str(raw.get("title", "")),
        "description": str(raw.get("description", "")),
        "severity": severity,
        "metric": str(raw.get("metric", "")),
        "change": str(raw.get("change", "")),
    }


class InsightAgent:
    stage = Stage.DIAGNOSING
    start_message = "Analyzing patterns to identify root causes..."

    def __init__(
        self,
        client: GenerationClient,
        config: Optional[Dict[str, Any]] = None,
        run_id: Optional[str] = None,
    ):
        self.client = client
        self.config = {"model": "gemini-2.5-flash"}
        if config:
            self.config.update(config)
        self.run_id = run_id
        self.logger = AgentLogger("InsightAgent", run_id=self.run_id)

    async def _generate_insights(self, state: PipelineState) -> List[Dict[str, Any]]:
        analysis_context = state.analysis_context or serialize_context(state.context)
        data = await self.client.generate(
            SYSTEM_INSTRUCTION_INSIGHT,
            insight_prompt(state.query, analysis_context),
            expected_keys=["insights"],
            stage=self.stage.value,
            model=self.config.get("model"),
        )
        raw = data["insights"]
        if not isinstance(raw, list):
            raise GenerationFailure("'insights' is not a list", stage=self.stage.value)
        insights = [normalize_insight(item) for item in raw]
        return [i for i in insights if i is not None]

    async def run(self, state: PipelineState) -> StageOutcome:
        self.logger.info("start", "InsightAgent.run starting", {"query": state.query})
        try:
            try:
                insights = await self._generate_insights(state)
            except GenerationFailure as e:
                self.logger.warn("generation_failed", "Insight generation failed", {"error": str(e)})
                return StageOutcome(
                    state=dataclasses.replace(state, insights=[]),
                    message=f"Insight generation failed: {e}",
                    details=[],
                    status=AgentStatus.ERROR,
                )

            self.logger.info("success", "InsightAgent.run completed", {"n_insights": len(insights)})
            return StageOutcome(
                state=dataclasses.replace(state, insights=insights),
                message=f"Identified {len(insights)} key insights.",
                details=insights,
            )
        except Exception as e:
            self.logger.error("exception", "Unhandled exception in InsightAgent", {"trace": traceback.format_exc()})
            raise wrap_exc("InsightAgent failed during diagnosis", e)
