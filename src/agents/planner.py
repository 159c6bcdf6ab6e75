"""
PlannerAgent

Role:
    Stage 1 (`planning`). Turns the user's question into an ordered list of
    analysis steps by asking the generation backend for `{"plan": [...]}`.

Inputs:
    - PipelineState.query

Outputs:
    - PipelineState.plan: non-empty list of step strings.
    - closing log details: {"steps": plan, "query_info": {...}}

Assumptions:
    - The plan is informational; later stages do not branch on it, so a
      failed generation call is not fatal. We fall back to DEFAULT_PLAN and
      still close the stage as completed.
    - Query interpretation (intent, metrics focus) is keyword-based and
      deterministic, so it is available even when the backend is not.
"""

from typing import Optional, Dict, Any, List
import dataclasses
import datetime
import traceback

from src.llm.client import GenerationClient
from src.llm.prompts import SYSTEM_INSTRUCTION_PLANNER, planner_prompt
from src.orchestrator.state import PipelineState, Stage, StageOutcome
from src.utils.errors import GenerationFailure, wrap_exc
from src.utils.logger import AgentLogger

DEFAULT_CONFIG = {
    "model": "gemini-2.5-flash",
}

DEFAULT_PLAN = ["Analyze trend data for anomalies"]


class PlannerAgent:
    stage = Stage.PLANNING
    start_message = "Decomposing user query into analytical subtasks..."

    def __init__(
        self,
        client: GenerationClient,
        config: Optional[Dict[str, Any]] = None,
        run_id: Optional[str] = None,
    ):
        """
        PlannerAgent
        - client: generation client used for the planning call.
        - config: model override.
        - run_id: optional string to correlate logs with a particular run.
        """
        self.client = client
        self.config = DEFAULT_CONFIG.copy()
        if config:
            self.config.update(config)
        self.run_id = run_id
        self.logger = AgentLogger("PlannerAgent", run_id=self.run_id)
        self.logger.debug("init", "PlannerAgent initialized", {"config": self.config})

    # ------------------------------------------------------------------
    # Query interpretation
    # ------------------------------------------------------------------
    def interpret_query(self, query: str) -> Dict[str, Any]:
        """
        Classifies query intent and the metrics it mentions.
        Deterministic, keyword-based on purpose.
        """
        q = (query or "").lower().strip()

        metrics_focus: List[str] = []
        if any(k in q for k in ["roas", "return on ad", "revenue", "sales"]):
            metrics_focus.append("roas")
        if any(k in q for k in ["ctr", "click-through", "click through", "clicks"]):
            metrics_focus.append("ctr")
        if any(k in q for k in ["cpa", "cac", "cost per", "cost-per"]):
            metrics_focus.append("cpa")
        if any(k in q for k in ["spend", "budget", "scaling", "scale"]):
            metrics_focus.append("spend")

        # default: if nothing explicit, we look at both ROAS and CTR
        if not metrics_focus:
            metrics_focus = ["roas", "ctr"]

        include_creative = any(
            k in q for k in ["creative", "ad copy", "copy", "headline", "image", "video", "message"]
        )

        if "why" in q or "diagnose" in q or "what is happening" in q:
            intent = "general_diagnosis"
        elif "roas" in metrics_focus and len(metrics_focus) == 1:
            intent = "analyze_roas"
        elif "ctr" in metrics_focus and len(metrics_focus) == 1:
            intent = "analyze_ctr"
        elif include_creative:
            intent = "creative_optimize"
        else:
            intent = "general_diagnosis"

        info = {
            "raw_query": query,
            "intent": intent,
            "metrics_focus": metrics_focus,
            "include_creative_analysis": include_creative,
            "created_at": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }
        self.logger.info("interpret_query", "Interpreted query", info)
        return info

    # ------------------------------------------------------------------
    # Stage entry point
    # ------------------------------------------------------------------
    @staticmethod
    def _normalize_plan(raw: Any) -> List[str]:
        if not isinstance(raw, list):
            return []
        return [str(step).strip() for step in raw if str(step).strip()]

    async def run(self, state: PipelineState) -> StageOutcome:
        self.logger.info("start", "Planner.run starting", {"query": state.query})
        try:
            query_info = self.interpret_query(state.query)
            plan: List[str] = []
            try:
                data = await self.client.generate(
                    SYSTEM_INSTRUCTION_PLANNER,
                    planner_prompt(state.query),
                    expected_keys=["plan"],
                    stage=self.stage.value,
                    model=self.config.get("model"),
                )
                plan = self._normalize_plan(data["plan"])
            except GenerationFailure as e:
                self.logger.warn("generation_failed", "Planner generation failed", {"error": str(e)})

            if plan:
                message = "Plan generated successfully."
            else:
                plan = list(DEFAULT_PLAN)
                message = "Planner unavailable; continuing with the default plan."
                self.logger.warn("fallback_plan", "Using default plan", {"plan": plan})

            self.logger.info("success", "Planner.run completed", {"n_steps": len(plan)})
            return StageOutcome(
                state=dataclasses.replace(state, plan=plan),
                message=message,
                details={"steps": plan, "query_info": query_info},
            )
        except Exception as e:
            self.logger.error("exception", "Planner.run failed", {"trace": traceback.format_exc()})
            raise wrap_exc("PlannerAgent failed to plan", e)
