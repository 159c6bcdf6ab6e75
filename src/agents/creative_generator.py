"""
CreativeGeneratorAgent

Role:
    Stage 4 (`recommending`). For the lowest-CTR creative messages in the
    aggregated context, ask the generation backend for rewritten copy.

Inputs:
    - PipelineState.context["low_performing_creatives"]

Outputs:
    - PipelineState.recommendations: list of
        {campaign_name, original_message, suggested_message, reasoning,
         type: headline|cta|body}

Assumptions:
    - No low performers means nothing to fix: no backend call is made.
    - Only the low-performer slice is sent, to keep prompts small.
    - A failed generation call leaves recommendations empty and closes the
      stage with status `error`.
"""

from typing import Dict, Any, List, Optional
import dataclasses
import json
import traceback

from src.data.aggregation import is_undefined
from src.llm.client import GenerationClient
from src.llm.prompts import SYSTEM_INSTRUCTION_CREATIVE, creative_prompt
from src.orchestrator.state import AgentStatus, PipelineState, Stage, StageOutcome
from src.utils.errors import GenerationFailure, wrap_exc
from src.utils.logger import AgentLogger

RECOMMENDATION_TYPES = ("headline", "cta", "body")


def normalize_recommendation(raw: Any) -> Optional[Dict[str, Any]]:
    """Coerce one generated rewrite into the CreativeRecommendation shape."""
    if not isinstance(raw, dict):
        return None
    rtype = str(raw.get("type", "")).strip().lower()
    if rtype not in RECOMMENDATION_TYPES:
        rtype = "body"
    return {
        "campaign_name": str(raw.get("campaign_name", "")),
        "original_message": str(raw.get("original_message", "")),
        "suggested_message": str(raw.get("suggested_message", "")),
        "reasoning": str(raw.get("reasoning", "")),
        "type": rtype,
    }


def _low_performer_payload(low_performers: List[Dict[str, Any]]) -> str:
    rows = []
    for lp in low_performers:
        rows.append(
            {
                "creative_message": lp.get("creative_message"),
                "campaign_names": list(lp.get("campaign_names", [])),
                "ctr": None if is_undefined(lp.get("ctr")) else round(float(lp["ctr"]), 4),
                "roas": None if is_undefined(lp.get("roas")) else round(float(lp["roas"]), 2),
            }
        )
    return json.dumps(rows)


class CreativeGeneratorAgent:
    stage = Stage.RECOMMENDING
    start_message = "Generating corrective creative assets for low performers..."

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
        self.logger = AgentLogger("CreativeGenerator", run_id=self.run_id)

    async def _generate_recommendations(self, low_performers: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        data = await self.client.generate(
            SYSTEM_INSTRUCTION_CREATIVE,
            creative_prompt(_low_performer_payload(low_performers)),
            expected_keys=["recommendations"],
            stage=self.stage.value,
            model=self.config.get("model"),
        )
        raw = data["recommendations"]
        if not isinstance(raw, list):
            raise GenerationFailure("'recommendations' is not a list", stage=self.stage.value)
        recs = [normalize_recommendation(item) for item in raw]
        return [r for r in recs if r is not None]

    async def run(self, state: PipelineState) -> StageOutcome:
        low_performers = list(state.context.get("low_performing_creatives") or [])
        self.logger.info("start", "creative generation start", {"n_low_performers": len(low_performers)})
        try:
            if not low_performers:
                self.logger.info("skipped", "No low performers; skipping generation", {})
                return StageOutcome(
                    state=dataclasses.replace(state, recommendations=[]),
                    message="No low performers to address.",
                    details=[],
                )

            try:
                recommendations = await self._generate_recommendations(low_performers)
            except GenerationFailure as e:
                self.logger.warn("generation_failed", "Creative generation failed", {"error": str(e)})
                return StageOutcome(
                    state=dataclasses.replace(state, recommendations=[]),
                    message=f"Creative generation failed: {e}",
                    details=[],
                    status=AgentStatus.ERROR,
                )

            self.logger.info("success", "creative generation completed", {"n_recommendations": len(recommendations)})
            return StageOutcome(
                state=dataclasses.replace(state, recommendations=recommendations),
                message=f"Generated {len(recommendations)} new creative concepts.",
                details=recommendations,
            )
        except Exception as e:
            self.logger.error("exception", "Unhandled exception in CreativeGenerator", {"trace": traceback.format_exc()})
            raise wrap_exc("CreativeGenerator failed during recommendation", e)
