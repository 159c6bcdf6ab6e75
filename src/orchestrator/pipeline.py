# src/orchestrator/pipeline.py
"""
AgentPipeline: the four-stage run.

    Planning -> Retrieving -> Diagnosing -> Recommending -> Done

Stages run one at a time. Around each stage the driver emits exactly two
progress entries through `on_log`: a `working` entry before the stage starts
and a closing entry (`completed`, or `error` for a recovered generation
failure) after it finishes. A stage's generation call is therefore never
issued before the previous stage's closing entry has been appended.

Generation failures are handled inside the stages, so every run reaches
Done. Anything else (a programming error, or an exception raised by
`on_log` itself) propagates out of `run` unchanged.
"""

from typing import Any, Callable, Dict, Optional
import traceback

from src.agents import CreativeGeneratorAgent, DataAgent, InsightAgent, PlannerAgent
from src.llm.client import GenerationClient
from src.orchestrator.state import (
    AgentLogEntry,
    AgentStatus,
    NEXT_STAGE,
    PipelineResult,
    PipelineState,
    Stage,
    make_log_entry,
)
from src.utils.logger import AgentLogger

LogCallback = Callable[[AgentLogEntry], None]


class AgentPipeline:
    def __init__(
        self,
        client: GenerationClient,
        agent_configs: Optional[Dict[str, Dict[str, Any]]] = None,
        run_id: Optional[str] = None,
    ):
        """
        - client: generation client shared by the planning, diagnosing and
          recommending stages.
        - agent_configs: output of build_agent_configs(); missing sections
          fall back to each agent's defaults.
        """
        cfgs = agent_configs or {}
        self.run_id = run_id
        self.logger = AgentLogger("AgentPipeline", run_id=self.run_id)
        self.agents = {
            Stage.PLANNING: PlannerAgent(client, config=cfgs.get("planner"), run_id=run_id),
            Stage.RETRIEVING: DataAgent(config=cfgs.get("data_agent"), run_id=run_id),
            Stage.DIAGNOSING: InsightAgent(client, config=cfgs.get("insight"), run_id=run_id),
            Stage.RECOMMENDING: CreativeGeneratorAgent(client, config=cfgs.get("creative"), run_id=run_id),
        }

    async def run(self, query: str, context: Dict[str, Any], on_log: LogCallback) -> PipelineResult:
        """
        Drive all stages over `context` and return the accumulated results.
        `on_log` is called synchronously; an exception it raises aborts the run.
        """
        self.logger.info("start", "Pipeline run starting", {"query": query})
        state = PipelineState(query=query, context=context)
        stage = Stage.PLANNING
        try:
            while stage is not Stage.DONE:
                agent = self.agents[stage]
                on_log(make_log_entry(stage, AgentStatus.WORKING, agent.start_message))

                outcome = await agent.run(state)
                state = outcome.state

                on_log(make_log_entry(stage, outcome.status, outcome.message, outcome.details, suffix="-done"))
                self.logger.info(
                    "stage_done",
                    f"Stage {stage.value} finished",
                    {"stage": stage.value, "status": outcome.status.value},
                )
                stage = NEXT_STAGE[stage]
        except Exception:
            self.logger.error(
                "exception",
                "Pipeline run aborted",
                {"stage": stage.value, "trace": traceback.format_exc()},
            )
            raise

        self.logger.info(
            "success",
            "Pipeline run completed",
            {"n_insights": len(state.insights), "n_recommendations": len(state.recommendations)},
        )
        return PipelineResult(
            plan=list(state.plan),
            insights=list(state.insights),
            recommendations=list(state.recommendations),
        )
