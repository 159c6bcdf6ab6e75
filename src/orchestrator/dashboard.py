# src/orchestrator/dashboard.py
"""
Dashboard: what the UI drives.

Holds the current records and their aggregated context, the session store
and the pipeline. Two user actions:
    refresh_data()        -> new records, new context, fresh session
    run_analysis(query)   -> one pipeline run into the current session
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
import traceback

from src.data.aggregation import aggregate, headline_stats
from src.data.generator import generate_mock_data
from src.llm.client import GenerationClient
from src.orchestrator.pipeline import AgentPipeline
from src.orchestrator.session import SessionStore
from src.orchestrator.state import AgentLogEntry, PipelineResult, Session
from src.utils.config import build_agent_configs, load_config
from src.utils.errors import PipelineError, wrap_exc
from src.utils.logger import AgentLogger

DataSource = Callable[[], Iterable[Mapping[str, Any]]]

GENERIC_FAILURE_MESSAGE = "Analysis failed. Please try again."


def synthetic_source(data_cfg: Dict[str, Any]) -> DataSource:
    def _load():
        return generate_mock_data(
            days=int(data_cfg.get("days", 30)),
            seed=data_cfg.get("seed"),
            fatigued_campaign=data_cfg.get("fatigued_campaign"),
            fatigue_days=int(data_cfg.get("fatigue_days", 10)),
            fatigue_factor=float(data_cfg.get("fatigue_factor", 0.6)),
        )
    return _load


class Dashboard:
    def __init__(
        self,
        client: GenerationClient,
        config: Optional[Dict[str, Any]] = None,
        data_source: Optional[DataSource] = None,
        run_id: Optional[str] = None,
    ):
        cfg = config if config is not None else load_config()
        self.agent_configs = build_agent_configs(cfg)
        self.data_source = data_source or synthetic_source(self.agent_configs["data"])
        self.run_id = run_id
        self.logger = AgentLogger("Dashboard", run_id=self.run_id)
        self.pipeline = AgentPipeline(client, self.agent_configs, run_id=run_id)
        self.store = SessionStore()
        self.records: List[Mapping[str, Any]] = []
        self.context: Dict[str, Any] = aggregate([])
        self.refresh_data()

    @property
    def session(self) -> Session:
        return self.store.current

    def refresh_data(self) -> Session:
        """Load fresh records, recompute the context and start an empty session."""
        self.records = list(self.data_source())
        self.context = aggregate(self.records)
        self.logger.info(
            "refresh_data",
            "Records loaded and aggregated",
            {"n_records": len(self.records), "n_days": len(self.context["trend"])},
        )
        return self.store.reset()

    def headline_stats(self) -> Dict[str, Any]:
        return headline_stats(self.records)

    async def run_analysis(
        self,
        query: str,
        on_entry: Optional[Callable[[AgentLogEntry], None]] = None,
    ) -> Optional[PipelineResult]:
        """
        Run the pipeline for `query` into a new session.

        Returns None without doing anything for a blank query or while
        another run is in flight, and None if the session was reset before
        the run finished. The processing flag is always cleared. On
        an unexpected error the session gets a generic error message, no
        results, and PipelineError is raised.

        on_entry, if given, sees each progress entry that made it into the
        session (entries of a discarded session are not forwarded).
        """

        def _append(entry: AgentLogEntry) -> None:
            if self.store.append_log(session_id, entry) and on_entry is not None:
                on_entry(entry)

        if not (query or "").strip():
            return None
        session_id = self.store.start_run(query)
        if session_id is None:
            self.logger.warn("run_ignored", "Run requested while another is in progress", {"query": query})
            return None

        # snapshot: a data refresh mid-run must not change what this run sees
        context = self.context
        result: Optional[PipelineResult] = None
        error: Optional[str] = None
        try:
            result = await self.pipeline.run(
                query,
                context,
                on_log=_append,
            )
        except Exception as e:
            error = GENERIC_FAILURE_MESSAGE
            self.logger.error("run_failed", "Analysis run failed", {"trace": traceback.format_exc()})
            raise wrap_exc("Agent pipeline run failed", e, PipelineError)
        finally:
            if not self.store.finish_run(session_id, result=result, error=error):
                self.logger.info("stale_result", "Dropped results of a discarded session", {"session_id": session_id})
                result = None
        return result
