#!/usr/bin/env python
"""
run.py
CLI for the Kasparro Agentic Analyst.

Pipeline:
 1) Load config
 2) Load records (synthetic generator or CSV export) and aggregate them
 3) PlannerAgent -> plan
 4) DataAgent -> prepared context
 5) InsightAgent -> insights
 6) CreativeGeneratorAgent -> creative rewrites for low performers
 7) ReportWriter -> insights.json, creatives.json, agent_log.json, report.md

Progress entries are printed as they arrive. A single run_id is shared by
every agent so the JSONL logs correlate.
"""

import argparse
import asyncio
import datetime
import json
import os
import sys
from pathlib import Path

from src.data.loader import load_records_csv
from src.llm.client import build_generation_client
from src.orchestrator.dashboard import Dashboard
from src.orchestrator.report_writer import ReportWriter
from src.utils.config import load_config
from src.utils.errors import AgentError

DEFAULT_QUERY = "Analyze the drop in ROAS over the last 7 days."


def _print_entry(entry) -> None:
    print(f"[{entry.stage.value:<12}] {entry.status.value:<9} {entry.message}")


def resolve_logs_dir(cfg: dict) -> str:
    """An explicitly set KASPARRO_LOG_DIR wins over logging.outdir."""
    return os.environ.get("KASPARRO_LOG_DIR") or cfg.get("logging", {}).get("outdir") or "logs"


async def execute(query: str, cfg: dict, outdir: str) -> int:
    """
    Run one analysis end to end. Returns a process exit code.
    """
    run_id = datetime.datetime.now(datetime.timezone.utc).strftime("%Y%m%d_%H%M%S")
    logs_dir = resolve_logs_dir(cfg)
    os.environ["KASPARRO_LOG_DIR"] = logs_dir  # AgentLogger reads this at construction
    Path(logs_dir).mkdir(parents=True, exist_ok=True)

    data_cfg = cfg.get("data", {})
    data_source = None
    if data_cfg.get("source") == "csv":
        path = data_cfg.get("path")
        if not path:
            print("data.source is 'csv' but no data.path / --data-path was given", file=sys.stderr)
            return 2
        data_source = lambda: load_records_csv(path)

    client = build_generation_client(cfg.get("llm", {}), run_id=run_id)
    try:
        dashboard = Dashboard(client, config=cfg, data_source=data_source, run_id=run_id)
    except AgentError as e:
        print(f"Could not load data: {e}", file=sys.stderr)
        return 1

    exit_code = 0
    try:
        await dashboard.run_analysis(query, on_entry=_print_entry)
    except AgentError as e:
        print(f"Analysis failed: {e}", file=sys.stderr)
        exit_code = 1

    session = dashboard.session
    stats = dashboard.headline_stats()
    outputs = ReportWriter().write(session, dashboard.context, stats, Path(outdir))

    run_log_path = Path(logs_dir) / f"run_{run_id}.json"
    log_payload = {
        "run_id": run_id,
        "timestamp": datetime.datetime.now(datetime.timezone.utc).strftime("%Y%m%d_%H%M%S"),
        "query": query,
        "session_id": session.id,
        "n_records": len(dashboard.records),
        "plan": session.plan,
        "n_insights": len(session.insights),
        "n_recommendations": len(session.recommendations),
        "error": session.error,
        "outputs": outputs,
    }
    with open(run_log_path, "w", encoding="utf-8") as f:
        json.dump(log_payload, f, indent=2)

    print(f"Run complete. run_id={run_id}")
    print(f"  Insights:  {outputs['insights_path']}")
    print(f"  Creatives: {outputs['creatives_path']}")
    print(f"  Agent log: {outputs['log_path']}")
    print(f"  Report:    {outputs['report_path']}")
    print(f"  Run log:   {run_log_path}")
    return exit_code


def main():
    parser = argparse.ArgumentParser(description="Kasparro Agentic Analyst")
    parser.add_argument(
        "query",
        nargs="?",
        default=DEFAULT_QUERY,
        help="Question about campaign performance, e.g. 'Why did ROAS drop?'.",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--data-path",
        default=None,
        help="Analyze this CSV export instead of synthetic data.",
    )
    parser.add_argument("--days", type=int, default=None, help="Synthetic history length.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for synthetic data.")
    parser.add_argument(
        "--outdir",
        default="reports/",
        help="Directory to write insights.json, creatives.json, agent_log.json and report.md.",
    )

    args = parser.parse_args()

    config_path = args.config if os.path.exists(args.config) else None
    cfg = load_config(config_path)
    if args.data_path:
        cfg["data"]["source"] = "csv"
        cfg["data"]["path"] = args.data_path
    if args.days is not None:
        cfg["data"]["days"] = args.days
    if args.seed is not None:
        cfg["data"]["seed"] = args.seed

    sys.exit(asyncio.run(execute(args.query, cfg, args.outdir)))


if __name__ == "__main__":
    main()
