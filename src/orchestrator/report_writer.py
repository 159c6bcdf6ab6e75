# src/orchestrator/report_writer.py
"""
ReportWriter: writes the artifacts of a finished session:
 - reports/insights.json
 - reports/creatives.json
 - reports/agent_log.json
 - reports/report.md

Tolerant of missing fields in generated insights/recommendations. Undefined
ratios are written as null in JSON and as '-' in the markdown report.
"""

from typing import Dict, Any, List
import datetime
import json
from pathlib import Path

from src.data.aggregation import format_ratio, to_jsonable
from src.orchestrator.state import Session


class ReportWriter:
    def write(
        self,
        session: Session,
        context: Dict[str, Any],
        stats: Dict[str, Any],
        outdir: Path,
    ) -> Dict[str, str]:
        """
        Writes the session outputs to outdir.
        Returns a dict with filesystem paths for the written artifacts.
        """
        outdir = Path(outdir)
        outdir.mkdir(parents=True, exist_ok=True)
        generated_at = datetime.datetime.now(datetime.timezone.utc).isoformat()

        insights = {
            "session_id": session.id,
            "query": session.query,
            "plan": session.plan,
            "insights": session.insights,
            "context": to_jsonable(context),
            "generated_at": generated_at,
        }
        creatives = {
            "session_id": session.id,
            "recommendations": session.recommendations,
            "generated_at": generated_at,
        }
        agent_log = [entry.to_dict() for entry in session.logs]

        insights_path = outdir / "insights.json"
        creatives_path = outdir / "creatives.json"
        log_path = outdir / "agent_log.json"
        report_path = outdir / "report.md"

        with open(insights_path, "w", encoding="utf-8") as f:
            json.dump(insights, f, indent=2, ensure_ascii=False)

        with open(creatives_path, "w", encoding="utf-8") as f:
            json.dump(creatives, f, indent=2, ensure_ascii=False)

        with open(log_path, "w", encoding="utf-8") as f:
            json.dump(agent_log, f, indent=2, ensure_ascii=False, default=str)

        with open(report_path, "w", encoding="utf-8") as f:
            f.write(self._build_report_md(session, context, stats, generated_at))

        return {
            "insights_path": str(insights_path),
            "creatives_path": str(creatives_path),
            "log_path": str(log_path),
            "report_path": str(report_path),
        }

    def _build_report_md(
        self,
        session: Session,
        context: Dict[str, Any],
        stats: Dict[str, Any],
        generated_at: str,
    ) -> str:
        """
        Build a markdown report summarizing:
         - query and plan
         - headline numbers and campaign table
         - insights (high severity first)
         - creative rewrites
         - agent activity
        """
        lines: List[str] = []
        lines.append("# Kasparro Agentic Analyst Report\n")
        lines.append(f"_Generated at: {generated_at}_\n")

        lines.append("## 1) Query and plan\n")
        lines.append(f"- Query: **{session.query or 'N/A'}**")
        if session.error:
            lines.append(f"- Status: **{session.error}**")
        for idx, step in enumerate(session.plan, start=1):
            lines.append(f"  {idx}. {step}")
        lines.append("")

        lines.append("## 2) Performance snapshot\n")
        lines.append(f"- Total spend: {stats.get('total_spend', 0.0):,.2f}")
        lines.append(f"- Total revenue: {stats.get('total_revenue', 0.0):,.2f}")
        lines.append(f"- ROAS: {format_ratio(stats.get('total_roas'))}")
        lines.append(f"- CTR: {format_ratio(stats.get('avg_ctr'), 4)}")
        lines.append(f"- Days: {len(context.get('trend', []))}")
        lines.append("")
        campaign_stats = context.get("campaign_stats", [])
        if campaign_stats:
            lines.append("| Campaign | ROAS | CTR |")
            lines.append("|---|---|---|")
            for c in campaign_stats:
                lines.append(f"| {c['campaign_name']} | {format_ratio(c['roas'])} | {format_ratio(c['ctr'], 4)} |")
            lines.append("")

        lines.append("## 3) Insights\n")
        if not session.insights:
            lines.append("_No insights generated._\n")
        else:
            order = {"high": 0, "medium": 1, "low": 2}
            sorted_insights = sorted(session.insights, key=lambda i: order.get(i.get("severity"), 3))
            for ins in sorted_insights:
                title = ins.get("title") or "Untitled"
                severity = ins.get("severity", "N/A")
                metric = ins.get("metric") or "N/A"
                change = ins.get("change") or "N/A"
                lines.append(f"- **{title}** | severity: _{severity}_ | {metric} {change}")
                if ins.get("description"):
                    lines.append(f"  - {ins['description']}")
            lines.append("")

        lines.append("## 4) Creative recommendations\n")
        low = context.get("low_performing_creatives", [])
        if low:
            lines.append("Lowest-CTR messages:")
            for lp in low:
                lines.append(f"- \"{lp['creative_message']}\" (CTR {format_ratio(lp['ctr'], 4)}, ROAS {format_ratio(lp['roas'])})")
            lines.append("")
        if not session.recommendations:
            lines.append("_No creative suggestions generated._\n")
        else:
            for idx, rec in enumerate(session.recommendations, start=1):
                lines.append(f"- **Suggestion {idx}** ({rec.get('type', 'body')}) for _{rec.get('campaign_name') or 'N/A'}_")
                if rec.get("original_message"):
                    lines.append(f"  - Original: {rec['original_message']}")
                suggested = rec.get("suggested_message") or ""
                # keep message short in report (first 200 chars)
                if suggested:
                    msg_short = suggested if len(suggested) <= 200 else suggested[:197] + "..."
                    lines.append(f"  - Suggested: {msg_short}")
                if rec.get("reasoning"):
                    lines.append(f"  - Reason: {rec['reasoning']}")
            lines.append("")

        lines.append("## 5) Agent activity\n")
        for entry in session.logs:
            lines.append(f"- [{entry.stage.value}] {entry.status.value}: {entry.message}")
        lines.append("")

        lines.append("---")
        lines.append("Generated by Kasparro Agentic Analyst")
        lines.append("")
        return "\n".join(lines)
