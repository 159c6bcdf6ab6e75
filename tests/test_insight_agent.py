# tests/test_insight_agent.py

import asyncio

from src.agents.insight_agent import InsightAgent, normalize_insight
from src.data.aggregation import aggregate
from src.orchestrator.state import AgentStatus, PipelineState


def _state(records, analysis_context=None):
    return PipelineState(
        query="Why did ROAS drop?",
        context=aggregate(records),
        analysis_context=analysis_context,
    )


def test_insights_come_back_in_order(make_client, canned_responses, scenario_records):
    client = make_client(responses=canned_responses)
    outcome = asyncio.run(InsightAgent(client).run(_state(scenario_records)))
    assert outcome.state.insights == canned_responses["diagnosing"]["insights"]
    assert outcome.status == AgentStatus.COMPLETED
    assert outcome.message == "Identified 2 key insights."


def test_prompt_contains_context_and_query(make_client, canned_responses, scenario_records):
    client = make_client(responses=canned_responses)
    asyncio.run(InsightAgent(client).run(_state(scenario_records)))
    prompt = client.calls[0]["prompt"]
    assert "Query Context: Why did ROAS drop?" in prompt
    assert "Prospecting_Broad_US" in prompt
    assert "NaN" not in prompt


def test_prepared_context_is_used_when_present(make_client, canned_responses, scenario_records):
    client = make_client(responses=canned_responses)
    asyncio.run(InsightAgent(client).run(_state(scenario_records, analysis_context='{"prepared": true}')))
    assert '{"prepared": true}' in client.calls[0]["prompt"]


def test_failure_leaves_insights_empty_with_error_status(make_client, scenario_records):
    outcome = asyncio.run(InsightAgent(make_client()).run(_state(scenario_records)))
    assert outcome.state.insights == []
    assert outcome.status == AgentStatus.ERROR
    assert outcome.message.startswith("Insight generation failed")


def test_non_list_insights_is_a_failure(make_client, scenario_records):
    client = make_client(responses={"diagnosing": {"insights": "all good"}})
    outcome = asyncio.run(InsightAgent(client).run(_state(scenario_records)))
    assert outcome.state.insights == []
    assert outcome.status == AgentStatus.ERROR


def test_normalize_insight_fills_defaults():
    assert normalize_insight("text") is None
    ins = normalize_insight({"title": "T", "severity": "CRITICAL"})
    assert ins == {"title": "T", "description": "", "severity": "medium", "metric": "", "change": ""}
    assert normalize_insight({"severity": "High"})["severity"] == "high"
