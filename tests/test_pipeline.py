# tests/test_pipeline.py

import asyncio

import pytest

from src.agents.planner import DEFAULT_PLAN
from src.data.aggregation import aggregate
from src.orchestrator.pipeline import AgentPipeline
from src.orchestrator.state import AgentStatus, Stage, STAGE_ORDER

NO_DELAY = {"data_agent": {"retrieval_delay_seconds": 0}}
QUERY = "Why did ROAS drop last week?"


def _run(client, context, on_log=None):
    logs = []
    pipeline = AgentPipeline(client, NO_DELAY, run_id="test")
    result = asyncio.run(pipeline.run(QUERY, context, on_log or logs.append))
    return result, logs


def test_full_run_with_working_backend(make_client, canned_responses, scenario_records):
    client = make_client(responses=canned_responses)
    result, logs = _run(client, aggregate(scenario_records))

    assert result.plan == canned_responses["planning"]["plan"]
    assert result.insights == canned_responses["diagnosing"]["insights"]
    assert result.recommendations == canned_responses["recommending"]["recommendations"]
    assert client.called_stages == ["planning", "diagnosing", "recommending"]

    assert len(logs) == 8
    assert [e.stage for e in logs] == [s for s in STAGE_ORDER for _ in range(2)]
    assert [e.status for e in logs[0::2]] == [AgentStatus.WORKING] * 4
    assert [e.status for e in logs[1::2]] == [AgentStatus.COMPLETED] * 4
    assert len({e.id for e in logs}) == 8
    assert logs[3].details == "Processed 31 days of campaign data."


def test_unreachable_backend_still_reaches_done(make_client, scenario_records):
    result, logs = _run(make_client(), aggregate(scenario_records))

    assert result.plan == DEFAULT_PLAN
    assert result.insights == []
    assert result.recommendations == []
    assert len(logs) == 8
    closing = {e.stage: e.status for e in logs[1::2]}
    assert closing == {
        Stage.PLANNING: AgentStatus.COMPLETED,
        Stage.RETRIEVING: AgentStatus.COMPLETED,
        Stage.DIAGNOSING: AgentStatus.ERROR,
        Stage.RECOMMENDING: AgentStatus.ERROR,
    }


def test_each_call_follows_previous_closing_entry(make_client, canned_responses, scenario_records):
    logs = []
    seen = {}

    async def before_call(stage):
        seen[stage] = len(logs)

    client = make_client(responses=canned_responses, before_call=before_call)
    pipeline = AgentPipeline(client, NO_DELAY)
    asyncio.run(pipeline.run(QUERY, aggregate(scenario_records), logs.append))

    # each call happens right after its own stage's working entry
    assert seen == {"planning": 1, "diagnosing": 5, "recommending": 7}


def test_no_low_performers_means_no_recommending_call(make_client, canned_responses):
    client = make_client(responses=canned_responses)
    result, logs = _run(client, aggregate([]))
    assert client.called_stages == ["planning", "diagnosing"]
    assert result.recommendations == []
    assert logs[-1].message == "No low performers to address."
    assert logs[-1].status == AgentStatus.COMPLETED


def test_on_log_exception_propagates(make_client, canned_responses, scenario_records):
    def broken(entry):
        raise RuntimeError("sink closed")

    client = make_client(responses=canned_responses)
    with pytest.raises(RuntimeError):
        _run(client, aggregate(scenario_records), on_log=broken)
    assert client.calls == []


def test_single_creative_is_still_a_low_performer(make_client, canned_responses):
    records = [
        {"date": "2025-01-0%d" % d, "campaign_name": "Solo", "creative_message": "Only ad",
         "spend": 100.0, "revenue": 250.0, "clicks": 20, "impressions": 1000}
        for d in (1, 2)
    ]
    context = aggregate(records)
    assert [lp["creative_message"] for lp in context["low_performing_creatives"]] == ["Only ad"]

    client = make_client(responses=canned_responses)
    result, logs = _run(client, context)
    assert client.called_stages == ["planning", "diagnosing", "recommending"]
    assert '"Only ad"' in client.calls[-1]["prompt"]
    assert len(result.recommendations) == 2
