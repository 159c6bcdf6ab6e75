# tests/conftest.py
import datetime
import json

import pytest

from src.llm.client import GenerationClient


@pytest.fixture(autouse=True)
def _isolated_logs(tmp_path, monkeypatch):
    # keep AgentLogger JSONL files out of the working tree
    monkeypatch.setenv("KASPARRO_LOG_DIR", str(tmp_path / "logs"))


class StubGenerationClient(GenerationClient):
    """
    Deterministic stand-in for the backend: replies per stage with canned
    JSON (dict) or raw text (str). Stages without a canned reply fail like an
    unreachable backend. Every call is recorded.
    """

    def __init__(self, responses=None, before_call=None):
        super().__init__(run_id="test")
        self.responses = responses or {}
        self.before_call = before_call
        self.calls = []

    async def _complete(self, system_instruction, prompt, model=None, stage=None):
        self.calls.append(
            {"stage": stage, "prompt": prompt, "system_instruction": system_instruction, "model": model}
        )
        if self.before_call is not None:
            await self.before_call(stage)
        if stage not in self.responses:
            raise ConnectionError(f"backend unavailable for {stage}")
        reply = self.responses[stage]
        return reply if isinstance(reply, str) else json.dumps(reply)

    @property
    def called_stages(self):
        return [c["stage"] for c in self.calls]


@pytest.fixture
def make_client():
    return StubGenerationClient


CANNED_PLAN = {"plan": ["Check account ROAS trend", "Compare campaign CTR", "Inspect weakest creatives"]}

CANNED_INSIGHTS = {
    "insights": [
        {
            "title": "Creative fatigue on prospecting",
            "description": "Prospecting CTR fell 40% over the last 10 days while spend held flat.",
            "severity": "high",
            "metric": "CTR",
            "change": "-40%",
        },
        {
            "title": "Retargeting stable",
            "description": "Retargeting ROAS is flat week over week.",
            "severity": "low",
            "metric": "ROAS",
            "change": "+1%",
        },
    ]
}

CANNED_RECOMMENDATIONS = {
    "recommendations": [
        {
            "campaign_name": "Prospecting_Broad_US",
            "original_message": "Msg P2",
            "suggested_message": "Tired of slow mornings? Save 50% today only.",
            "reasoning": "Leads with the benefit and adds urgency.",
            "type": "headline",
        },
        {
            "campaign_name": "Prospecting_Broad_US",
            "original_message": "Msg P1",
            "suggested_message": "Shop now - offer ends at midnight.",
            "reasoning": "Stronger call to action.",
            "type": "cta",
        },
    ]
}


@pytest.fixture
def canned_responses():
    return {
        "planning": CANNED_PLAN,
        "diagnosing": CANNED_INSIGHTS,
        "recommending": CANNED_RECOMMENDATIONS,
    }


THROTTLED = "Prospecting_Broad_US"
SCENARIO_CAMPAIGNS = [
    ("Prospecting_Broad_US", ["Msg P1", "Msg P2"], "broad"),
    ("Retargeting_Visitors_30D", ["Msg R1", "Msg R2"], "retargeting"),
    ("LAL_1pct_Purchasers", ["Msg L1", "Msg L2"], "lookalike"),
]


def build_scenario_records(days=31, throttle_days=10):
    """
    3 campaigns x `days` days. Every campaign serves 20k impressions/day at
    a 2% CTR, except the throttled campaign whose CTR is 0.6x for the last
    `throttle_days` days. Each campaign alternates its two messages by day.
    """
    start = datetime.date(2025, 1, 1)
    records = []
    for d in range(days):
        date = (start + datetime.timedelta(days=d)).strftime("%Y-%m-%d")
        for name, messages, audience in SCENARIO_CAMPAIGNS:
            throttled = name == THROTTLED and d >= days - throttle_days
            impressions = 20000
            clicks = 240 if throttled else 400
            purchases = 8 if throttled else 12
            spend = 400.0
            revenue = purchases * 70.0
            records.append(
                {
                    "date": date,
                    "campaign_name": name,
                    "adset_name": f"{name}_AdSet_1",
                    "spend": spend,
                    "impressions": impressions,
                    "clicks": clicks,
                    "purchases": purchases,
                    "revenue": revenue,
                    "ctr": clicks / impressions,
                    "roas": revenue / spend,
                    "cpa": spend / purchases,
                    "creative_type": "image",
                    "creative_message": messages[d % 2],
                    "audience_type": audience,
                }
            )
    return records


@pytest.fixture
def scenario_records():
    return build_scenario_records()
