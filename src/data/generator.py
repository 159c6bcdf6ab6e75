# src/data/generator.py
"""
Synthetic daily campaign data.

Produces `days + 1` dates (today and the `days` before it) for a fixed
campaign catalog. One campaign is "fatigued": its CTR is scaled down for the
most recent `fatigue_days` days so the agents have something to find.
Numbers are illustrative only.
"""

import datetime
from typing import Any, Dict, List, Optional

import numpy as np

CREATIVE_TYPES = ("image", "video", "carousel")
AUDIENCE_TYPES = ("broad", "lookalike", "retargeting")

CAMPAIGNS = [
    {"name": "Prospecting_Broad_US", "audience": "broad"},
    {"name": "Retargeting_Visitors_30D", "audience": "retargeting"},
    {"name": "LAL_1pct_Purchasers", "audience": "lookalike"},
]

CREATIVES = [
    {"message": "Get 50% Off - Limited Time Only!", "type": "image"},
    {"message": "The Solution You've Been Waiting For.", "type": "video"},
    {"message": "Why 10,000+ Customers Love Us.", "type": "carousel"},
    {"message": "Stop Wasting Time. Start Saving Today.", "type": "image"},
]


def generate_mock_data(
    days: int = 30,
    seed: Optional[int] = None,
    end_date: Optional[datetime.date] = None,
    fatigued_campaign: Optional[str] = "Prospecting_Broad_US",
    fatigue_days: int = 10,
    fatigue_factor: float = 0.6,
) -> List[Dict[str, Any]]:
    """
    Return a flat, date-ordered list of performance records (one per
    campaign per day).
    """
    rng = np.random.default_rng(seed)
    today = end_date or datetime.date.today()
    records: List[Dict[str, Any]] = []

    for i in range(days, -1, -1):
        day = today - datetime.timedelta(days=i)
        date_str = day.strftime("%Y-%m-%d")

        for camp in CAMPAIGNS:
            is_fatigued = i < fatigue_days and camp["name"] == fatigued_campaign

            spend = float(rng.integers(200, 700))
            cpm = 20 + rng.random() * 5
            impressions = int((spend / cpm) * 1000)

            ctr = 0.015 + rng.random() * 0.01
            if is_fatigued:
                ctr *= fatigue_factor
            clicks = int(impressions * ctr)

            cvr = 0.02 + rng.random() * 0.01
            purchases = int(clicks * cvr)

            aov = 60 + rng.random() * 20
            revenue = purchases * aov

            creative = CREATIVES[int(rng.integers(0, len(CREATIVES)))]

            records.append(
                {
                    "date": date_str,
                    "campaign_name": camp["name"],
                    "adset_name": f"{camp['name']}_AdSet_1",
                    "spend": round(spend, 2),
                    "impressions": impressions,
                    "clicks": clicks,
                    "purchases": purchases,
                    "revenue": round(revenue, 2),
                    "ctr": round(clicks / impressions, 4) if impressions else 0.0,
                    "roas": round(revenue / spend, 2) if spend else 0.0,
                    "cpa": round(spend / purchases, 2) if purchases > 0 else 0.0,
                    "creative_type": creative["type"],
                    "creative_message": creative["message"],
                    "audience_type": camp["audience"],
                }
            )

    return records
