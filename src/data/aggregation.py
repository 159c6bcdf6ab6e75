# src/data/aggregation.py
"""
Aggregation engine: flat daily records -> agent context.

    aggregate(records) -> {
        "trend": [{date, spend, revenue, roas}, ...],               # chronological
        "campaign_stats": [{campaign_name, spend, revenue, roas, ctr}, ...],
        "low_performing_creatives": [{creative_message, roas, ctr, campaign_names}, ...],
    }

Every ratio is computed from summed totals (never by averaging per-row
ratios). A zero denominator gives NaN, the "undefined ratio"; use
format_ratio() / to_jsonable() to present it.
"""

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from src.utils.logger import AgentLogger

SUM_COLUMNS = ["spend", "revenue", "clicks", "impressions"]
KEY_COLUMNS = ["date", "campaign_name", "creative_message"]
LOW_PERFORMER_COUNT = 3

Records = Union[pd.DataFrame, Iterable[Mapping[str, Any]]]


def _safe_ratio(numerator: float, denominator: float) -> float:
    if denominator is None or denominator == 0:
        return float("nan")
    return float(numerator) / float(denominator)


def is_undefined(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def format_ratio(value: Any, digits: int = 2) -> str:
    """Render a ratio for humans; undefined ratios become '-'."""
    if is_undefined(value):
        return "-"
    return f"{float(value):.{digits}f}"


def _empty_context() -> Dict[str, List[Dict[str, Any]]]:
    return {"trend": [], "campaign_stats": [], "low_performing_creatives": []}


def _prepare(records: Records) -> pd.DataFrame:
    if isinstance(records, pd.DataFrame):
        df = records.copy()
    else:
        df = pd.DataFrame(list(records))
    if df.empty:
        return df

    missing = [c for c in KEY_COLUMNS + SUM_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(
            f"Records are missing columns required for aggregation: {missing}. "
            f"Columns present: {list(df.columns)}"
        )

    for col in SUM_COLUMNS + (["purchases"] if "purchases" in df.columns else []):
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0)

    # exports mix ISO dates, US dates and full timestamps; trend is per calendar day
    parsed = pd.to_datetime(df["date"], errors="coerce", format="mixed")
    df["_day"] = parsed.dt.normalize()

    # rows with no valid date cannot be placed on the trend
    bad = df["_day"].isna()
    if bad.any():
        AgentLogger("Aggregation").warn(
            "dropped_rows",
            "Records with unparseable dates left out of aggregation",
            {"n_dropped": int(bad.sum()), "sample": [str(v) for v in df.loc[bad, "date"].head(5)]},
        )
    return df[~bad]


def _build_trend(df: pd.DataFrame) -> List[Dict[str, Any]]:
    daily = df.groupby("_day", sort=False)[SUM_COLUMNS].sum()
    daily = daily.sort_index(kind="mergesort")
    out: List[Dict[str, Any]] = []
    for day, row in daily.iterrows():
        out.append(
            {
                "date": day.strftime("%Y-%m-%d"),
                "spend": float(row["spend"]),
                "revenue": float(row["revenue"]),
                "roas": _safe_ratio(row["revenue"], row["spend"]),
            }
        )
    return out


def _build_campaign_stats(df: pd.DataFrame) -> List[Dict[str, Any]]:
    grp = df.groupby("campaign_name", sort=False)[SUM_COLUMNS].sum()
    out: List[Dict[str, Any]] = []
    for name, row in grp.iterrows():
        out.append(
            {
                "campaign_name": name,
                "spend": float(row["spend"]),
                "revenue": float(row["revenue"]),
                "roas": _safe_ratio(row["revenue"], row["spend"]),
                "ctr": _safe_ratio(row["clicks"], row["impressions"]),
            }
        )
    return out


def _build_low_performers(df: pd.DataFrame, limit: int) -> List[Dict[str, Any]]:
    grp = df.groupby("creative_message", sort=False)[SUM_COLUMNS].sum()
    if grp.empty:
        return []
    campaigns = df.groupby("creative_message", sort=False)["campaign_name"].unique()

    grp["roas"] = grp.apply(lambda r: _safe_ratio(r["revenue"], r["spend"]), axis=1)
    grp["ctr"] = grp.apply(lambda r: _safe_ratio(r["clicks"], r["impressions"]), axis=1)

    # mergesort is stable: equal CTRs keep first-encounter order
    ranked = grp.sort_values("ctr", kind="mergesort", na_position="last").head(limit)

    out: List[Dict[str, Any]] = []
    for message, row in ranked.iterrows():
        out.append(
            {
                "creative_message": message,
                "roas": float(row["roas"]),
                "ctr": float(row["ctr"]),
                "campaign_names": [str(c) for c in campaigns[message]],
            }
        )
    return out


def aggregate(records: Records, low_performer_count: int = LOW_PERFORMER_COUNT) -> Dict[str, List[Dict[str, Any]]]:
    """
    Build the agent context from raw records. Pure and total: an empty
    collection gives three empty lists, zero denominators give NaN.
    """
    df = _prepare(records)
    if df.empty:
        return _empty_context()

    return {
        "trend": _build_trend(df),
        "campaign_stats": _build_campaign_stats(df),
        "low_performing_creatives": _build_low_performers(df, low_performer_count),
    }


def headline_stats(records: Records) -> Dict[str, Any]:
    """
    Account-level totals shown above the charts.
    """
    df = _prepare(records)
    if df.empty:
        return {
            "total_spend": 0.0,
            "total_revenue": 0.0,
            "total_roas": float("nan"),
            "total_purchases": 0,
            "avg_ctr": float("nan"),
        }
    spend = float(df["spend"].sum())
    revenue = float(df["revenue"].sum())
    purchases = int(df["purchases"].sum()) if "purchases" in df.columns else 0
    return {
        "total_spend": spend,
        "total_revenue": revenue,
        "total_roas": _safe_ratio(revenue, spend),
        "total_purchases": purchases,
        "avg_ctr": _safe_ratio(df["clicks"].sum(), df["impressions"].sum()),
    }


def _round(value: Any, digits: int) -> Optional[float]:
    if is_undefined(value):
        return None
    return round(float(value), digits)


def to_jsonable(context: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Rounded, strict-JSON copy of a context for prompts and artifacts
    (NaN becomes None).
    """
    return {
        "trend": [
            {
                "date": t["date"],
                "spend": _round(t["spend"], 2),
                "revenue": _round(t["revenue"], 2),
                "roas": _round(t["roas"], 2),
            }
            for t in context.get("trend", [])
        ],
        "campaign_stats": [
            {
                "campaign_name": c["campaign_name"],
                "spend": _round(c.get("spend"), 2),
                "revenue": _round(c.get("revenue"), 2),
                "roas": _round(c["roas"], 2),
                "ctr": _round(c["ctr"], 4),
            }
            for c in context.get("campaign_stats", [])
        ],
        "low_performing_creatives": [
            {
                "creative_message": lp["creative_message"],
                "roas": _round(lp["roas"], 2),
                "ctr": _round(lp["ctr"], 4),
                "campaign_names": list(lp.get("campaign_names", [])),
            }
            for lp in context.get("low_performing_creatives", [])
        ],
    }
