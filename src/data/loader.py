"""
CSV data source.

Loads an exported daily performance CSV into the same record shape the
synthetic generator produces, so either can feed aggregation.
"""

from typing import Any, Dict, List, Optional

import pandas as pd
import numpy as np

from src.utils.errors import DataSourceError, wrap_exc

RECORD_COLUMNS = [
    "date",
    "campaign_name",
    "adset_name",
    "spend",
    "impressions",
    "clicks",
    "purchases",
    "revenue",
    "ctr",
    "roas",
    "cpa",
    "creative_type",
    "creative_message",
    "audience_type",
]

# Columns aggregation cannot do without.
HARD_REQUIRED = [
    "campaign_name",
    "spend",
    "impressions",
]

# Columns we can safely synthesize with defaults if they are missing.
SOFT_NUMERIC_OPTIONAL = ["clicks", "purchases", "revenue"]
SOFT_CATEGORICAL_OPTIONAL = [
    "adset_name",
    "creative_type",
    "creative_message",
    "audience_type",
]

DATE_CANDIDATES = ["date", "date_start", "reporting_start", "reporting_date", "day"]


def _infer_date_column(df: pd.DataFrame, preferred: Optional[str] = None) -> Optional[str]:
    """
    Find the date column case-insensitively ('Date', 'date_start', 'day', ...).
    """
    norm_map = {c.lower(): c for c in df.columns}
    candidates = ([preferred] if preferred else []) + DATE_CANDIDATES
    for cand in candidates:
        if cand.lower() in norm_map:
            return norm_map[cand.lower()]
    return None


def _ratio(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    return (numerator / denominator.where(denominator != 0)).fillna(0.0)


def load_records_csv(path: str, date_col: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Read a CSV export and return a list of performance records.

    - Hard-required columns must exist (fail fast with DataSourceError).
    - Optional numeric columns default to 0, optional text columns to 'UNKNOWN'.
    - Rows with an unparseable date are dropped.
    - ctr/roas/cpa are recomputed from the raw counts.
    """
    try:
        df = pd.read_csv(path)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise wrap_exc(f"Could not read CSV at {path}", e, DataSourceError)

    inferred = _infer_date_column(df, date_col)
    if inferred is None:
        raise DataSourceError(
            "Could not infer a date column. "
            f"Tried candidates like {DATE_CANDIDATES}. "
            f"Available columns: {list(df.columns)}"
        )
    if inferred != "date":
        df = df.rename(columns={inferred: "date"})

    hard_missing = [c for c in HARD_REQUIRED if c not in df.columns]
    if hard_missing:
        raise DataSourceError(
            "Dataset is missing critical columns required for analysis: "
            f"{hard_missing}. Columns present: {list(df.columns)}"
        )

    for col in SOFT_NUMERIC_OPTIONAL:
        if col not in df.columns:
            df[col] = 0
    for col in SOFT_CATEGORICAL_OPTIONAL:
        if col not in df.columns:
            df[col] = "UNKNOWN"

    df["date"] = pd.to_datetime(df["date"], errors="coerce", format="mixed")
    df = df.dropna(subset=["date"])
    df["date"] = df["date"].dt.strftime("%Y-%m-%d")

    for col in ["spend", "impressions", "clicks", "purchases", "revenue"]:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0)
    for col in ["impressions", "clicks", "purchases"]:
        df[col] = df[col].astype(np.int64)

    df["ctr"] = _ratio(df["clicks"], df["impressions"])
    df["roas"] = _ratio(df["revenue"], df["spend"])
    df["cpa"] = _ratio(df["spend"], df["purchases"])

    return df[RECORD_COLUMNS].to_dict(orient="records")
