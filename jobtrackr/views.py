"""
Derived views over the owner's application list.

Everything here is a pure function of its inputs; callers recompute on every
change to the record list, the search text or the status filter.
"""
import math
from datetime import date

import pandas as pd

from jobtrackr.service import COLUMNS, DATE_FMT

EXPORT_COLUMNS = [c for c in COLUMNS if c != "user_id"]


def _iso(value):
    if isinstance(value, date):
        return value.strftime(DATE_FMT)
    return value


def to_frame(records) -> pd.DataFrame:
    df = pd.DataFrame(list(records), columns=COLUMNS)
    if not df.empty:
        df["applied_date"] = df["applied_date"].map(_iso)
    return df


def filter_applications(records, query: str = "", status: str = ""):
    q = (query or "").strip().lower()
    if status == "All":
        status = ""

    out = []
    for r in records:
        company = (r.get("company_name") or "").lower()
        title = (r.get("job_title") or "").lower()
        if q and q not in company and q not in title:
            continue
        if status and r.get("status") != status:
            continue
        out.append(r)
    return out


def weekly_timeline(records):
    """
    Counts applications per week, weeks starting on Sunday.

    Returns [{"week": "2023-12-31", "label": "Dec 31", "count": 2}, ...]
    sorted by week.
    """
    df = to_frame(records)
    if df.empty:
        return []

    applied = pd.to_datetime(df["applied_date"], format=DATE_FMT, errors="coerce").dropna()
    if applied.empty:
        return []

    # pandas weekday: Monday=0 .. Sunday=6
    offset = (applied.dt.dayofweek + 1) % 7
    week_start = applied - pd.to_timedelta(offset, unit="D")
    counts = week_start.value_counts().sort_index()

    return [
        {"week": ts.strftime(DATE_FMT), "label": f"{ts.strftime('%b')} {ts.day}", "count": int(n)}
        for ts, n in counts.items()
    ]


def status_distribution(records):
    if not records:
        return []

    statuses = pd.Series([r.get("status") or "Unknown" for r in records], dtype="object")
    counts = statuses.value_counts(sort=False).sort_values(ascending=False, kind="stable")
    return [{"status": s, "count": int(n)} for s, n in counts.items()]


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def compute_stats(records) -> dict:
    total = len(records)
    if total == 0:
        return {"total": 0, "interviews_secured": 0, "pending_responses": 0, "success_rate": 0}

    status = pd.Series([r.get("status") or "" for r in records], dtype="object")
    interviews = int((status.str.contains("Interview", regex=False) | (status == "Offer")).sum())
    pending = int((status == "Applied").sum())

    return {
        "total": total,
        "interviews_secured": interviews,
        "pending_responses": pending,
        "success_rate": _round_half_up(interviews / total * 100),
    }


def export_csv(records) -> bytes:
    df = to_frame(records)
    return df[EXPORT_COLUMNS].to_csv(index=False).encode("utf-8")
