"""
loaders.py
Table loading and normalization functions

Raw ledger tables (sqlite rows or uploaded CSVs) store numbers as text and
use either snake_case or camelCase column names.  Everything is parsed here,
so the distribution engine only ever sees typed entities.
"""

import pandas as pd
import numpy as np
from typing import Dict, List

from config import (DEFAULT_MEETING_DURATION, DEFAULT_PROJECT_WEIGHT,
                    DEFAULT_PARTICIPATION_WEIGHT)
from models import (Associate, Revenue, Expense, Meeting, Attendance,
                    Project, Assignment)
from utils import as_bool


# camelCase / legacy name -> canonical column
COLUMN_ALIASES = {
    "isManager": "is_manager",
    "participationWeight": "participation_weight",
    "joinDate": "join_date",
    "patientCount": "patient_count",
    "isRecurring": "is_recurring",
    "rcpId": "rcp_id",
    "meetingId": "rcp_id",
    "meeting_id": "rcp_id",
    "associateId": "associate_id",
    "projectId": "project_id",
    "startDate": "start_date",
    "endDate": "end_date",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Strip column names and map aliases, keeping an existing canonical column"""
    out = df.copy()
    out.columns = [str(c).strip() for c in out.columns]
    ren = {}
    for col in out.columns:
        target = COLUMN_ALIASES.get(col)
        if target and target not in out.columns and target not in ren.values():
            ren[col] = target
    return out.rename(columns=ren)


def _require(df: pd.DataFrame, table: str, required: set):
    missing = sorted(c for c in required if c not in df.columns)
    if missing:
        raise ValueError(f"{table} table missing columns: {missing}")


def _to_number(s: pd.Series) -> pd.Series:
    """Coerce a column of numbers-as-text to float, NaN when unparsable"""
    if not pd.api.types.is_numeric_dtype(s):
        s = s.astype(str).str.strip().str.replace(",", ".", regex=False)
    return pd.to_numeric(s, errors="coerce").astype(float)


def _to_dates(s: pd.Series) -> list:
    parsed = pd.to_datetime(s, errors="coerce", format="mixed")
    return [d.date() if pd.notna(d) else None for d in parsed]


def _text(df: pd.DataFrame, col: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series([""] * len(df), index=df.index)
    return df[col].fillna("").astype(str).str.strip()


def _ids(df: pd.DataFrame, cols: List[str]) -> pd.DataFrame:
    """Coerce id columns to int, dropping rows whose ids are unusable"""
    out = df.copy()
    for col in cols:
        out[col] = pd.to_numeric(out[col], errors="coerce")
    out = out.dropna(subset=cols)
    for col in cols:
        out[col] = out[col].astype(int)
    return out


def load_associates(df: pd.DataFrame) -> List[Associate]:
    """
    Load and normalize associates

    Expected columns: id, name; optional profession, is_manager,
    participation_weight, join_date, patient_count
    """
    if df is None or df.empty:
        return []

    a = _normalize_columns(df)
    _require(a, "associates", {"id", "name"})
    a = _ids(a, ["id"])

    a["name"] = _text(a, "name")
    a["profession"] = _text(a, "profession")
    a["is_manager"] = a["is_manager"].apply(as_bool) if "is_manager" in a.columns else False

    if "participation_weight" in a.columns:
        a["participation_weight"] = _to_number(a["participation_weight"]).fillna(0.0)
    else:
        a["participation_weight"] = DEFAULT_PARTICIPATION_WEIGHT

    if "patient_count" in a.columns:
        a["patient_count"] = _to_number(a["patient_count"]).fillna(0).astype(int)
    else:
        a["patient_count"] = 0

    join_dates = _to_dates(a["join_date"]) if "join_date" in a.columns else [None] * len(a)

    return [
        Associate(
            id=int(r.id),
            name=r.name,
            profession=r.profession,
            is_manager=bool(r.is_manager),
            participation_weight=float(r.participation_weight),
            join_date=jd,
            patient_count=int(r.patient_count),
        )
        for r, jd in zip(a.itertuples(index=False), join_dates)
    ]


def load_revenues(df: pd.DataFrame) -> List[Revenue]:
    """Load revenues; unparsable amounts count as 0"""
    if df is None or df.empty:
        return []

    r = _normalize_columns(df)
    _require(r, "revenues", {"amount", "date", "category"})
    if "id" not in r.columns:
        r["id"] = range(1, len(r) + 1)
    r = _ids(r, ["id"])

    r["amount"] = _to_number(r["amount"]).fillna(0.0)
    r["category"] = _text(r, "category")
    r["source"] = _text(r, "source")
    r["description"] = _text(r, "description")
    dates = _to_dates(r["date"])

    return [
        Revenue(id=int(row.id), amount=float(row.amount), date=d,
                category=row.category, source=row.source, description=row.description)
        for row, d in zip(r.itertuples(index=False), dates)
    ]


def load_expenses(df: pd.DataFrame) -> List[Expense]:
    """Load expenses; unparsable amounts count as 0"""
    if df is None or df.empty:
        return []

    e = _normalize_columns(df)
    _require(e, "expenses", {"amount", "date"})
    if "id" not in e.columns:
        e["id"] = range(1, len(e) + 1)
    e = _ids(e, ["id"])

    e["amount"] = _to_number(e["amount"]).fillna(0.0)
    e["category"] = _text(e, "category")
    e["description"] = _text(e, "description")
    e["is_recurring"] = e["is_recurring"].apply(as_bool) if "is_recurring" in e.columns else False
    dates = _to_dates(e["date"])

    return [
        Expense(id=int(row.id), amount=float(row.amount), date=d,
                category=row.category, description=row.description,
                is_recurring=bool(row.is_recurring))
        for row, d in zip(e.itertuples(index=False), dates)
    ]


def load_meetings(df: pd.DataFrame) -> List[Meeting]:
    """Load meetings; missing, invalid or non-positive durations become 60 minutes"""
    if df is None or df.empty:
        return []

    m = _normalize_columns(df)
    _require(m, "rcp_meetings", {"id"})
    m = _ids(m, ["id"])

    m["title"] = _text(m, "title")
    if "duration" in m.columns:
        dur = _to_number(m["duration"]).round()
        m["duration"] = np.where(dur > 0, dur, DEFAULT_MEETING_DURATION).astype(int)
    else:
        m["duration"] = DEFAULT_MEETING_DURATION
    dates = _to_dates(m["date"]) if "date" in m.columns else [None] * len(m)

    return [
        Meeting(id=int(row.id), date=d, title=row.title, duration=int(row.duration))
        for row, d in zip(m.itertuples(index=False), dates)
    ]


def load_attendances(df: pd.DataFrame) -> List[Attendance]:
    if df is None or df.empty:
        return []

    a = _normalize_columns(df)
    _require(a, "rcp_attendance", {"rcp_id", "associate_id"})
    a = _ids(a, ["rcp_id", "associate_id"])
    a["attended"] = a["attended"].apply(as_bool) if "attended" in a.columns else False

    return [
        Attendance(meeting_id=int(row.rcp_id), associate_id=int(row.associate_id),
                   attended=bool(row.attended))
        for row in a.itertuples(index=False)
    ]


def load_projects(df: pd.DataFrame) -> List[Project]:
    """Load projects; an unset or unparsable weight becomes 1.0"""
    if df is None or df.empty:
        return []

    p = _normalize_columns(df)
    _require(p, "projects", {"id"})
    p = _ids(p, ["id"])

    p["title"] = _text(p, "title")
    p["status"] = _text(p, "status").str.lower()
    if "weight" in p.columns:
        p["weight"] = _to_number(p["weight"]).fillna(DEFAULT_PROJECT_WEIGHT)
    else:
        p["weight"] = DEFAULT_PROJECT_WEIGHT

    return [
        Project(id=int(row.id), title=row.title, status=row.status, weight=float(row.weight))
        for row in p.itertuples(index=False)
    ]


def load_assignments(df: pd.DataFrame) -> List[Assignment]:
    """Load project assignments; unparsable contributions count as 0"""
    if df is None or df.empty:
        return []

    a = _normalize_columns(df)
    _require(a, "project_assignments", {"project_id", "associate_id"})
    a = _ids(a, ["project_id", "associate_id"])
    if "contribution" in a.columns:
        a["contribution"] = _to_number(a["contribution"]).fillna(0.0)
    else:
        a["contribution"] = 0.0

    return [
        Assignment(project_id=int(row.project_id), associate_id=int(row.associate_id),
                   contribution=float(row.contribution))
        for row in a.itertuples(index=False)
    ]


def load_settings(df: pd.DataFrame) -> Dict[str, str]:
    """Load settings rows into a key -> raw string mapping"""
    if df is None or df.empty:
        return {}

    s = _normalize_columns(df)
    _require(s, "settings", {"key", "value"})
    s = s.dropna(subset=["key", "value"])
    return dict(zip(s["key"].astype(str).str.strip(), s["value"].astype(str).str.strip()))
