"""
utils.py
Utility functions for date handling, value parsing and environment detection
"""

from datetime import date
from pathlib import Path
from typing import Optional
import pandas as pd


TRUE_STRINGS = {"true", "t", "yes", "y", "1", "oui"}


def is_streamlit_cloud() -> bool:
    """Check if running on Streamlit Cloud"""
    return Path("/mount/src").exists()


def as_date(x) -> Optional[date]:
    """Convert various formats to date object, None when unparsable"""
    if x is None:
        return None
    ts = pd.to_datetime(x, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date()


def as_bool(x) -> bool:
    """Interpret booleans stored as text, numbers or real bools"""
    if x is None or (isinstance(x, float) and pd.isna(x)):
        return False
    if isinstance(x, bool):
        return x
    if isinstance(x, (int, float)):
        return x != 0
    return str(x).strip().lower() in TRUE_STRINGS


def fmt_date(x) -> str:
    """Format date for display"""
    d = as_date(x)
    return d.isoformat() if d else "—"


def fmt_num(x) -> str:
    """Format number with thousands separators and cents"""
    try:
        if x is None or (isinstance(x, float) and pd.isna(x)):
            return "—"
        return f"{float(x):,.2f}"
    except (TypeError, ValueError):
        return "—"


def fmt_pct(x) -> str:
    """Format a 0-100 percentage"""
    try:
        if x is None or (isinstance(x, float) and pd.isna(x)):
            return "—"
        return f"{float(x):.1f}%"
    except (TypeError, ValueError):
        return "—"
