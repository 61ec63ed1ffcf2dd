"""
repository.py
Ledger and settings sources for the distribution engine

The engine only depends on the two protocols below.  SqliteLedger reads the
local database; FrameLedger wraps already-loaded DataFrames (CSV uploads,
tests).  SettingsOverlay layers unsaved what-if values over stored settings.
"""

from typing import Dict, List, Mapping, Optional, Protocol

import pandas as pd

from config import ACTIVE_STATUS
from database import execute_query
from loaders import (load_associates, load_revenues, load_expenses, load_meetings,
                     load_attendances, load_projects, load_assignments, load_settings)
from models import (Associate, Revenue, Expense, Meeting, Attendance,
                    Project, Assignment)


class LedgerReader(Protocol):
    def list_associates(self) -> List[Associate]: ...

    def list_revenues(self) -> List[Revenue]: ...

    def list_expenses(self) -> List[Expense]: ...

    def list_meetings(self) -> List[Meeting]: ...

    def list_attendances(self, meeting_id: int) -> List[Attendance]: ...

    def list_all_attendances(self) -> List[Attendance]: ...

    def list_active_projects(self) -> List[Project]: ...

    def list_assignments(self, project_id: int) -> List[Assignment]: ...

    def list_all_assignments(self) -> List[Assignment]: ...


class SettingsProvider(Protocol):
    def get_setting(self, key: str) -> Optional[str]: ...


# ============================================================
# SQLITE
# ============================================================

class SqliteLedger:
    """Ledger and settings backed by the sqlite database in database.py"""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    def _query(self, sql: str, params: tuple = None) -> pd.DataFrame:
        return execute_query(sql, params, db_path=self.db_path)

    def list_associates(self) -> List[Associate]:
        return load_associates(self._query("SELECT * FROM associates ORDER BY id"))

    def list_revenues(self) -> List[Revenue]:
        return load_revenues(self._query("SELECT * FROM revenues"))

    def list_expenses(self) -> List[Expense]:
        return load_expenses(self._query("SELECT * FROM expenses"))

    def list_meetings(self) -> List[Meeting]:
        return load_meetings(self._query("SELECT * FROM rcp_meetings ORDER BY id"))

    def list_attendances(self, meeting_id: int) -> List[Attendance]:
        return load_attendances(
            self._query("SELECT * FROM rcp_attendance WHERE rcp_id = ?", (int(meeting_id),)))

    def list_all_attendances(self) -> List[Attendance]:
        return load_attendances(self._query("SELECT * FROM rcp_attendance"))

    def list_active_projects(self) -> List[Project]:
        # status is normalised in the loader, so filter after loading
        projects = load_projects(self._query("SELECT * FROM projects ORDER BY id"))
        return [p for p in projects if p.status == ACTIVE_STATUS]

    def list_assignments(self, project_id: int) -> List[Assignment]:
        return load_assignments(
            self._query("SELECT * FROM project_assignments WHERE project_id = ?", (int(project_id),)))

    def list_all_assignments(self) -> List[Assignment]:
        return load_assignments(self._query("SELECT * FROM project_assignments"))

    def get_setting(self, key: str) -> Optional[str]:
        df = self._query("SELECT value FROM settings WHERE key = ?", (key,))
        if df.empty or pd.isna(df["value"].iloc[0]):
            return None
        return str(df["value"].iloc[0])


# ============================================================
# IN-MEMORY DATAFRAMES
# ============================================================

class FrameLedger:
    """
    Ledger built from raw DataFrames keyed by table name

    Tables are parsed once at construction, so a bad table fails here rather
    than halfway through a calculation.  Missing tables are empty.
    """

    def __init__(self, frames: Mapping[str, pd.DataFrame]):
        self.associates = load_associates(frames.get("associates"))
        self.revenues = load_revenues(frames.get("revenues"))
        self.expenses = load_expenses(frames.get("expenses"))
        self.meetings = load_meetings(frames.get("rcp_meetings"))
        self.attendances = load_attendances(frames.get("rcp_attendance"))
        self.projects = load_projects(frames.get("projects"))
        self.assignments = load_assignments(frames.get("project_assignments"))
        self.settings = load_settings(frames.get("settings"))

    def list_associates(self) -> List[Associate]:
        return list(self.associates)

    def list_revenues(self) -> List[Revenue]:
        return list(self.revenues)

    def list_expenses(self) -> List[Expense]:
        return list(self.expenses)

    def list_meetings(self) -> List[Meeting]:
        return list(self.meetings)

    def list_attendances(self, meeting_id: int) -> List[Attendance]:
        return [a for a in self.attendances if a.meeting_id == meeting_id]

    def list_all_attendances(self) -> List[Attendance]:
        return list(self.attendances)

    def list_active_projects(self) -> List[Project]:
        return [p for p in self.projects if p.status == ACTIVE_STATUS]

    def list_assignments(self, project_id: int) -> List[Assignment]:
        return [a for a in self.assignments if a.project_id == project_id]

    def list_all_assignments(self) -> List[Assignment]:
        return list(self.assignments)

    def get_setting(self, key: str) -> Optional[str]:
        return self.settings.get(key)


# ============================================================
# SETTINGS OVERRIDES
# ============================================================

class SettingsOverlay:
    """Read overrides first, then fall back to a base provider (simulation mode)"""

    def __init__(self, base: Optional[SettingsProvider] = None,
                 overrides: Optional[Dict[str, object]] = None):
        self.base = base
        self.overrides = {k: v for k, v in (overrides or {}).items() if v is not None}

    def get_setting(self, key: str) -> Optional[str]:
        if key in self.overrides:
            return str(self.overrides[key])
        if self.base is None:
            return None
        return self.base.get_setting(key)
