"""Pytest configuration.

Puts the repository root on sys.path so the flat modules import as in the app,
and provides an in-memory ledger stub for engine tests.
"""

import sys
from datetime import date
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from models import (Associate, Revenue, Expense, Meeting, Attendance,  # noqa: E402
                    Project, Assignment)


class StubLedger:
    """LedgerReader + SettingsProvider over plain lists"""

    def __init__(self, associates=None, revenues=None, expenses=None, meetings=None,
                 attendances=None, projects=None, assignments=None, settings=None):
        self.associates = associates or []
        self.revenues = revenues or []
        self.expenses = expenses or []
        self.meetings = meetings or []
        self.attendances = attendances or []
        self.projects = projects or []
        self.assignments = assignments or []
        self.settings = settings or {}

    def list_associates(self):
        return list(self.associates)

    def list_revenues(self):
        return list(self.revenues)

    def list_expenses(self):
        return list(self.expenses)

    def list_meetings(self):
        return list(self.meetings)

    def list_attendances(self, meeting_id):
        return [a for a in self.attendances if a.meeting_id == meeting_id]

    def list_all_attendances(self):
        return list(self.attendances)

    def list_active_projects(self):
        return [p for p in self.projects if p.status == "active"]

    def list_assignments(self, project_id):
        return [a for a in self.assignments if a.project_id == project_id]

    def list_all_assignments(self):
        return list(self.assignments)

    def get_setting(self, key):
        return self.settings.get(key)


YEAR = 2024


def aci(amount, d=date(YEAR, 3, 15), category="ACI", rid=1):
    return Revenue(id=rid, amount=amount, date=d, category=category)


def expense(amount, d=date(YEAR, 6, 1), eid=1):
    return Expense(id=eid, amount=amount, date=d)


@pytest.fixture
def single_associate_ledger():
    """One associate, 10000 ACI, 2000 expenses, one 60-minute meeting, one project"""
    return StubLedger(
        associates=[Associate(id=1, name="Dr Martin", profession="Médecin")],
        revenues=[aci(10000.0)],
        expenses=[expense(2000.0)],
        meetings=[Meeting(id=1, date=date(YEAR, 2, 1), duration=60)],
        attendances=[Attendance(meeting_id=1, associate_id=1, attended=True)],
        projects=[Project(id=1, title="Prévention", status="active", weight=1.0)],
        assignments=[Assignment(project_id=1, associate_id=1, contribution=100.0)],
    )


@pytest.fixture
def two_associate_ledger():
    """Manager A and non-manager B, 6000 net, no meetings, no projects"""
    return StubLedger(
        associates=[
            Associate(id=1, name="A", profession="Médecin", is_manager=True, participation_weight=1.0),
            Associate(id=2, name="B", profession="Infirmier", is_manager=False, participation_weight=1.0),
        ],
        revenues=[aci(6000.0)],
    )
