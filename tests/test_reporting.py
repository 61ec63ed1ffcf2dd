from datetime import date
from io import BytesIO

import pytest
from openpyxl import load_workbook

from conftest import StubLedger, aci, expense, YEAR
from distribution import calculate_distribution
from models import Associate, Meeting, Attendance, Project, Assignment
from reporting import (shares_frame, attendance_frame, contribution_frame, meetings_frame,
                       projects_frame, distribution_summary, revenue_by_category,
                       share_chart, generate_excel, COMPONENT_COLUMNS)


@pytest.fixture
def ledger():
    return StubLedger(
        associates=[
            Associate(id=1, name="A", profession="Médecin", is_manager=True),
            Associate(id=2, name="B", profession="Infirmier"),
        ],
        revenues=[aci(8000.0), aci(500.0, category="Consultations", rid=2),
                  aci(1000.0, d=date(YEAR - 1, 12, 31), rid=3)],
        expenses=[expense(2000.0)],
        meetings=[Meeting(id=1, date=date(YEAR, 2, 1), title="RCP", duration=60),
                  Meeting(id=2, date=date(YEAR, 3, 1), title="RCP 2", duration=30)],
        attendances=[Attendance(1, 1, True), Attendance(1, 2, True), Attendance(2, 2, True)],
        projects=[Project(id=1, title="Prévention", weight=2.0)],
        assignments=[Assignment(1, 1, 25.0), Assignment(1, 2, 75.0)],
    )


@pytest.fixture
def result(ledger):
    return calculate_distribution(ledger, year=YEAR)


def test_shares_frame_follows_result_order(result) -> None:
    df = shares_frame(result)
    assert df["Associate"].tolist() == [s.associate_name for s in result.associate_shares]
    assert df[COMPONENT_COLUMNS].sum(axis=1).tolist() == pytest.approx(df["Total Share"].tolist())
    assert df["% Share"].sum() == pytest.approx(100.0)
    assert df["Total Share"].sum() == pytest.approx(6000.0)


def test_attendance_and_contribution_frames(result) -> None:
    att = attendance_frame(result)
    assert att["Associate"].tolist() == ["B", "A"]
    assert att["Minutes"].tolist() == [90, 60]
    assert att["% of Minutes"].sum() == pytest.approx(100.0)

    contrib = contribution_frame(result)
    assert contrib["Associate"].tolist() == ["B", "A"]
    assert contrib["Projects"].tolist() == [1, 1]
    assert contrib["% of Contribution"].tolist() == [pytest.approx(75.0), pytest.approx(25.0)]


def test_meetings_and_projects_frames(ledger, result) -> None:
    meetings = meetings_frame(result, ledger.attendances)
    assert meetings["Attendees"].tolist() == [2, 1]
    assert meetings["Duration (min)"].tolist() == [60, 30]

    projects = projects_frame(result, ledger.assignments)
    assert projects.to_dict("records") == [{"Project": "Prévention", "Weight": 2.0, "Assignments": 2}]


def test_distribution_summary(result) -> None:
    summary = distribution_summary(result)
    assert summary["net_amount"] == pytest.approx(6000.0)
    assert summary["total_revenue"] == pytest.approx(8500.0)
    assert summary["total_distributed"] == pytest.approx(6000.0)
    assert summary["associate_count"] == 2


def test_revenue_by_category(ledger) -> None:
    df = revenue_by_category(ledger.revenues, ledger.expenses, YEAR)
    amounts = dict(zip(df["Category"], df["Amount"]))
    assert amounts == {
        "ACI": pytest.approx(8000.0),
        "Consultations": pytest.approx(500.0),
        "Total Revenue": pytest.approx(8500.0),
        "Expenses": pytest.approx(-2000.0),
        "Net ACI": pytest.approx(6000.0),
    }


def test_revenue_by_category_empty_year() -> None:
    df = revenue_by_category([], [], YEAR)
    assert df["Category"].tolist() == ["Total Revenue", "Expenses", "Net ACI"]
    assert all(v == 0 for v in df["Amount"])


def test_share_chart_encoding(result) -> None:
    chart = share_chart(result).to_dict()
    mark = chart["mark"]
    assert (mark["type"] if isinstance(mark, dict) else mark) == "bar"
    assert chart["encoding"]["color"]["scale"]["domain"] == COMPONENT_COLUMNS


def test_generate_excel(result) -> None:
    wb = load_workbook(BytesIO(generate_excel(result)))
    ws = wb[f"Distribution {YEAR}"]

    header = [c.value for c in ws[1]]
    assert header == ["Associate", "Profession", "Manager", *COMPONENT_COLUMNS, "Total Share", "% Share"]
    assert ws.cell(row=2, column=1).value == result.associate_shares[0].associate_name

    total_row = len(result.associate_shares) + 2
    assert ws.cell(row=total_row, column=1).value == "Total"
    assert ws.cell(row=total_row, column=header.index("Total Share") + 1).value == pytest.approx(6000.0)


def test_generate_excel_without_shares() -> None:
    empty = calculate_distribution(StubLedger(), year=YEAR)
    wb = load_workbook(BytesIO(generate_excel(empty)))
    ws = wb.active
    assert ws.cell(row=2, column=1).value == "Total"
