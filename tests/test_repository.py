from datetime import date

import pandas as pd
import pytest

from database import init_database, update_setting
from distribution import calculate_distribution
from repository import SqliteLedger, FrameLedger, SettingsOverlay


def _frames():
    return {
        "associates": pd.DataFrame({
            "id": [1, 2],
            "name": ["A", "B"],
            "profession": ["Médecin", "Infirmier"],
            "is_manager": [1, 0],
            "participation_weight": ["1", "1"],
        }),
        "revenues": pd.DataFrame({
            "id": [1, 2, 3],
            "amount": ["7000", "500", "9999"],
            "date": ["2024-03-15", "2024-04-01", "2023-12-31"],
            "category": ["ACI", "Consultations", "ACI"],
        }),
        "expenses": pd.DataFrame({
            "id": [1],
            "amount": ["1000"],
            "date": ["2024-06-01"],
            "is_recurring": [0],
        }),
        "rcp_meetings": pd.DataFrame({
            "id": [1, 2],
            "date": ["2024-02-01", "2024-05-01"],
            "title": ["RCP février", "RCP mai"],
            "duration": [60, 30],
        }),
        "rcp_attendance": pd.DataFrame({
            "rcp_id": [1, 1, 2],
            "associate_id": [1, 2, 2],
            "attended": [1, 1, 0],
        }),
        "projects": pd.DataFrame({
            "id": [1, 2],
            "title": ["Prévention", "Archivé"],
            "status": ["active", "completed"],
            "weight": ["1", "1"],
        }),
        "project_assignments": pd.DataFrame({
            "project_id": [1, 1, 2],
            "associate_id": [1, 2, 2],
            "contribution": ["50", "50", "100"],
        }),
        "settings": pd.DataFrame({
            "key": ["fixed_revenue_share", "rcp_share", "project_share", "aci_manager_weight"],
            "value": ["0.5", "0.25", "0.25", "1.5"],
            "category": ["distribution"] * 4,
            "description": [""] * 4,
        }),
    }


@pytest.fixture
def sqlite_ledger(tmp_path):
    data = tmp_path / "data"
    data.mkdir()
    for table, df in _frames().items():
        df.to_csv(data / f"{table}.csv", index=False)
    db_path = str(tmp_path / "ledger.db")
    init_database(str(data), db_path=db_path)
    return SqliteLedger(db_path)


def _check_expected(result):
    # net 6000: fixed 3000 split 1.5:1, RCP 1500 split evenly (60 min each), projects 1500 split evenly
    assert result.total_aci_revenue == pytest.approx(7000.0)
    assert result.total_revenue == pytest.approx(7500.0)
    assert result.total_expenses == pytest.approx(1000.0)
    a, b = result.associate_shares
    assert a.associate_id == 1
    assert a.base_share == pytest.approx(1800.0)
    assert b.base_share == pytest.approx(1200.0)
    assert a.rcp_share == pytest.approx(750.0)
    assert a.project_share == pytest.approx(750.0)
    assert a.total_share == pytest.approx(3300.0)
    assert b.total_share == pytest.approx(2700.0)


def test_sqlite_ledger_end_to_end(sqlite_ledger) -> None:
    result = calculate_distribution(sqlite_ledger, year=2024)
    _check_expected(result)
    assert [p.id for p in result.projects] == [1]


def test_frame_ledger_matches_sqlite(sqlite_ledger) -> None:
    from_frames = calculate_distribution(FrameLedger(_frames()), year=2024)
    from_db = calculate_distribution(sqlite_ledger, year=2024)
    _check_expected(from_frames)
    assert from_frames.to_dict() == from_db.to_dict()


def test_sqlite_ledger_entities(sqlite_ledger) -> None:
    associates = sqlite_ledger.list_associates()
    assert [a.name for a in associates] == ["A", "B"]
    assert associates[0].is_manager is True

    meetings = sqlite_ledger.list_meetings()
    assert meetings[0].date == date(2024, 2, 1)
    assert [m.duration for m in meetings] == [60, 30]

    assert [a.associate_id for a in sqlite_ledger.list_attendances(1)] == [1, 2]
    assert [a.attended for a in sqlite_ledger.list_attendances(2)] == [False]
    assert [a.associate_id for a in sqlite_ledger.list_assignments(2)] == [2]
    assert len(sqlite_ledger.list_all_assignments()) == 3
    assert [p.title for p in sqlite_ledger.list_active_projects()] == ["Prévention"]


def test_sqlite_ledger_settings(sqlite_ledger) -> None:
    assert sqlite_ledger.get_setting("rcp_share") == "0.25"
    assert sqlite_ledger.get_setting("missing") is None

    update_setting("fixed_revenue_share", "1", db_path=sqlite_ledger.db_path)
    update_setting("rcp_share", "0", db_path=sqlite_ledger.db_path)
    update_setting("project_share", "0", db_path=sqlite_ledger.db_path)

    result = calculate_distribution(sqlite_ledger, year=2024)
    assert result.associate_shares[0].base_share == pytest.approx(3600.0)
    assert result.associate_shares[0].rcp_share == 0.0


def test_frame_ledger_missing_tables_are_empty() -> None:
    ledger = FrameLedger({"associates": _frames()["associates"]})
    assert ledger.list_revenues() == []
    assert ledger.list_active_projects() == []
    assert ledger.get_setting("rcp_share") is None

    result = calculate_distribution(ledger, year=2024)
    assert result.net_amount == 0.0
    assert all(s.total_share == 0.0 for s in result.associate_shares)


def test_settings_overlay() -> None:
    base = FrameLedger({"settings": _frames()["settings"]})
    overlay = SettingsOverlay(base, {"rcp_share": 0.4, "project_share": None})

    assert overlay.get_setting("rcp_share") == "0.4"
    assert overlay.get_setting("project_share") == "0.25"
    assert SettingsOverlay(overrides={"x": 1}).get_setting("y") is None


def test_overlay_drives_calculation() -> None:
    ledger = FrameLedger(_frames())
    overlay = SettingsOverlay(ledger, {"fixed_revenue_share": 0.0, "rcp_share": 1.0, "project_share": 0.0})

    result = calculate_distribution(ledger, settings=overlay, year=2024)

    assert [s.total_share for s in result.associate_shares] == [pytest.approx(3000.0)] * 2
    assert result.config.rcp_share == 1.0
