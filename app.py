# app.py
# ACI Distribution
# - Local mode: reads the sqlite database (database.py)
# - Streamlit Cloud: forces Upload CSVs (no local database)
# - Sidebar sliders simulate other splits without saving them

from datetime import date
from pathlib import Path

import pandas as pd
import streamlit as st

from config import SETTING_KEYS, resolve_distribution_config
from database import DB_PATH, TABLE_DEFINITIONS, init_database, update_setting
from distribution import calculate_distribution, DistributionCalculationError
from repository import SqliteLedger, FrameLedger, SettingsOverlay
from reporting import (shares_frame, attendance_frame, contribution_frame, meetings_frame,
                       projects_frame, distribution_summary, revenue_by_category,
                       share_chart, generate_excel)
from utils import is_streamlit_cloud, fmt_num, fmt_pct, fmt_date


st.set_page_config(layout="wide")
st.title("Répartition ACI")

CLOUD = is_streamlit_cloud()


# ============================================================
# SIDEBAR
# ============================================================
with st.sidebar:
    st.header("Data Source")

    if CLOUD:
        mode = "Upload CSVs"
        st.info("Running on Streamlit Cloud: the local database is disabled. Please upload CSVs.")
    else:
        mode = st.radio("Load data from:", ["Database", "Upload CSVs"], index=0)

    uploads = {}
    db_path = DB_PATH

    if mode == "Database":
        db_path = st.text_input("Database file", value=DB_PATH)
        data_folder = st.text_input("CSV folder (initialisation)", placeholder="data/")
        if st.button("Initialise from CSVs") and data_folder:
            results = init_database(data_folder, db_path=db_path)
            st.dataframe(pd.DataFrame.from_dict(results, orient="index"), use_container_width=True)
    else:
        for table_name, info in TABLE_DEFINITIONS.items():
            uploads[table_name] = st.file_uploader(info['csv'], type="csv")

    st.divider()
    st.header("Distribution")
    year = st.number_input("Year", min_value=2000, max_value=2100, value=date.today().year, step=1)
    simulate = st.toggle("Simulate other shares", value=False)


# ============================================================
# LOAD INPUTS
# ============================================================
def load_ledger():
    if mode == "Database":
        if not Path(db_path).exists():
            st.error(f"Database {db_path} not found. Initialise it from a CSV folder first.")
            st.stop()
        return SqliteLedger(db_path)

    frames = {}
    for table_name, f in uploads.items():
        if f is not None:
            frames[table_name] = pd.read_csv(f)
    if "associates" not in frames:
        st.warning("Please upload associates.csv")
        st.stop()
    return FrameLedger(frames)


ledger = load_ledger()
stored = resolve_distribution_config(ledger.get_setting)

settings = ledger
if simulate:
    with st.sidebar:
        fixed = st.slider("Fixed share", 0.0, 1.0, float(stored.fixed_share), 0.05)
        rcp = st.slider("RCP share", 0.0, 1.0, float(stored.rcp_share), 0.05)
        project = st.slider("Project share", 0.0, 1.0, float(stored.project_share), 0.05)
        manager = st.slider("Manager weight", 1.0, 3.0, float(stored.manager_weight), 0.1)
        if abs(fixed + rcp + project - 1.0) > 1e-9:
            st.warning(f"Shares sum to {fixed + rcp + project:.0%}: the pool will not be fully distributed.")
        if mode == "Database" and st.button("Save as settings"):
            update_setting(SETTING_KEYS["fixed_share"][0], fixed, db_path=db_path)
            update_setting(SETTING_KEYS["rcp_share"][0], rcp, db_path=db_path)
            update_setting(SETTING_KEYS["project_share"][0], project, db_path=db_path)
            update_setting(SETTING_KEYS["manager_weight"][0], manager, db_path=db_path)
            st.success("Settings saved.")
    settings = SettingsOverlay(ledger, {
        SETTING_KEYS["fixed_share"][0]: fixed,
        SETTING_KEYS["rcp_share"][0]: rcp,
        SETTING_KEYS["project_share"][0]: project,
        SETTING_KEYS["manager_weight"][0]: manager,
    })

try:
    result = calculate_distribution(ledger, settings, int(year))
except DistributionCalculationError as e:
    st.error(str(e))
    st.stop()


# ============================================================
# SUMMARY
# ============================================================
summary = distribution_summary(result)

c1, c2, c3, c4 = st.columns(4)
with c1:
    st.metric("Revenus ACI", f"{fmt_num(summary['total_aci_revenue'])} €")
with c2:
    st.metric("Revenus totaux", f"{fmt_num(summary['total_revenue'])} €")
with c3:
    st.metric("Dépenses", f"{fmt_num(summary['total_expenses'])} €")
with c4:
    st.metric("Montant net", f"{fmt_num(summary['net_amount'])} €")

st.caption(
    f"Split: {fmt_pct(result.config.fixed_share * 100)} fixed, "
    f"{fmt_pct(result.config.rcp_share * 100)} RCP, "
    f"{fmt_pct(result.config.project_share * 100)} projects, "
    f"manager weight {result.config.manager_weight}"
)

if not result.associate_shares:
    st.warning("Nothing to distribute for this year (net amount not positive or no associates).")
    st.stop()


# ============================================================
# TABS
# ============================================================
tab_shares, tab_rcp, tab_projects, tab_revenue = st.tabs(
    ["Distribution", "RCP", "Projects", "Revenue"])

with tab_shares:
    st.altair_chart(share_chart(result), use_container_width=True)
    st.dataframe(
        shares_frame(result),
        use_container_width=True,
        hide_index=True,
        column_config={
            "Base Share": st.column_config.NumberColumn(format="%.2f €"),
            "RCP Share": st.column_config.NumberColumn(format="%.2f €"),
            "Project Share": st.column_config.NumberColumn(format="%.2f €"),
            "Total Share": st.column_config.NumberColumn(format="%.2f €"),
            "% Share": st.column_config.NumberColumn(format="%.2f%%"),
        },
    )
    st.download_button(
        "Download Excel",
        data=generate_excel(result),
        file_name=f"distribution_{result.year}.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

with tab_rcp:
    meetings = meetings_frame(result, ledger.list_all_attendances())
    meetings["Date"] = meetings["Date"].apply(fmt_date)
    st.dataframe(meetings, use_container_width=True, hide_index=True)
    st.dataframe(attendance_frame(result), use_container_width=True, hide_index=True)

with tab_projects:
    st.dataframe(projects_frame(result, ledger.list_all_assignments()),
                 use_container_width=True, hide_index=True)
    st.dataframe(contribution_frame(result), use_container_width=True, hide_index=True)

with tab_revenue:
    st.dataframe(
        revenue_by_category(ledger.list_revenues(), ledger.list_expenses(), result.year),
        use_container_width=True,
        hide_index=True,
        column_config={"Amount": st.column_config.NumberColumn(format="%.2f €")},
    )
