"""
reporting.py
Tables, chart and Excel export built from a DistributionResult

Display-only: nothing here feeds back into the calculation.
"""

from io import BytesIO
from typing import Dict, List

import altair as alt
import pandas as pd

from config import ACI_CATEGORY
from models import DistributionResult, Attendance, Assignment, Revenue, Expense


# ============================================================
# COLOUR PALETTE
# ============================================================
CLR_DARK = '#1F4E79'
CLR_ACCENT = '#ED7D31'
CLR_LIGHT = '#B4D4F0'

COMPONENT_COLUMNS = ['Base Share', 'RCP Share', 'Project Share']
CURRENCY_COLUMNS = set(COMPONENT_COLUMNS) | {'Total Share'}


def shares_frame(result: DistributionResult) -> pd.DataFrame:
    """One row per associate, in result order"""
    rows = [{
        'Associate': s.associate_name,
        'Profession': s.profession,
        'Manager': s.is_manager,
        'Base Share': s.base_share,
        'RCP Share': s.rcp_share,
        'Project Share': s.project_share,
        'Total Share': s.total_share,
        '% Share': s.percentage_share,
    } for s in result.associate_shares]
    return pd.DataFrame(rows, columns=['Associate', 'Profession', 'Manager', *COMPONENT_COLUMNS,
                                       'Total Share', '% Share'])


def _names(result: DistributionResult) -> Dict[int, str]:
    return {s.associate_id: s.associate_name for s in result.associate_shares}


def attendance_frame(result: DistributionResult) -> pd.DataFrame:
    """RCP minutes per associate, largest first"""
    names = _names(result)
    rows = [{
        'Associate': names.get(aid, str(aid)),
        'Minutes': info.minutes,
        '% of Minutes': info.percentage,
    } for aid, info in result.rcp_attendance.items()]
    df = pd.DataFrame(rows, columns=['Associate', 'Minutes', '% of Minutes'])
    return df.sort_values('Minutes', ascending=False, kind='stable').reset_index(drop=True)


def contribution_frame(result: DistributionResult) -> pd.DataFrame:
    """Active-project count and weighted contribution share per associate"""
    names = _names(result)
    rows = [{
        'Associate': names.get(aid, str(aid)),
        'Projects': info.project_count,
        '% of Contribution': info.percentage,
    } for aid, info in result.project_contributions.items()]
    df = pd.DataFrame(rows, columns=['Associate', 'Projects', '% of Contribution'])
    return df.sort_values('% of Contribution', ascending=False, kind='stable').reset_index(drop=True)


def meetings_frame(result: DistributionResult, attendances: List[Attendance]) -> pd.DataFrame:
    """Meetings with the number of associates marked present"""
    counts: Dict[int, int] = {}
    for att in attendances:
        if att.attended:
            counts[att.meeting_id] = counts.get(att.meeting_id, 0) + 1

    rows = [{
        'Date': m.date,
        'Title': m.title,
        'Duration (min)': m.duration,
        'Attendees': counts.get(m.id, 0),
    } for m in result.meetings]
    return pd.DataFrame(rows, columns=['Date', 'Title', 'Duration (min)', 'Attendees'])


def projects_frame(result: DistributionResult, assignments: List[Assignment]) -> pd.DataFrame:
    """Active projects with their weight and number of assignments"""
    counts: Dict[int, int] = {}
    for asg in assignments:
        counts[asg.project_id] = counts.get(asg.project_id, 0) + 1

    rows = [{
        'Project': p.title,
        'Weight': p.weight,
        'Assignments': counts.get(p.id, 0),
    } for p in result.projects]
    return pd.DataFrame(rows, columns=['Project', 'Weight', 'Assignments'])


def distribution_summary(result: DistributionResult) -> dict:
    """Headline figures for metric cards"""
    return {
        'year': result.year,
        'total_aci_revenue': result.total_aci_revenue,
        'total_revenue': result.total_revenue,
        'total_expenses': result.total_expenses,
        'net_amount': result.net_amount,
        'total_distributed': result.total_distributed,
        'associate_count': len(result.associate_shares),
    }


def revenue_by_category(revenues: List[Revenue], expenses: List[Expense], year: int) -> pd.DataFrame:
    """
    Revenue by category for one year, plus expenses and the ACI net line

    Returns:
        DataFrame with columns Category, Amount
    """
    rev = pd.DataFrame(
        [{'Category': r.category or '—', 'Amount': r.amount}
         for r in revenues if r.date is not None and r.date.year == year],
        columns=['Category', 'Amount'],
    )
    by_cat = rev.groupby('Category', as_index=False)['Amount'].sum().sort_values('Category')

    total_exp = sum(e.amount for e in expenses if e.date is not None and e.date.year == year)
    aci = float(by_cat.loc[by_cat['Category'] == ACI_CATEGORY, 'Amount'].sum())

    extra = pd.DataFrame([
        {'Category': 'Total Revenue', 'Amount': float(by_cat['Amount'].sum())},
        {'Category': 'Expenses', 'Amount': -total_exp},
        {'Category': f'Net {ACI_CATEGORY}', 'Amount': aci - total_exp},
    ])
    return pd.concat([by_cat, extra], ignore_index=True)


# ============================================================
# CHART
# ============================================================

def share_chart(result: DistributionResult) -> alt.Chart:
    """Stacked horizontal bar of the three components per associate"""
    df = shares_frame(result)
    long_df = df.melt(id_vars=['Associate'], value_vars=COMPONENT_COLUMNS,
                      var_name='Component', value_name='Amount')
    order = df['Associate'].tolist()

    color_scale = alt.Scale(domain=COMPONENT_COLUMNS, range=[CLR_DARK, CLR_ACCENT, CLR_LIGHT])

    return alt.Chart(long_df).mark_bar().encode(
        y=alt.Y('Associate:N', sort=order, title=None),
        x=alt.X('Amount:Q', title='Amount (€)', stack='zero', axis=alt.Axis(format=',.0f')),
        color=alt.Color('Component:N', scale=color_scale,
                        legend=alt.Legend(title=None, orient='bottom', direction='horizontal')),
        tooltip=['Associate', 'Component', alt.Tooltip('Amount:Q', format=',.2f')],
    ).properties(height=max(200, 28 * len(order)))


# ============================================================
# EXCEL EXPORT
# ============================================================

def generate_excel(result: DistributionResult) -> bytes:
    """Create a formatted Excel workbook with the shares and a total row

    Returns:
        Bytes suitable for st.download_button.
    """
    from openpyxl import Workbook
    from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

    df = shares_frame(result)

    wb = Workbook()
    ws = wb.active
    ws.title = f"Distribution {result.year}"

    cols = list(df.columns)

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")

    for col_idx, col_name in enumerate(cols, start=1):
        cell = ws.cell(row=1, column=col_idx, value=col_name)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")

    for row_idx, (_, row) in enumerate(df.iterrows(), start=2):
        for col_idx, col_name in enumerate(cols, start=1):
            cell = ws.cell(row=row_idx, column=col_idx)
            val = row[col_name]
            if col_name in CURRENCY_COLUMNS:
                cell.value = float(val)
                cell.number_format = '#,##0.00 €'
            elif col_name == '% Share':
                cell.value = float(val) / 100.0
                cell.number_format = '0.00%'
            elif col_name == 'Manager':
                cell.value = "Oui" if val else "Non"
            else:
                cell.value = val

    # Total row
    total_row = len(df) + 2
    bold_font = Font(bold=True)
    top_border = Border(top=Side(style='medium'))
    for col_idx, col_name in enumerate(cols, start=1):
        cell = ws.cell(row=total_row, column=col_idx)
        if col_idx == 1:
            cell.value = "Total"
        elif col_name in CURRENCY_COLUMNS:
            cell.value = float(df[col_name].sum()) if not df.empty else 0.0
            cell.number_format = '#,##0.00 €'
        cell.font = bold_font
        cell.border = top_border

    for col_idx, col_name in enumerate(cols, start=1):
        max_len = len(str(col_name))
        for row_idx in range(2, total_row + 1):
            cell_val = ws.cell(row=row_idx, column=col_idx).value
            if cell_val is not None:
                max_len = max(max_len, len(str(cell_val)))
        ws.column_dimensions[ws.cell(row=1, column=col_idx).column_letter].width = min(max_len + 4, 30)

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
