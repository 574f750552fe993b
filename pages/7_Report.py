# =============================================================================
# pages/7_Report.py
# =============================================================================
# PURPOSE:
#   The printable monthly disbursement report (كشف الصرف) of one area.
#
#   For every active case in the area:
#       fixed  = sum of its active sponsorships
#       extras = this month's one-time extras
#       total  = fixed + extras
#   Cases with a zero total are left out. The "Grand Total" row at the
#   bottom is the sum of the rows above it.
#
# PRINTING:
#   The print button calls the browser's print dialog (save as PDF from
#   there). The print CSS hides the sidebar and the controls.
#
# LINKS:
#   The settle page opens this page with the area and month already set.
#   ?area=<id>&month=YYYY-MM in the URL works too.
# =============================================================================

import html
from datetime import date

import streamlit as st
import streamlit.components.v1 as components

import config
from database import init_db, load_areas, load_cases, load_sponsorships, load_adjustments
from utils.auth import require_auth
from utils.calculations import build_area_report, report_totals
from utils.months import month_options, format_month, working_month
from utils.styling import apply_minimal_style, apply_print_style, fmt_amount

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title=f"التقارير - {config.APP_TITLE}",
    page_icon=config.PAGE_ICON,
    layout=config.LAYOUT,
)

apply_minimal_style()
apply_print_style()
require_auth()
init_db()

areas_df = load_areas()
if len(areas_df) == 0:
    st.info("لا توجد مناطق بعد.")
    st.stop()

area_names = {int(row['area_id']): row['name'] for _, row in areas_df.iterrows()}
area_ids = list(area_names.keys())

months = month_options(count=24, ahead=1)
month_values = [value for value, _ in months]
month_labels = dict(months)

# -----------------------------------------------------------------------------
# Defaults: settle page → URL → first area / working month
# -----------------------------------------------------------------------------
default_area = st.session_state.pop("report_area", None)
default_month = st.session_state.pop("report_month", None)

if default_area is None and st.query_params.get("area"):
    try:
        default_area = int(st.query_params["area"])
    except ValueError:
        default_area = None
if default_month is None:
    default_month = st.query_params.get("month")

if default_area not in area_ids:
    default_area = area_ids[0]
if default_month not in month_values:
    default_month = working_month() if working_month() in month_values else month_values[0]

# -----------------------------------------------------------------------------
# CONTROLS
# -----------------------------------------------------------------------------
st.markdown('<div class="no-print">', unsafe_allow_html=True)
col_area, col_month, col_print = st.columns([2, 2, 1])
with col_area:
    area_id = st.selectbox(
        "المنطقة",
        options=area_ids,
        index=area_ids.index(default_area),
        format_func=lambda a: area_names[a],
    )
with col_month:
    month = st.selectbox(
        "الشهر",
        options=month_values,
        index=month_values.index(default_month),
        format_func=lambda v: month_labels[v],
    )
with col_print:
    st.write("")
    if st.button("🖨️ طباعة / PDF", type="primary", use_container_width=True):
        components.html("<script>window.parent.print();</script>", height=0)
st.markdown('</div>', unsafe_allow_html=True)

st.query_params["area"] = str(area_id)
st.query_params["month"] = month

# -----------------------------------------------------------------------------
# BUILD THE REPORT
# -----------------------------------------------------------------------------
cases_df = load_cases(area_id=area_id)
case_ids = [int(c) for c in cases_df['case_id']] if len(cases_df) > 0 else []

if case_ids:
    sponsorships_df = load_sponsorships(area_id=area_id)
    adjustments_df = load_adjustments(
        month=month,
        adjustment_type=config.ADJUSTMENT_ONE_TIME_EXTRA,
        case_ids=case_ids,
    )
    rows = build_area_report(cases_df, sponsorships_df, adjustments_df)
else:
    rows = []

totals = report_totals(rows)
title = f"{area_names[area_id]} - {format_month(month, arabic_digits=True)}"

st.caption(f"{len(rows)} حالة")

if not rows:
    st.info("لا توجد حالات بمبالغ في هذه المنطقة")
    st.stop()


def _cell(value, blank_zero=False):
    if blank_zero and not value:
        return ""
    return fmt_amount(value, currency=False)


body = "".join(
    "<tr>"
    f"<td><b>{html.escape(r['name'])}</b></td>"
    f"<td>{html.escape(r['case_type'])}</td>"
    f"<td style='text-align:center'>{_cell(r['fixed'], blank_zero=True)}</td>"
    f"<td style='text-align:center'>{_cell(r['extras'])}</td>"
    f"<td style='text-align:center'><b>{_cell(r['total'])}</b></td>"
    "</tr>"
    for r in rows
)

st.markdown(f"""
<div style="text-align:center; margin: 1rem 0 1.5rem;">
    <span style="display:inline-block; border:2.5px solid #222; border-radius:6px;
                 padding:8px 48px; font-size:1.2rem; font-weight:800;">
        {html.escape(title)}
    </span>
</div>
<table class="report-table">
    <thead>
        <tr>
            <th>اسم العائل / الطالب / المستفيد</th>
            <th>نوع الحالة</th>
            <th>SUM of المبلغ</th>
            <th>SUM of زيادات</th>
            <th>SUM of اجمالي</th>
        </tr>
    </thead>
    <tbody>{body}</tbody>
    <tfoot>
        <tr>
            <td colspan="2">Grand Total</td>
            <td style="text-align:center">{_cell(totals['fixed'])}</td>
            <td style="text-align:center">{_cell(totals['extras'])}</td>
            <td style="text-align:center">{_cell(totals['total'])}</td>
        </tr>
    </tfoot>
</table>
""", unsafe_allow_html=True)

if totals['extras'] == 0:
    st.caption("ملاحظة: عمود الزيادات فارغ لأن تعديلات هذا الشهر لم تُدخل بعد عبر صفحة التسوية.")

st.caption(f"أُنتج هذا التقرير من نظام {config.APP_TITLE} - {date.today().isoformat()}")
