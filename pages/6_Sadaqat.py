# =============================================================================
# pages/6_Sadaqat.py
# =============================================================================
# PURPOSE:
#   The sadaqat fund (صندوق الصدقات): general donations that are not part of
#   a fixed sponsorship.
#
# TABS:
#   الحركات - inflows / outflows of the selected month, grouped by month
#   إضافة   - record a donation (وارد) or a payout (صادر)
#   تقرير   - totals per cause, printable
#
# BALANCE:
#   The "الرصيد الكلي" card is always the all-time balance; only the
#   inflow / outflow cards follow the month filter.
# =============================================================================

import streamlit as st
import streamlit.components.v1 as components
import pandas as pd

import config
from database import (
    init_db,
    load_cases,
    load_sadaqat_entries,
    create_sadaqat_entry,
    delete_sadaqat_entry,
)
from utils.auth import require_auth
from utils.calculations import sadaqat_summary, sadaqat_by_cause, sadaqat_by_month, cause_label
from utils.months import month_options, current_month, format_month
from utils.styling import apply_minimal_style, apply_print_style, fmt_amount

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title=f"الصدقات - {config.APP_TITLE}",
    page_icon=config.PAGE_ICON,
    layout=config.LAYOUT,
)

apply_minimal_style()
apply_print_style()
require_auth()
init_db()

st.title("صندوق الصدقات")

options = month_options(count=24, include_all=True)
values = [value for value, _ in options]
labels = dict(options)
this_month = current_month()

selected_month = st.selectbox(
    "الشهر",
    options=values,
    index=values.index(this_month) if this_month in values else 0,
    format_func=lambda v: labels[v],
)

# -----------------------------------------------------------------------------
# LOAD DATA
# -----------------------------------------------------------------------------
# Always load everything: the balance is cumulative
all_entries = load_sadaqat_entries()
summary = sadaqat_summary(all_entries, selected_month)

if selected_month == config.ALL_MONTHS or len(all_entries) == 0:
    filtered = all_entries
else:
    filtered = all_entries[all_entries['month_year'] == selected_month]

cases_df = load_cases()
case_names = {int(row['case_id']): row['child_name'] for _, row in cases_df.iterrows()}

# -----------------------------------------------------------------------------
# SUMMARY CARDS
# -----------------------------------------------------------------------------
col1, col2, col3 = st.columns(3)
with col1:
    st.metric("📈 وارد", fmt_amount(summary['inflow']))
with col2:
    st.metric("📉 صادر", fmt_amount(summary['outflow']))
with col3:
    st.metric("الرصيد الكلي", fmt_amount(summary['balance']))

tab_entries, tab_add, tab_report = st.tabs(["الحركات", "إضافة", "تقرير"])


def _entry_title(entry, transaction_type):
    if transaction_type == config.SADAQAT_INFLOW:
        return entry['donor_name'] if pd.notna(entry['donor_name']) and entry['donor_name'] else "متبرع"
    if pd.notna(entry['destination_description']) and entry['destination_description']:
        return entry['destination_description']
    if pd.notna(entry['destination_case_id']):
        return case_names.get(int(entry['destination_case_id']), "—")
    return "—"


# =============================================================================
# ENTRIES
# =============================================================================
with tab_entries:
    inflow_count = int((filtered['transaction_type'] == config.SADAQAT_INFLOW).sum()) if len(filtered) > 0 else 0
    outflow_count = len(filtered) - inflow_count

    view = st.radio(
        "العرض",
        options=[config.SADAQAT_INFLOW, config.SADAQAT_OUTFLOW],
        format_func=lambda t: f"⬇️ الوارد ({inflow_count})" if t == config.SADAQAT_INFLOW
        else f"⬆️ الصادر ({outflow_count})",
        horizontal=True,
        label_visibility="collapsed",
    )

    current = filtered[filtered['transaction_type'] == view] if len(filtered) > 0 else filtered
    groups = sadaqat_by_month(current)

    if not groups:
        st.info("لا توجد حركات في هذه الفترة")

    sign = "+" if view == config.SADAQAT_INFLOW else "−"
    for group in groups:
        if selected_month == config.ALL_MONTHS:
            st.write(f"**{format_month(group['month'])} · {fmt_amount(group['total'])}**")

        for _, entry in group['entries'].iterrows():
            col_text, col_amount, col_delete = st.columns([5, 2, 1])
            with col_text:
                st.write(f"**{_entry_title(entry, view)}**")
                caption = cause_label(entry['destination_type'])
                if view == config.SADAQAT_OUTFLOW and pd.notna(entry['case_child_name']) and entry['case_child_name']:
                    caption += f" · الحالة: {entry['case_child_name']}"
                st.caption(caption)
            with col_amount:
                st.write(f"{sign}{fmt_amount(entry['amount'])}")
            with col_delete:
                if st.button("🗑️", key=f"sadaqat_del_{int(entry['entry_id'])}"):
                    delete_sadaqat_entry(int(entry['entry_id']))
                    st.rerun()

# =============================================================================
# ADD
# =============================================================================
with tab_add:
    transaction_type = st.radio(
        "النوع",
        options=[config.SADAQAT_INFLOW, config.SADAQAT_OUTFLOW],
        format_func=lambda t: "⬇️ وارد (تبرع)" if t == config.SADAQAT_INFLOW else "⬆️ صادر (صرف)",
        horizontal=True,
    )

    month_values = [v for v in values if v != config.ALL_MONTHS]
    default_month = this_month if selected_month == config.ALL_MONTHS else selected_month

    with st.form("sadaqat_add", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            month = st.selectbox(
                "الشهر",
                options=month_values,
                index=month_values.index(default_month) if default_month in month_values else 0,
                format_func=lambda v: labels[v],
            )
        with col2:
            amount = st.number_input("المبلغ (ج) *", min_value=0.0, step=50.0)

        cause = st.selectbox("الوجهة / السبب *", options=config.SADAQAT_CAUSES, index=None, placeholder="اختر...")

        donor_name = description = ""
        if transaction_type == config.SADAQAT_INFLOW:
            donor_name = st.text_input("اسم المتبرع (اختياري)", placeholder="أو اتركه فارغاً")
        else:
            description = st.text_input("وصف الصرف (اختياري)", placeholder="تفاصيل الصرف...")

        case_id = st.selectbox(
            "ربط بحالة من الجدول (اختياري)",
            options=list(case_names.keys()),
            index=None,
            format_func=lambda c: case_names[c],
            placeholder="ابحث عن الحالة...",
        )
        notes = st.text_input("ملاحظات", placeholder="اختياري...")

        submitted = st.form_submit_button("✓ حفظ", type="primary", use_container_width=True)

    if submitted:
        if amount <= 0 or not cause:
            st.error("المبلغ والوجهة مطلوبان")
        else:
            entry_id = create_sadaqat_entry({
                "transaction_type": transaction_type,
                "amount": amount,
                "destination_type": cause,
                "donor_name": donor_name.strip() or None,
                "destination_description": (description.strip() or notes.strip()) or None,
                "destination_case_id": case_id,
                "month_year": month,
            })
            if entry_id is None:
                st.error("خطأ: تعذر الحفظ")
            else:
                st.success("تم الحفظ ✓")
                st.rerun()

# =============================================================================
# REPORT
# =============================================================================
with tab_report:
    st.write(f"### تقرير الصدقات · {format_month(selected_month)}")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("إجمالي الوارد", fmt_amount(summary['inflow']))
    with col2:
        st.metric("إجمالي الصادر", fmt_amount(summary['outflow']))
    with col3:
        st.metric("الصافي", fmt_amount(summary['net']))

    by_cause = sadaqat_by_cause(filtered)
    if by_cause:
        st.write("#### حسب الوجهة")
        st.dataframe(
            pd.DataFrame([
                {"الوجهة": row['cause'], "وارد": row['inflow'], "صادر": row['outflow']}
                for row in by_cause
            ]),
            use_container_width=True,
            hide_index=True,
            column_config={
                "وارد": st.column_config.NumberColumn(format="%.0f"),
                "صادر": st.column_config.NumberColumn(format="%.0f"),
            },
        )

        with st.expander("تفاصيل الحركات"):
            detail = filtered.copy()
            detail['النوع'] = detail['transaction_type'].map({
                config.SADAQAT_INFLOW: "وارد",
                config.SADAQAT_OUTFLOW: "صادر",
            })
            detail['الوجهة'] = detail['destination_type'].apply(cause_label)
            st.dataframe(
                detail[['month_year', 'النوع', 'الوجهة', 'donor_name', 'destination_description', 'amount']],
                use_container_width=True,
                hide_index=True,
            )
    else:
        st.info("لا توجد حركات في هذه الفترة")

    if st.button("🖨️ طباعة", use_container_width=True):
        components.html("<script>window.parent.print();</script>", height=0)
