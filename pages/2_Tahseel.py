# =============================================================================
# pages/2_Tahseel.py
# =============================================================================
# PURPOSE:
#   The monthly collection round (تحصيل). Operators go through the sponsors
#   who still owe money for the month and record what they collected.
#
# FLOW:
#   1. Pick the month → sponsors with something outstanding are listed
#      (obligation = fixed pledges + this month's one-time extras)
#   2. Tick the sponsors who paid, adjust the amount if they paid a
#      different sum, and set who received the money
#   3. Review: totals grouped by operator
#   4. Save: each ticked sponsor's collections for the month are replaced
#      by one cash collection
# =============================================================================

import streamlit as st
import pandas as pd

import config
from database import (
    init_db,
    load_sponsorships,
    load_adjustments,
    load_collections,
    load_operators,
    record_cash_collections,
)
from utils.auth import require_auth
from utils.calculations import (
    calculate_sponsor_obligations,
    pending_sponsors,
    group_by_operator,
    replaced_collections,
)
from utils.months import month_options, current_month, format_month
from utils.styling import apply_minimal_style, fmt_amount

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title=f"التحصيل - {config.APP_TITLE}",
    page_icon=config.PAGE_ICON,
    layout=config.LAYOUT,
)

apply_minimal_style()
require_auth()
init_db()

# Session key holding the rows waiting for confirmation
CONFIRM_KEY = "tahseel_confirm"

# -----------------------------------------------------------------------------
# PAGE HEADER
# -----------------------------------------------------------------------------
st.title("التحصيل")
st.caption("تسجيل ما تم تحصيله من الكفلاء خلال الشهر")

options = month_options(count=24)
values = [value for value, _ in options]
labels = dict(options)
this_month = current_month()

month = st.selectbox(
    "الشهر",
    options=values,
    index=values.index(this_month) if this_month in values else 0,
    format_func=lambda v: labels[v],
)

# A pending confirmation belongs to the month it was prepared for
pending_confirm = st.session_state.get(CONFIRM_KEY)
if pending_confirm and pending_confirm['month'] != month:
    st.session_state.pop(CONFIRM_KEY, None)
    pending_confirm = None

# -----------------------------------------------------------------------------
# LOAD DATA
# -----------------------------------------------------------------------------
operators_df = load_operators()
operator_names = {int(row['operator_id']): row['name'] for _, row in operators_df.iterrows()}
operator_ids = {name: operator_id for operator_id, name in operator_names.items()}

obligations_df = calculate_sponsor_obligations(
    load_sponsorships(),
    load_adjustments(month=month, adjustment_type=config.ADJUSTMENT_ONE_TIME_EXTRA),
    load_collections(month=month),
)
pending_df = pending_sponsors(obligations_df)

# =============================================================================
# STEP 3-4: CONFIRMATION
# =============================================================================
if pending_confirm:
    rows = pending_confirm['rows']
    summary = group_by_operator(rows, operator_names)

    st.write(f"### تأكيد تحصيل {format_month(month)}")
    st.caption(f"{len(rows)} كفيل · الإجمالي {fmt_amount(summary['grand_total'])}")

    for operator in summary['operators']:
        with st.expander(f"{operator['name']} · {fmt_amount(operator['total'])}", expanded=True):
            for sponsor_name, amount in operator['sponsors']:
                st.write(f"- {sponsor_name}: {fmt_amount(amount)}")

    if summary['unassigned']:
        unassigned_total = sum(amount for _, amount in summary['unassigned'])
        with st.expander(f"بدون مستلم · {fmt_amount(unassigned_total)}", expanded=True):
            for sponsor_name, amount in summary['unassigned']:
                st.write(f"- {sponsor_name}: {fmt_amount(amount)}")

    replaced = replaced_collections(rows)
    if replaced:
        with st.expander(f"⚠️ سيتم استبدال ما سُجل سابقاً لـ {len(replaced)} كفيل", expanded=True):
            st.caption("الحفظ يحذف تحصيل الشهر السابق لهؤلاء الكفلاء ويبقي المبلغ الجديد فقط.")
            for sponsor_name, collected, amount in replaced:
                st.write(f"- {sponsor_name}: {fmt_amount(collected)} → {fmt_amount(amount)}")

    col_back, col_save = st.columns(2)

    with col_back:
        if st.button("← رجوع للتعديل", use_container_width=True):
            st.session_state.pop(CONFIRM_KEY, None)
            st.rerun()

    with col_save:
        if st.button("✅ تأكيد وحفظ", type="primary", use_container_width=True):
            with st.spinner("جاري الحفظ..."):
                errors = record_cash_collections(rows, month)

            st.session_state.pop(CONFIRM_KEY, None)
            if errors:
                st.error("حدثت أخطاء أثناء الحفظ:")
                for error in errors:
                    st.write(f"- {error}")
            else:
                st.success(f"تم حفظ تحصيل {len(rows)} كفيل")
                st.balloons()

    st.stop()

# =============================================================================
# STEP 1-2: PENDING SPONSORS
# =============================================================================
if len(pending_df) == 0:
    st.success(f"لا يوجد مبالغ متبقية في {format_month(month)} ✓")
    st.stop()

total_outstanding = float(pending_df['outstanding'].sum())

col1, col2 = st.columns(2)
with col1:
    st.metric("كفلاء متبقي عليهم", len(pending_df))
with col2:
    st.metric("إجمالي المتبقي", fmt_amount(total_outstanding))

st.write("---")

col_all, col_receiver = st.columns(2)
with col_all:
    select_all = st.checkbox("تحديد الكل", key=f"tahseel_all_{month}")
with col_receiver:
    global_receiver = st.selectbox(
        "المستلم لكل المحددين",
        options=[""] + list(operator_ids.keys()),
        format_func=lambda name: name or "— اختر —",
    )


def _cases_label(cases):
    parts = []
    for case in cases:
        label = case['child_name']
        if case.get('guardian_name'):
            label += f" ({case['guardian_name']})"
        parts.append(label)
    return "، ".join(parts)


editor_df = pd.DataFrame({
    "sponsor_id": pending_df['sponsor_id'],
    "تم": select_all,
    "الكفيل": pending_df['sponsor_name'],
    "الحالات": pending_df['cases'].apply(_cases_label),
    "الالتزام": pending_df['obligation'],
    "المحصل": pending_df['collected'],
    "المتبقي": pending_df['outstanding'],
    "المبلغ": pending_df['outstanding'],
    "المستلم": global_receiver or "",
})

edited = st.data_editor(
    editor_df,
    use_container_width=True,
    hide_index=True,
    num_rows="fixed",
    column_config={
        "sponsor_id": None,
        "تم": st.column_config.CheckboxColumn(width="small"),
        "الالتزام": st.column_config.NumberColumn(format="%.0f"),
        "المحصل": st.column_config.NumberColumn(format="%.0f"),
        "المتبقي": st.column_config.NumberColumn(format="%.0f"),
        "المبلغ": st.column_config.NumberColumn(min_value=0, step=50, format="%.0f"),
        "المستلم": st.column_config.SelectboxColumn(options=[""] + list(operator_ids.keys())),
    },
    disabled=["الكفيل", "الحالات", "الالتزام", "المحصل", "المتبقي"],
    key=f"tahseel_editor_{month}_{select_all}_{global_receiver}",
)

checked = edited[edited["تم"].fillna(False).astype(bool)]
fixed_by_sponsor = dict(zip(pending_df['sponsor_id'], pending_df['fixed']))

st.caption(f"محدد: {len(checked)} · الإجمالي {fmt_amount(checked['المبلغ'].fillna(0).sum())}")
st.caption("المبلغ يحل محل كل ما سُجل للكفيل في هذا الشهر. إذا كان المحصل أكبر من صفر فاكتب إجمالي الشهر.")

if st.button("مراجعة وتأكيد", type="primary", use_container_width=True, disabled=len(checked) == 0):
    rows = []
    for _, row in checked.iterrows():
        receiver = row["المستلم"] or global_receiver
        rows.append({
            'sponsor_id': int(row['sponsor_id']),
            'sponsor_name': row["الكفيل"],
            'fixed': float(fixed_by_sponsor.get(row['sponsor_id'], 0)),
            'collected': float(row["المحصل"] or 0),
            'amount': float(row["المبلغ"] or 0),
            'received_by': operator_ids.get(receiver),
            'checked': True,
        })
    st.session_state[CONFIRM_KEY] = {'month': month, 'rows': rows}
    st.rerun()
