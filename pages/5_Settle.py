# =============================================================================
# pages/5_Settle.py
# =============================================================================
# PURPOSE:
#   The monthly settlement (تسوية الشهر). One pass per area:
#
#   1. المنطقة والشهر - pick an area (or "يدوي" for an empty table) and one
#                      of the last three months
#   2. الكفالات       - one row per active sponsorship in the area:
#                      change the fixed amount (permanent), add a one-time
#                      extra for this month, untick rows to leave them out.
#                      Existing sponsorships from other areas can be added,
#                      and brand-new cases can be created on the spot.
#   3. الصدقات        - hand out the month's sadaqat inflow to cases or
#                      external recipients
#   4. التقارير       - open the printable report of each area
#
# STATE:
#   Everything lives in st.session_state under the settle_* keys so the
#   table survives reruns until it is saved.
# =============================================================================

import streamlit as st
import pandas as pd

import config
from database import (
    init_db,
    load_areas,
    load_cases,
    load_operators,
    load_sponsorships,
    load_adjustments,
    load_sadaqat_entries,
    delete_sadaqat_entry,
    save_settlement_rows,
    create_case_with_sponsorship,
    add_sadaqat_outflow,
)
from utils.auth import require_auth
from utils.calculations import (
    build_settlement_rows,
    settlement_row,
    settlement_totals,
    sadaqat_allocation,
)
from utils.months import last_n_months, format_month
from utils.styling import apply_minimal_style, fmt_amount

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title=f"تسوية الشهر - {config.APP_TITLE}",
    page_icon=config.PAGE_ICON,
    layout=config.LAYOUT,
)

apply_minimal_style()
require_auth()
init_db()

STEP_KEY = "settle_step"
AREA_KEY = "settle_area"
MONTH_KEY = "settle_month"
ROWS_KEY = "settle_rows"
VERSION_KEY = "settle_editor_version"

MANUAL_AREA = {"area_id": None, "name": "يدوي"}

STEPS = [("table", "١ الكفالات"), ("sadaqat", "٢ الصدقات"), ("reports", "٣ التقارير")]

step = st.session_state.get(STEP_KEY, "area")


def go_to(next_step):
    st.session_state[STEP_KEY] = next_step
    st.rerun()


def reset_settlement():
    for key in (STEP_KEY, AREA_KEY, MONTH_KEY, ROWS_KEY, VERSION_KEY):
        st.session_state.pop(key, None)


def bump_editor():
    """Force the data editor to rebuild from the session rows."""
    st.session_state[VERSION_KEY] = st.session_state.get(VERSION_KEY, 0) + 1


def load_table_rows(sponsorship_ids=None):
    """
    Settlement rows as stored for the chosen area and month, plus the given
    sponsorships (rows added to the table from elsewhere, or the whole
    manual table, which has no area).
    """
    area = st.session_state[AREA_KEY]
    month = st.session_state[MONTH_KEY]
    sponsorships_df = load_sponsorships(active_cases_only=True)
    if len(sponsorships_df) == 0:
        return []

    keep = sponsorships_df['sponsorship_id'].isin(sponsorship_ids or [])
    if area['area_id'] is not None:
        keep = keep | (sponsorships_df['area_id'] == area['area_id'])
    sponsorships_df = sponsorships_df[keep]

    case_ids = [int(c) for c in sponsorships_df['case_id'].unique()] if len(sponsorships_df) > 0 else []
    adjustments_df = load_adjustments(
        month=month,
        adjustment_type=config.ADJUSTMENT_ONE_TIME_EXTRA,
        case_ids=case_ids,
    )
    return build_settlement_rows(sponsorships_df, adjustments_df)


st.title("تسوية الشهر")

# =============================================================================
# STEP 1: AREA & MONTH
# =============================================================================
if step == "area":
    st.caption("اختر المنطقة والشهر للبدء")

    areas_df = load_areas()
    area_choices = [
        {"area_id": int(row['area_id']), "name": row['name']}
        for _, row in areas_df.iterrows()
    ] + [MANUAL_AREA]

    months = last_n_months(3)
    chosen_month = st.session_state.get(MONTH_KEY, months[-1])

    st.write("#### الشهر")
    month_cols = st.columns(len(months))
    for col, month in zip(month_cols, months):
        with col:
            if st.button(
                format_month(month),
                type="primary" if month == chosen_month else "secondary",
                use_container_width=True,
                key=f"settle_month_{month}",
            ):
                st.session_state[MONTH_KEY] = month
                st.rerun()

    st.write("#### المنطقة")
    area_cols = st.columns(3)
    for i, area in enumerate(area_choices):
        with area_cols[i % 3]:
            label = f"📍 {area['name']}" if area['area_id'] is not None else "✏️ إدخال يدوي"
            if st.button(label, use_container_width=True, key=f"settle_area_{area['area_id']}"):
                st.session_state[AREA_KEY] = area
                st.session_state[MONTH_KEY] = chosen_month
                st.session_state.pop(ROWS_KEY, None)
                bump_editor()
                go_to("table")

    st.stop()

# -----------------------------------------------------------------------------
# Header shared by the later steps
# -----------------------------------------------------------------------------
area = st.session_state.get(AREA_KEY, MANUAL_AREA)
month = st.session_state.get(MONTH_KEY, last_n_months(1)[0])

col_info, col_change = st.columns([4, 1])
with col_info:
    st.caption(f"📍 {area['name']} · {format_month(month)}")
with col_change:
    if st.button("تغيير", use_container_width=True):
        reset_settlement()
        st.rerun()

step_cols = st.columns(len(STEPS))
for col, (key, label) in zip(step_cols, STEPS):
    with col:
        if key == step:
            st.markdown(f"**{label}**")
        else:
            st.markdown(f"<span style='color:#999'>{label}</span>", unsafe_allow_html=True)

st.write("---")

operators_df = load_operators()
operator_by_id = {int(row['operator_id']): row['name'] for _, row in operators_df.iterrows()}
operator_names = list(operator_by_id.values())

# =============================================================================
# STEP 2: SETTLEMENT TABLE
# =============================================================================
if step == "table":
    if ROWS_KEY not in st.session_state:
        st.session_state[ROWS_KEY] = load_table_rows()

    rows = st.session_state[ROWS_KEY]
    version = st.session_state.get(VERSION_KEY, 0)

    # -------------------------------------------------------------------------
    # Add to the table
    # -------------------------------------------------------------------------
    with st.expander("➕ إضافة كفالة"):
        tab_existing, tab_new = st.tabs(["كفالة موجودة", "حالة جديدة"])

        with tab_existing:
            in_table = {r['sponsorship_id'] for r in rows}
            all_sponsorships = load_sponsorships(active_cases_only=True)
            available = {}
            for _, sp in all_sponsorships.iterrows():
                sponsorship_id = int(sp['sponsorship_id'])
                if sponsorship_id in in_table:
                    continue
                label = sp['child_name'] or "—"
                if pd.notna(sp['guardian_name']) and sp['guardian_name']:
                    label += f" ({sp['guardian_name']})"
                label += f" · {sp['sponsor_name'] or '—'} · {fmt_amount(sp['fixed_amount'])}"
                available[sponsorship_id] = (label, sp)

            picked = st.selectbox(
                "ابحث باسم الطفل أو الكفيل",
                options=list(available.keys()),
                index=None,
                format_func=lambda sid: available[sid][0],
                placeholder="ابحث...",
                key=f"settle_pick_{version}",
            )
            if st.button("إضافة للجدول", disabled=picked is None, key="settle_add_existing"):
                rows.append(settlement_row(available[picked][1]))
                bump_editor()
                st.rerun()

        with tab_new:
            with st.form("settle_new_case", clear_on_submit=True):
                col1, col2 = st.columns(2)
                with col1:
                    new_child = st.text_input("اسم الطفل *")
                    new_sponsor = st.text_input("اسم الكفيل *", help="يُربط بكفيل موجود بنفس الاسم إن وجد")
                    new_case_type = st.selectbox(
                        "نوع الحالة",
                        options=list(config.CASE_TYPES.keys()),
                        format_func=lambda t: config.CASE_TYPES[t],
                    )
                with col2:
                    new_guardian = st.text_input("اسم العائل")
                    new_fixed = st.number_input("المبلغ الشهري *", min_value=0.0, step=50.0)

                create_clicked = st.form_submit_button("إنشاء وإضافة", type="primary")

            if create_clicked:
                result, error = create_case_with_sponsorship(
                    new_child,
                    new_sponsor,
                    new_fixed,
                    guardian_name=new_guardian,
                    area_id=area['area_id'],
                    case_type=new_case_type,
                )
                if error:
                    st.error(error)
                else:
                    rows.append(settlement_row({
                        **result,
                        'area_id': area['area_id'],
                        'child_name': new_child.strip(),
                        'guardian_name': new_guardian.strip() or None,
                        'sponsor_name': new_sponsor.strip(),
                        'fixed_amount': new_fixed,
                    }))
                    bump_editor()
                    st.rerun()

    if not rows:
        st.info("الجدول فارغ. أضف كفالات من الأعلى.")
    else:
        all_included = all(r['included'] for r in rows)
        if st.checkbox("تحديد الكل", value=all_included, key=f"settle_all_{version}_{all_included}") != all_included:
            for r in rows:
                r['included'] = not all_included
            bump_editor()
            st.rerun()

        editor_df = pd.DataFrame({
            "مشمول": [r['included'] for r in rows],
            "الطفل": [r['child_name'] for r in rows],
            "العائل": [r['guardian_name'] or "" for r in rows],
            "الكفيل": [r['sponsor_name'] for r in rows],
            "الثابت": [r['new_fixed'] for r in rows],
            "زيادة الشهر": [r['new_extras'] for r in rows],
            "تم التحصيل": [r['collected'] for r in rows],
            "المستلم": [r['received_by'] or "" for r in rows],
        })

        edited = st.data_editor(
            editor_df,
            use_container_width=True,
            hide_index=True,
            num_rows="fixed",
            column_config={
                "مشمول": st.column_config.CheckboxColumn(width="small"),
                "الثابت": st.column_config.NumberColumn(min_value=0, step=50, format="%.0f"),
                "زيادة الشهر": st.column_config.NumberColumn(min_value=0, step=50, format="%.0f"),
                "تم التحصيل": st.column_config.CheckboxColumn(width="small"),
                "المستلم": st.column_config.SelectboxColumn(options=[""] + operator_names),
            },
            disabled=["الطفل", "العائل", "الكفيل"],
            key=f"settle_editor_{version}",
        )

        # Copy the edits back into the session rows
        for r, (_, e) in zip(rows, edited.iterrows()):
            r['included'] = bool(e["مشمول"])
            r['new_fixed'] = float(e["الثابت"] or 0)
            r['new_extras'] = float(e["زيادة الشهر"] or 0)
            r['collected'] = bool(e["تم التحصيل"])
            r['received_by'] = e["المستلم"] or None

        changed = [r for r in rows if r['new_fixed'] != r['fixed'] or r['new_extras'] != r['extras']]
        if changed:
            st.caption(f"✏️ {len(changed)} تعديل لم يُحفظ بعد")

        totals = settlement_totals(rows)
        col1, col2, col3, col4 = st.columns(4)
        with col1:
            st.metric("الحالات", totals['count'])
        with col2:
            st.metric("الثابت", fmt_amount(totals['fixed']))
        with col3:
            st.metric("الزيادات", fmt_amount(totals['extras']))
        with col4:
            st.metric("الإجمالي", fmt_amount(totals['total']))

    st.write("---")
    col_back, col_next = st.columns(2)
    with col_back:
        if st.button("← السابق", use_container_width=True):
            reset_settlement()
            st.rerun()
    with col_next:
        if st.button("حفظ ومتابعة →", type="primary", use_container_width=True):
            with st.spinner("جاري الحفظ..."):
                errors = save_settlement_rows(rows, month)
            if errors:
                st.session_state["settle_errors"] = errors
            # Going back shows what is stored now, not the edits just saved
            st.session_state[ROWS_KEY] = load_table_rows([r['sponsorship_id'] for r in rows])
            bump_editor()
            go_to("sadaqat")

# =============================================================================
# STEP 3: SADAQAT ALLOCATION
# =============================================================================
elif step == "sadaqat":
    errors = st.session_state.pop("settle_errors", None)
    if errors:
        st.error("حدثت بعض الأخطاء أثناء حفظ الجدول:")
        for error in errors:
            st.write(f"- {error}")

    inflow_df = load_sadaqat_entries(month=month, transaction_type=config.SADAQAT_INFLOW)
    outflow_df = load_sadaqat_entries(month=month, transaction_type=config.SADAQAT_OUTFLOW)
    month_inflow = float(inflow_df['amount'].sum()) if len(inflow_df) > 0 else 0.0
    allocated = float(outflow_df['amount'].sum()) if len(outflow_df) > 0 else 0.0
    allocation = sadaqat_allocation(month_inflow, allocated)

    st.write(f"### توزيع صدقات {format_month(month)}")
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("وارد الشهر", fmt_amount(month_inflow))
    with col2:
        st.metric("تم توزيعه", fmt_amount(allocated))
    with col3:
        st.metric("المتبقي", fmt_amount(allocation['remaining']))

    if allocation['fully_allocated']:
        st.success("تم توزيع صدقات الشهر بالكامل ✓")

    # -------------------------------------------------------------------------
    # New allocation
    # -------------------------------------------------------------------------
    st.write("#### إضافة صرف")
    entry_type = st.radio(
        "الجهة",
        options=["kafalah", "external"],
        format_func=lambda t: "حالة مسجلة" if t == "kafalah" else "جهة خارجية",
        horizontal=True,
    )

    selected_case = None
    recipient_name = recipient_detail = ""
    if entry_type == "kafalah":
        cases_df = load_cases()
        case_records = {int(c['case_id']): c for _, c in cases_df.iterrows()}

        def _case_label(case_id):
            case = case_records[case_id]
            label = case['child_name']
            if pd.notna(case['guardian_name']) and case['guardian_name']:
                label += f" ({case['guardian_name']})"
            return f"{label} — {case['area_name'] or '—'}"

        case_id = st.selectbox(
            "الحالة",
            options=list(case_records.keys()),
            index=None,
            format_func=_case_label,
            placeholder="ابحث بالاسم أو المنطقة...",
        )
        if case_id is not None:
            selected_case = case_records[case_id].to_dict()
    else:
        col1, col2 = st.columns(2)
        with col1:
            recipient_name = st.text_input("اسم المستفيد *")
        with col2:
            recipient_detail = st.text_input("التفاصيل", placeholder="مثل: مصاريف علاج")

    col1, col2 = st.columns(2)
    with col1:
        amount = st.number_input("المبلغ", min_value=0.0, step=50.0)
    with col2:
        received_by = st.selectbox(
            "المستلم",
            options=[None] + list(operator_by_id.keys()),
            format_func=lambda op: operator_by_id.get(op, "— اختر —"),
        )
    reason = st.text_input("ملاحظات", placeholder="اختياري...")

    if sadaqat_allocation(month_inflow, allocated, amount)['over_allocated']:
        st.warning(f"⚠️ المبلغ أكبر من المتبقي ({fmt_amount(allocation['remaining'])})")

    can_add = amount > 0 and (entry_type == "kafalah" or recipient_name.strip())
    if st.button("➕ إضافة", type="primary", disabled=not can_add):
        entry_id = add_sadaqat_outflow(
            month,
            amount,
            case=selected_case,
            recipient_name=recipient_name,
            recipient_detail=recipient_detail,
            reason=reason,
            approved_by=received_by,
        )
        if entry_id is None:
            st.error("خطأ: تعذر تسجيل الصرف")
        else:
            st.rerun()

    # -------------------------------------------------------------------------
    # This month's allocations
    # -------------------------------------------------------------------------
    if len(outflow_df) > 0:
        st.write("#### صرف الشهر")
        for _, entry in outflow_df.iterrows():
            col_text, col_amount, col_delete = st.columns([4, 1, 1])
            with col_text:
                text = entry['destination_description'] or entry['reason'] or "—"
                if pd.notna(entry['approved_by']):
                    text += f" · استلمها {operator_by_id.get(int(entry['approved_by']), '—')}"
                st.write(text)
            with col_amount:
                st.write(fmt_amount(entry['amount']))
            with col_delete:
                if st.button("حذف", key=f"settle_del_{int(entry['entry_id'])}"):
                    delete_sadaqat_entry(int(entry['entry_id']))
                    st.rerun()

    st.write("---")
    col_back, col_next = st.columns(2)
    with col_back:
        if st.button("← السابق", use_container_width=True):
            go_to("table")
    with col_next:
        if st.button("التالي →", type="primary", use_container_width=True):
            go_to("reports")

# =============================================================================
# STEP 4: REPORTS
# =============================================================================
else:
    st.write("### إصدار التقارير")
    st.caption(f"كشوف الصرف الشهرية لكل منطقة · {format_month(month)}")

    areas_df = load_areas()
    for _, row in areas_df.iterrows():
        if st.button(f"📄 كشف {row['name']}", use_container_width=True, key=f"settle_report_{int(row['area_id'])}"):
            st.session_state["report_area"] = int(row['area_id'])
            st.session_state["report_month"] = month
            st.switch_page("pages/7_Report.py")

    st.write("---")
    col_back, col_done = st.columns(2)
    with col_back:
        if st.button("← السابق", use_container_width=True):
            go_to("sadaqat")
    with col_done:
        if st.button("إنهاء ✓", type="primary", use_container_width=True):
            reset_settlement()
            st.rerun()
