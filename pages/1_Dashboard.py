# =============================================================================
# pages/1_Dashboard.py
# =============================================================================
# PURPOSE:
#   The main dashboard - gives an overview of the month at a glance.
#   This is the "home" page users see when they open the app.
#
# WHAT IT SHOWS (one tab each):
#   - Overview: active sponsors, monthly obligation, collected, sadaqat,
#     disbursement per area
#   - Sponsor balances: obligation / paid / status per sponsor, plus the
#     sponsors who paid in advance
#   - Sadaqat fund: inflows and outflows grouped by month
#   - Monthly distribution: what each area receives
#
# MONTH SELECTOR:
#   Defaults to the working month (next month during the last days of the
#   current one). "كل الوقت" shows cumulative figures.
# =============================================================================

import streamlit as st
import pandas as pd

import config
from database import (
    init_db,
    load_sponsors,
    load_sponsorships,
    load_collections,
    load_sadaqat_entries,
    load_advance_payments,
    load_disbursements,
)
from utils.auth import require_auth
from utils.calculations import (
    sponsor_balances,
    area_breakdown,
    counted_collections,
    effective_collected,
    sadaqat_summary,
    sadaqat_by_month,
)
from utils.months import month_options, working_month, format_month
from utils.styling import apply_minimal_style, fmt_amount

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title=f"الرئيسية - {config.APP_TITLE}",
    page_icon=config.PAGE_ICON,
    layout=config.LAYOUT,
)

apply_minimal_style()
require_auth()

# This creates tables if they don't exist.
# Safe to call every time - it won't delete existing data.
init_db()

# -----------------------------------------------------------------------------
# PAGE HEADER + MONTH SELECTOR
# -----------------------------------------------------------------------------
col_title, col_month = st.columns([3, 1])

with col_title:
    st.title(config.APP_TITLE)
    st.caption(config.APP_SUBTITLE)

options = month_options(count=24, include_all=True, ahead=1)
values = [value for value, _ in options]
labels = dict(options)
default_month = working_month()

with col_month:
    month = st.selectbox(
        "الشهر",
        options=values,
        index=values.index(default_month) if default_month in values else 0,
        format_func=lambda v: labels[v],
    )

# -----------------------------------------------------------------------------
# LOAD ALL DATA
# -----------------------------------------------------------------------------
# Real sponsors only: the virtual sadaqat account never counts as a sponsor.
sponsors_df = load_sponsors(exclude_sadaqat=True)
sponsorships_df = load_sponsorships(active_cases_only=True)
if len(sponsorships_df) > 0 and len(sponsors_df) > 0:
    sponsorships_df = sponsorships_df[sponsorships_df['sponsor_id'].isin(sponsors_df['sponsor_id'])]

collections_df = load_collections(month=month) if month != config.ALL_MONTHS else pd.DataFrame()
sadaqat_df = load_sadaqat_entries()
advances_df = load_advance_payments()
disbursements_df = load_disbursements(month=month) if month != config.ALL_MONTHS else pd.DataFrame()

balances_df = sponsor_balances(sponsors_df, sponsorships_df, collections_df)
areas_df = area_breakdown(sponsorships_df, disbursements_df)
sadaqat = sadaqat_summary(sadaqat_df, month)

total_obligation = float(balances_df['obligation'].sum()) if len(balances_df) > 0 else 0.0
counted = counted_collections(collections_df)
total_collected = float(counted['amount'].sum()) if len(counted) > 0 else 0.0
collected = effective_collected(month, total_obligation, total_collected)
total_disbursement = float(areas_df['total'].sum()) if len(areas_df) > 0 else 0.0

tab_overview, tab_sponsors, tab_sadaqat, tab_areas = st.tabs(
    ["نظرة عامة", "أرصدة الكفلاء", "صندوق الصدقات", "التوزيع الشهري"]
)

# =============================================================================
# OVERVIEW
# =============================================================================
with tab_overview:
    st.write(f"### تسوية {format_month(month, arabic_digits=True)}")

    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric("الكفلاء النشطين", len(balances_df))

    with col2:
        st.metric("الالتزام الشهري", fmt_amount(total_obligation))

    with col3:
        if month == config.ALL_MONTHS:
            st.metric("صندوق الصدقات", fmt_amount(sadaqat['balance']), help="رصيد متاح")
        else:
            st.metric(
                "صدقات الشهر",
                fmt_amount(sadaqat['net']),
                help=f"الرصيد المتراكم: {fmt_amount(sadaqat['balance'])}",
            )

    with col4:
        st.metric("إجمالي التوزيع", fmt_amount(total_disbursement))

    # Collection progress only makes sense for a single month
    if month != config.ALL_MONTHS and total_obligation > 0:
        st.write("---")
        st.write("### التحصيل")
        st.caption(f"تم تحصيل {fmt_amount(collected)} من {fmt_amount(total_obligation)}")
        st.progress(min(collected / total_obligation, 1.0))

        if len(balances_df) > 0:
            status_counts = balances_df['status'].value_counts()
            col1, col2, col3 = st.columns(3)
            for col, status in zip((col1, col2, col3), ("paid", "partial", "unpaid")):
                with col:
                    st.metric(config.PAYMENT_STATUS_LABELS[status], int(status_counts.get(status, 0)))

    # -------------------------------------------------------------------------
    # Sadaqat summary
    # -------------------------------------------------------------------------
    st.write("---")
    st.write("### 💰 صندوق الصدقات")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("الوارد", fmt_amount(sadaqat['inflow']))
    with col2:
        st.metric("المنصرف", fmt_amount(sadaqat['outflow']))
    with col3:
        st.metric("الرصيد الحالي", fmt_amount(sadaqat['balance']))

    # -------------------------------------------------------------------------
    # Areas
    # -------------------------------------------------------------------------
    st.write("---")
    st.write("### 🏘️ التوزيع حسب الموقع")

    if len(areas_df) == 0:
        st.info("لا توجد كفالات نشطة بعد. سجل الحالات من صفحة التسجيل.")
    else:
        for _, area in areas_df.iterrows():
            col_name, col_total = st.columns([3, 1])
            with col_name:
                st.write(f"**{area['area_name']}**")
                st.caption(f"{area['cases']} حالة")
            with col_total:
                st.write(f"**{fmt_amount(area['total'])}**")
            st.progress(min(area['total'] / total_disbursement, 1.0) if total_disbursement else 0.0)

# =============================================================================
# SPONSOR BALANCES
# =============================================================================
with tab_sponsors:
    st.write("### أرصدة الكفلاء")
    st.caption("الالتزام الشهري لكل كفيل وعدد الحالات")

    col_search, col_sort = st.columns([3, 1])
    with col_search:
        search = st.text_input("بحث بالاسم", placeholder="بحث بالاسم...", label_visibility="collapsed")
    with col_sort:
        sort_by = st.selectbox(
            "ترتيب",
            options=["obligation", "name", "cases"],
            format_func=lambda v: {"obligation": "ترتيب: الالتزام", "name": "ترتيب: الاسم", "cases": "ترتيب: عدد الحالات"}[v],
            label_visibility="collapsed",
        )

    filtered = balances_df
    if search and len(filtered) > 0:
        filtered = filtered[
            filtered['name'].str.contains(search, regex=False, na=False)
            | filtered['paid_through'].str.contains(search, regex=False, na=False)
        ]

    if len(filtered) > 0:
        if sort_by == "obligation":
            filtered = filtered.sort_values('obligation', ascending=False)
        elif sort_by == "name":
            filtered = filtered.sort_values('name')
        else:
            filtered = filtered.sort_values('case_count', ascending=False)

        display_df = pd.DataFrame({
            "#": filtered['legacy_id'],
            "الكفيل": filtered['name'],
            "يدفع من خلال": filtered['paid_through'],
            "المسئول": filtered['responsible'],
            "الحالات": filtered['case_count'],
            "الالتزام الشهري": filtered['obligation'].apply(fmt_amount),
        })
        if month != config.ALL_MONTHS:
            display_df["المدفوع"] = filtered['paid'].apply(fmt_amount)
            display_df["الحالة"] = filtered['status'].map(config.PAYMENT_STATUS_LABELS)

        st.dataframe(display_df, use_container_width=True, hide_index=True, height=520)
        st.caption(f"عرض {len(filtered)} كفيل · إجمالي: {fmt_amount(filtered['obligation'].sum())}")
    else:
        st.info("لا يوجد كفلاء مطابقين")

    # -------------------------------------------------------------------------
    # Advance payments
    # -------------------------------------------------------------------------
    active_advances = advances_df
    if len(active_advances) > 0:
        active_advances = active_advances[active_advances['status'] == 'active']

    if len(active_advances) > 0:
        st.write("---")
        st.write("### 📅 مدفوعات مقدمة")
        st.caption("كفلاء دفعوا مقدماً - سنوي / نصف سنوي")

        st.dataframe(
            pd.DataFrame({
                "الطفل": active_advances['child_name'].fillna("—"),
                "الكفيل": active_advances['sponsor_name'],
                "النوع": active_advances['payment_type'].map(
                    lambda t: config.ADVANCE_PAYMENT_TYPE_LABELS.get(t, t)
                ),
                "مدفوع حتى": active_advances['paid_until'].astype(str).str.split("T").str[0],
            }),
            use_container_width=True,
            hide_index=True,
        )

# =============================================================================
# SADAQAT FUND
# =============================================================================
with tab_sadaqat:
    st.write("### صندوق الصدقات")
    st.caption("رصيد الصدقات المتراكم والحركات")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("إجمالي الوارد", fmt_amount(sadaqat['inflow']))
    with col2:
        st.metric("إجمالي المنصرف", fmt_amount(sadaqat['outflow']))
    with col3:
        st.metric("الرصيد", fmt_amount(sadaqat['balance']))

    view = st.radio(
        "عرض",
        options=[config.SADAQAT_INFLOW, config.SADAQAT_OUTFLOW],
        format_func=lambda v: "⬇️ الوارد" if v == config.SADAQAT_INFLOW else "⬆️ المنصرف",
        horizontal=True,
        label_visibility="collapsed",
    )

    current = sadaqat_df
    if len(current) > 0:
        current = current[current['transaction_type'] == view]
        if month != config.ALL_MONTHS:
            current = current[current['month_year'] == month]

    groups = sadaqat_by_month(current)
    if not groups:
        st.info("لا توجد حركات")

    for group in groups:
        with st.expander(f"{format_month(group['month'])} · {fmt_amount(group['total'])}", expanded=True):
            for _, entry in group['entries'].iterrows():
                who = entry['donor_name'] if view == config.SADAQAT_INFLOW else entry['destination_description']
                if pd.isna(who) or not who:
                    who = entry['reason'] if pd.notna(entry['reason']) and entry['reason'] else "—"
                col_who, col_amount = st.columns([3, 1])
                with col_who:
                    st.write(who)
                with col_amount:
                    st.write(f"**{fmt_amount(entry['amount'])}**")

# =============================================================================
# MONTHLY DISTRIBUTION
# =============================================================================
with tab_areas:
    st.write("### التوزيع الشهري")
    if len(disbursements_df) > 0:
        st.caption("حسب تسوية الشهر المحفوظة")
    else:
        st.caption("حسب الكفالات الحالية")

    if len(areas_df) > 0:
        st.dataframe(
            pd.DataFrame({
                "المنطقة": areas_df['area_name'],
                "الحالات": areas_df['cases'],
                "الثابت": areas_df['fixed'].apply(fmt_amount),
                "الزيادات": areas_df['extras'].apply(fmt_amount),
                "الإجمالي": areas_df['total'].apply(fmt_amount),
            }),
            use_container_width=True,
            hide_index=True,
        )

        st.write("#### 📋 ملخص التسوية")
        st.write(f"إجمالي الالتزام الشهري: {fmt_amount(total_obligation)}")
        st.write(f"**إجمالي التوزيع المطلوب: {fmt_amount(total_disbursement)}**")
    else:
        st.info("لا توجد بيانات توزيع")


# =============================================================================
# LEARNING NOTES: TABS
# =============================================================================
#
# st.tabs() renders every tab on every run. The data is loaded once at the
# top and each tab only slices it, so switching tabs costs nothing extra.
#
# =============================================================================
