# =============================================================================
# pages/4_Register.py
# =============================================================================
# PURPOSE:
#   Add new records:
#   - كفيل جديد: a sponsor (gets the next legacy number automatically)
#   - كفالة جديدة: a case, optionally linked to a sponsor right away
#   - المناطق والفريق: areas and team operators
# =============================================================================

import streamlit as st

import config
from database import (
    init_db,
    load_areas,
    load_operators,
    load_sponsors,
    create_area,
    create_operator,
    register_sponsor,
    register_case,
)
from utils.auth import require_auth
from utils.styling import apply_minimal_style

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title=f"تسجيل - {config.APP_TITLE}",
    page_icon=config.PAGE_ICON,
    layout=config.LAYOUT,
)

apply_minimal_style()
require_auth()
init_db()

st.title("تسجيل جديد")
st.caption("إضافة كفيل أو كفالة جديدة")

areas_df = load_areas()
operators_df = load_operators()
sponsors_df = load_sponsors()

area_names = {int(row['area_id']): row['name'] for _, row in areas_df.iterrows()}
operator_names = {int(row['operator_id']): row['name'] for _, row in operators_df.iterrows()}
sponsor_names = {int(row['sponsor_id']): row['name'] for _, row in sponsors_df.iterrows()}

NEEDS_LABELS = {"LOW": "منخفض", "MEDIUM": "متوسط", "HIGH": "عالي", "CRITICAL": "حرج"}

tab_sponsor, tab_case, tab_setup = st.tabs(["كفيل جديد", "كفالة جديدة", "المناطق والفريق"])

# =============================================================================
# NEW SPONSOR
# =============================================================================
with tab_sponsor:
    st.write("### تسجيل كفيل جديد")

    with st.form("new_sponsor", clear_on_submit=True):
        name = st.text_input("اسم الكفيل *", placeholder="الاسم بالكامل")
        phone = st.text_input("رقم الموبايل", placeholder="01xxxxxxxxx")
        ipn_address = st.text_input("عنوان InstaPay (IPN)", placeholder="الاسم أو الرقم المسجّل في إنستاباي")

        col1, col2 = st.columns(2)
        with col1:
            responsible = st.selectbox(
                "المسئول",
                options=[None] + list(operator_names.keys()),
                format_func=lambda op: operator_names.get(op, "اختر..."),
            )
        with col2:
            paid_through = st.selectbox(
                "يدفع من خلال (اختياري)",
                options=[None] + list(sponsor_names.keys()),
                format_func=lambda sp: sponsor_names.get(sp, "—"),
            )

        frequency = st.selectbox(
            "دورية الدفع",
            options=list(config.PAYMENT_FREQUENCIES.keys()),
            format_func=lambda f: config.PAYMENT_FREQUENCIES[f],
        )
        notes = st.text_area("ملاحظات", placeholder="اختياري...", height=68)

        submitted = st.form_submit_button("✓ تسجيل الكفيل", type="primary", use_container_width=True)

    if submitted:
        if not name.strip():
            st.error("اسم الكفيل مطلوب")
        else:
            sponsor_id = register_sponsor(
                name,
                phone=phone,
                ipn_address=ipn_address,
                responsible_operator_id=responsible,
                paid_through_sponsor_id=paid_through,
                payment_frequency=frequency,
                notes=notes,
            )
            if sponsor_id is None:
                st.error("خطأ: تعذر تسجيل الكفيل")
            else:
                st.success(f"تم تسجيل الكفيل: {name.strip()}")

# =============================================================================
# NEW CASE
# =============================================================================
with tab_case:
    st.write("### تسجيل كفالة جديدة")

    if not area_names:
        st.warning("أضف منطقة أولاً من تبويب المناطق والفريق")

    with st.form("new_case", clear_on_submit=True):
        child_name = st.text_input("اسم الطفل *", placeholder="اسم الطفل")
        guardian_name = st.text_input("اسم العائل", placeholder="اسم ولي الأمر")

        col1, col2, col3 = st.columns(3)
        with col1:
            area_id = st.selectbox(
                "الموقع *",
                options=list(area_names.keys()),
                index=None,
                format_func=lambda a: area_names[a],
                placeholder="اختر...",
            )
        with col2:
            case_type = st.selectbox(
                "نوع الحالة",
                options=list(config.CASE_TYPES.keys()),
                format_func=lambda t: config.CASE_TYPES[t],
            )
        with col3:
            needs_level = st.selectbox(
                "مستوى الاحتياج",
                options=config.NEEDS_LEVELS,
                index=config.NEEDS_LEVELS.index("MEDIUM"),
                format_func=lambda n: NEEDS_LABELS.get(n, n),
            )

        col1, col2 = st.columns(2)
        with col1:
            is_medical = st.checkbox("حالة مرضية")
        with col2:
            has_students = st.checkbox("يوجد طلاب")

        school_year = st.text_input("السنة الدراسية", placeholder="مثل: ثالثة إعدادي")

        st.write("---")
        col1, col2 = st.columns([2, 1])
        with col1:
            sponsor_id = st.selectbox(
                "ربط بكفيل (اختياري)",
                options=list(sponsor_names.keys()),
                index=None,
                format_func=lambda sp: sponsor_names[sp],
                placeholder="ابحث عن الكفيل...",
            )
        with col2:
            fixed_amount = st.number_input("المبلغ الشهري الثابت", min_value=0.0, step=50.0)

        additional_info = st.text_area("بيانات إضافية", placeholder="اختياري...", height=68)

        submitted_case = st.form_submit_button("✓ تسجيل الكفالة", type="primary", use_container_width=True)

    if submitted_case:
        if not child_name.strip() or area_id is None:
            st.error("اسم الطفل والموقع مطلوبان")
        else:
            case_id, errors = register_case(
                {
                    "child_name": child_name.strip(),
                    "guardian_name": guardian_name.strip() or None,
                    "area_id": area_id,
                    "case_type": case_type,
                    "needs_level": needs_level,
                    "is_medical_case": 1 if is_medical else 0,
                    "has_students": 1 if has_students else 0,
                    "school_year": school_year.strip() or None,
                    "additional_info": additional_info.strip() or None,
                    "status": "active",
                },
                sponsor_id=sponsor_id,
                fixed_amount=fixed_amount,
            )
            if case_id is None:
                st.error("خطأ: " + "، ".join(errors))
            else:
                st.success(f"تم تسجيل كفالة: {child_name.strip()}")
                for error in errors:
                    st.warning(error)

# =============================================================================
# AREAS & TEAM
# =============================================================================
with tab_setup:
    col_areas, col_team = st.columns(2)

    with col_areas:
        st.write("### المناطق")
        for name in area_names.values():
            st.write(f"- {name}")

        with st.form("new_area", clear_on_submit=True):
            area_name = st.text_input("منطقة جديدة")
            if st.form_submit_button("إضافة منطقة"):
                if area_name.strip() and create_area(area_name) is not None:
                    st.rerun()
                else:
                    st.error("تعذر إضافة المنطقة (الاسم فارغ أو مكرر)")

    with col_team:
        st.write("### الفريق")
        for name in operator_names.values():
            st.write(f"- {name}")

        with st.form("new_operator", clear_on_submit=True):
            operator_name = st.text_input("عضو جديد")
            if st.form_submit_button("إضافة عضو"):
                if operator_name.strip() and create_operator(operator_name) is not None:
                    st.rerun()
                else:
                    st.error("تعذر إضافة العضو (الاسم فارغ أو مكرر)")
