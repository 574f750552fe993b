# =============================================================================
# pages/3_Collect.py
# =============================================================================
# PURPOSE:
#   Record a single payment from a sponsor.
#
# TWO MODES:
#   📸 Screenshot - upload an Instapay screenshot; the OCR service reads the
#                   sender and the amount, we match the sender to a sponsor
#                   and pre-fill the form. Always reviewed before saving.
#   ✏️ Manual     - pick the sponsor and type the amount
#
# SPLITTING THE AMOUNT:
#   Up to the sponsor's monthly obligation the money counts as كفالات
#   (fixed); anything above goes to صدقات. The operator can move money
#   into زيادات (extras) by hand. A warning shows when the three portions
#   don't add up to the amount.
#
# ADVANCE PAYMENTS:
#   A sponsor can prepay 6 / 12 / N months. The following months are then
#   recorded as paid automatically (see database.workflows.save_collection).
# =============================================================================

import streamlit as st
import pandas as pd

import config
from database import (
    init_db,
    load_sponsors,
    load_sponsorships,
    load_operators,
    save_collection,
)
from utils.auth import require_auth
from utils.calculations import split_payment, portions_mismatch
from utils.months import month_options, current_month, format_month
from utils.ocr import extract_payment_fields, build_extraction, OcrError
from utils.styling import apply_minimal_style, fmt_amount

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title=f"تسجيل دفعة - {config.APP_TITLE}",
    page_icon=config.PAGE_ICON,
    layout=config.LAYOUT,
)

apply_minimal_style()
require_auth()
init_db()

OCR_KEY = "collect_ocr"
DONE_KEY = "collect_done"

st.title("تسجيل تحصيل")
st.caption("تسجيل دفعة جديدة")

# -----------------------------------------------------------------------------
# SUCCESS SCREEN
# -----------------------------------------------------------------------------
done = st.session_state.get(DONE_KEY)
if done:
    st.success(f"تم الحفظ بنجاح! تم تسجيل {fmt_amount(done['amount'])} من {done['name']}")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("تسجيل دفعة أخرى", type="primary", use_container_width=True):
            st.session_state.pop(DONE_KEY, None)
            st.session_state.pop(OCR_KEY, None)
            st.rerun()
    with col2:
        if st.button("الرئيسية", use_container_width=True):
            st.session_state.pop(DONE_KEY, None)
            st.switch_page("pages/1_Dashboard.py")
    st.stop()

# -----------------------------------------------------------------------------
# LOAD DATA
# -----------------------------------------------------------------------------
sponsors_df = load_sponsors()
operators_df = load_operators()

if len(sponsors_df) == 0:
    st.info("لا يوجد كفلاء بعد. سجل كفيلاً من صفحة التسجيل.")
    st.stop()

sponsor_labels = {}
for _, row in sponsors_df.iterrows():
    label = row['name']
    if pd.notna(row['legacy_id']):
        label += f"  #{int(row['legacy_id'])}"
    sponsor_labels[int(row['sponsor_id'])] = label

sponsor_names = {int(row['sponsor_id']): row['name'] for _, row in sponsors_df.iterrows()}
operator_names = {int(row['operator_id']): row['name'] for _, row in operators_df.iterrows()}

months = month_options(count=24)
month_values = [value for value, _ in months]
month_labels = dict(months)


def sponsor_picker(key, default_id=None):
    """Searchable sponsor selectbox. Returns the sponsor_id or None."""
    ids = list(sponsor_labels.keys())
    index = ids.index(default_id) if default_id in ids else None
    return st.selectbox(
        "الكفيل",
        options=ids,
        index=index,
        format_func=lambda sponsor_id: sponsor_labels[sponsor_id],
        placeholder="ابحث عن اسم الكفيل...",
        key=key,
    )


def show_cases(sponsor_id):
    """List the sponsor's active cases and return the monthly obligation."""
    sships = load_sponsorships(sponsor_id=sponsor_id)
    obligation = float(sships['fixed_amount'].sum()) if len(sships) > 0 else 0.0

    if len(sships) > 0:
        st.caption(f"الحالات ({len(sships)}):")
        for _, sh in sships.iterrows():
            col_case, col_amount = st.columns([3, 1])
            with col_case:
                st.write(f"{sh['child_name']}  📍 {sh['area_name'] or '—'}")
            with col_amount:
                st.write(fmt_amount(sh['fixed_amount']))
        st.write(f"**الالتزام الشهري: {fmt_amount(obligation)}**")

    return obligation


def payment_form(prefix, sponsor_id, obligation, default_amount, method=None, ocr_raw=None):
    """
    Amount, split, advance and payment details, then the save button.

    PARAMETERS:
        prefix (str): Widget key prefix (one per mode)
        method (str): Fixed payment method (screenshots are always
                      instapay); None shows a selectbox
        ocr_raw (dict): OCR result stored with the collection
    """
    st.write("#### المبلغ")
    amount = st.number_input(
        "المبلغ الإجمالي",
        min_value=0.0,
        value=float(default_amount or 0),
        step=50.0,
        key=f"{prefix}_amount_{sponsor_id}",
    )

    # Re-split whenever the amount or the sponsor changes
    split = split_payment(amount, obligation)
    split_key = f"{prefix}_{sponsor_id}_{amount}"

    col1, col2, col3 = st.columns(3)
    with col1:
        fixed = st.number_input("كفالات", min_value=0.0, value=split['fixed'], step=50.0, key=f"fixed_{split_key}")
    with col2:
        extra = st.number_input("زيادات", min_value=0.0, value=split['extra'], step=50.0, key=f"extra_{split_key}")
    with col3:
        sadaqat = st.number_input("صدقات", min_value=0.0, value=split['sadaqat'], step=50.0, key=f"sadaqat_{split_key}")

    if portions_mismatch(amount, fixed, extra, sadaqat):
        st.warning("⚠️ المجموع لا يتطابق")

    # -------------------------------------------------------------------------
    # Payment details
    # -------------------------------------------------------------------------
    st.write("#### تفاصيل الدفعة")
    col1, col2, col3 = st.columns(3)

    this_month = current_month()
    with col1:
        month = st.selectbox(
            "الشهر",
            options=month_values,
            index=month_values.index(this_month) if this_month in month_values else 0,
            format_func=lambda v: month_labels[v],
            key=f"{prefix}_month",
        )
    with col2:
        if method is None:
            method = st.selectbox(
                "طريقة الدفع",
                options=list(config.PAYMENT_METHODS.keys()),
                format_func=lambda m: config.PAYMENT_METHODS[m],
                key=f"{prefix}_method",
            )
        else:
            st.text_input("طريقة الدفع", value=config.PAYMENT_METHODS.get(method, method), disabled=True, key=f"{prefix}_method_fixed")
    with col3:
        operator_id = st.selectbox(
            "استلمها",
            options=[None] + list(operator_names.keys()),
            format_func=lambda op: operator_names.get(op, "—"),
            key=f"{prefix}_operator",
        )

    # -------------------------------------------------------------------------
    # Advance panel
    # -------------------------------------------------------------------------
    advance_type = st.selectbox(
        "نوع الدفعة",
        options=list(config.ADVANCE_TYPES.keys()),
        format_func=lambda t: config.ADVANCE_TYPE_LABELS[t],
        key=f"{prefix}_advance_type",
    )
    advance_months = config.ADVANCE_TYPES[advance_type]
    if advance_type == "months_in_advance":
        advance_months = st.number_input(
            "عدد الشهور", min_value=2, max_value=24, value=2, step=1, key=f"{prefix}_advance_months"
        )
    if advance_months > 1:
        st.info(f"💡 سيتم تسجيل الكفيل كـ«مدفوع» لمدة {advance_months} شهر بدءاً من {format_month(month)}")

    notes = st.text_area("ملاحظات", placeholder="ملاحظات اختيارية...", height=68, key=f"{prefix}_notes")

    if st.button("✓ حفظ التحصيل", type="primary", use_container_width=True,
                 disabled=amount <= 0, key=f"{prefix}_save"):
        collection_id = save_collection(
            sponsor_id,
            amount,
            fixed,
            extra,
            sadaqat,
            month,
            operator_id=operator_id,
            method=method,
            notes=notes,
            ocr_raw=ocr_raw,
            sponsor_name=sponsor_names.get(sponsor_id, ""),
            advance_type=advance_type,
            advance_months=int(advance_months),
        )
        if collection_id is None:
            st.error("خطأ: تعذر حفظ التحصيل")
        else:
            st.session_state[DONE_KEY] = {'amount': amount, 'name': sponsor_names.get(sponsor_id, "")}
            st.session_state.pop(OCR_KEY, None)
            st.rerun()


# -----------------------------------------------------------------------------
# MODE
# -----------------------------------------------------------------------------
mode = st.radio(
    "كيف تريد تسجيل الدفعة؟",
    options=["screenshot", "manual"],
    format_func=lambda m: "📸 رفع سكرين شوت" if m == "screenshot" else "✏️ إدخال يدوي",
    horizontal=True,
)

st.write("---")

# =============================================================================
# MANUAL MODE
# =============================================================================
if mode == "manual":
    st.write("#### ١. اختر الكفيل")
    sponsor_id = sponsor_picker("manual_sponsor")

    if sponsor_id is not None:
        obligation = show_cases(sponsor_id)
        payment_form("manual", sponsor_id, obligation, default_amount=obligation)

# =============================================================================
# SCREENSHOT MODE
# =============================================================================
else:
    uploaded = st.file_uploader("ارفع صورة إنستاباي", type=["png", "jpg", "jpeg", "webp"])
    st.caption("PNG, JPG - سكرين شوت إنستاباي")

    if uploaded is None:
        st.session_state.pop(OCR_KEY, None)
        st.stop()

    extraction = st.session_state.get(OCR_KEY)
    if extraction and extraction.get('file') != uploaded.name:
        extraction = None

    if extraction is None:
        st.image(uploaded, use_container_width=True)
    else:
        st.image(uploaded, width=240)

    if extraction is None:
        if st.button("🔍 اقرأ البيانات", type="primary", use_container_width=True):
            with st.spinner("جاري القراءة..."):
                try:
                    fields = extract_payment_fields(uploaded.getvalue(), uploaded.type)
                    extraction = build_extraction(fields, sponsors_df)
                    extraction['file'] = uploaded.name
                    st.session_state[OCR_KEY] = extraction
                    st.rerun()
                except OcrError as e:
                    st.error(f"فشل في قراءة الصورة: {e}")
        st.stop()

    st.success("✅ تم استخراج البيانات - راجع وعدّل قبل الحفظ")

    st.write("#### البيانات المستخرجة")
    col1, col2 = st.columns(2)
    with col1:
        sender_name = st.text_input("اسم المرسل", value=extraction['sender_name'])
        bank = st.text_input("البنك", value=str(extraction['bank']))
    with col2:
        st.text_input("المستلم", value=str(extraction['recipient']))
        reference = st.text_input("رقم المرجع", value=str(extraction['reference']))

    matched = extraction.get('matched_sponsor')
    matched_id = int(matched['sponsor_id']) if matched else None
    if matched:
        st.caption(f"✓ تم التعرف على الكفيل: {matched['name']}")
    else:
        st.caption("لم يتم التعرف على الكفيل - اختره يدوياً")

    sponsor_id = sponsor_picker("ocr_sponsor", default_id=matched_id)

    if sponsor_id is not None:
        obligation = show_cases(sponsor_id)
        ocr_raw = {
            key: value for key, value in extraction.items()
            if key not in ('matched_sponsor', 'file')
        }
        ocr_raw.update({'sender_name': sender_name, 'bank': bank, 'reference': reference})
        payment_form(
            "ocr",
            sponsor_id,
            obligation,
            default_amount=extraction['amount'],
            method="instapay",
            ocr_raw=ocr_raw,
        )
