# =============================================================================
# pages/8_Import.py
# =============================================================================
# PURPOSE:
#   Bring historical data over from the old Google Sheets.
#
# TABS:
#   تحصيلات - payment history CSV (see importers/collections_importer.py)
#   كفلاء / حالات - already migrated, kept as a notice
#
# COLLECTIONS FLOW:
#   1. Upload the CSV
#   2. Map the CSV columns to name / amount / month
#   3. Preview the first rows with the matched sponsor
#   4. Import: rows with a match, an amount and a month are inserted
# =============================================================================

import streamlit as st
import pandas as pd

import config
from database import init_db, load_sponsors
from importers import CollectionsImporter
from utils.auth import require_auth
from utils.styling import apply_minimal_style, fmt_amount

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title=f"استيراد - {config.APP_TITLE}",
    page_icon=config.PAGE_ICON,
    layout=config.LAYOUT,
)

apply_minimal_style()
require_auth()
init_db()

PREVIEW_KEY = "import_preview"
PREVIEW_ROWS = 20

st.title("استيراد البيانات")
st.caption("نقل البيانات من Google Sheets")

tab_collections, tab_sponsors, tab_cases = st.tabs(["📄 تحصيلات", "👥 كفلاء", "❤️ حالات"])

# =============================================================================
# COLLECTIONS
# =============================================================================
with tab_collections:
    with st.expander("الصيغة المتوقعة", expanded=False):
        st.code("""
الكفيل,المبلغ,الشهر
محمد أحمد,1500,2026-01
سارة علي,"2,000",2026-01
        """, language="csv")
        st.caption("الشهر بصيغة YYYY-MM. أسماء الأعمدة تُحدد في الخطوة التالية. استيراد نفس الملف مرتين يكرر السجلات.")

    uploaded = st.file_uploader(
        "ارفع ملف CSV من Google Sheets",
        type=["csv"],
        key="collections_upload",
        help="تحصيل الكفالات، يحتوي على: اسم الكفيل، المبلغ، الشهر",
    )

    if uploaded is None:
        st.session_state.pop(PREVIEW_KEY, None)
    else:
        uploaded.seek(0)
        importer = CollectionsImporter(uploaded)

        if importer.errors:
            st.error(importer.errors[0])
        elif importer.row_count == 0:
            st.warning("الملف فارغ")
        else:
            # -----------------------------------------------------------------
            # Column mapping
            # -----------------------------------------------------------------
            st.write("#### ربط الأعمدة")
            st.caption(f"{importer.row_count} صف · العناوين: {', '.join(importer.headers)}")

            headers = importer.headers
            col1, col2, col3 = st.columns(3)
            with col1:
                name_col = st.selectbox("اسم الكفيل", options=headers, index=None, placeholder="اختر...")
            with col2:
                amount_col = st.selectbox("المبلغ", options=headers, index=None, placeholder="اختر...")
            with col3:
                month_col = st.selectbox("الشهر (YYYY-MM)", options=headers, index=None, placeholder="اختر...")

            preview_limit = st.number_input(
                "عدد الصفوف للمعاينة والاستيراد",
                min_value=1,
                max_value=importer.row_count,
                value=min(PREVIEW_ROWS, importer.row_count),
                step=1,
                help="لا يُستورد إلا ما ظهر في المعاينة",
            )

            mapped = name_col and amount_col and month_col
            if st.button("معاينة", type="primary", disabled=not mapped):
                sponsors_df = load_sponsors()
                st.session_state[PREVIEW_KEY] = {
                    'file': uploaded.name,
                    'rows': importer.build_preview(
                        {"name": name_col, "amount": amount_col, "month": month_col},
                        sponsors_df,
                        limit=int(preview_limit),
                    ),
                }

            # -----------------------------------------------------------------
            # Preview & import
            # -----------------------------------------------------------------
            saved = st.session_state.get(PREVIEW_KEY)
            if saved and saved['file'] == uploaded.name:
                preview = saved['rows']
                ready_count = sum(1 for item in preview if item['ready'])

                st.write("#### المعاينة")
                st.caption(f"أول {len(preview)} صف · جاهز للاستيراد: {ready_count}")
                not_previewed = importer.row_count - len(preview)
                if not_previewed > 0:
                    st.warning(
                        f"{not_previewed} صف في الملف خارج المعاينة ولن يُستورد. "
                        "زد عدد الصفوف ثم اضغط معاينة لاستيرادها."
                    )

                st.dataframe(
                    pd.DataFrame([
                        {
                            "الصف": item['row'],
                            "الاسم في الملف": item['name'],
                            "الكفيل المطابق": item['match']['name'] if item['match'] else "—",
                            "المبلغ": fmt_amount(item['amount']),
                            "الشهر": item['month'],
                            "": "✓" if item['ready'] else "✗",
                        }
                        for item in preview
                    ]),
                    use_container_width=True,
                    hide_index=True,
                )

                if st.button(f"استيراد {ready_count} سجل", type="primary",
                             use_container_width=True, disabled=ready_count == 0):
                    with st.spinner("جاري الاستيراد..."):
                        success, message, count = importer.import_collections(preview)

                    st.session_state.pop(PREVIEW_KEY, None)
                    if success:
                        st.success(message)
                        st.balloons()
                    else:
                        st.error(message)

                    summary = importer.get_import_summary()
                    if summary['skipped_count'] > 0:
                        with st.expander(f"تم تجاهل {summary['skipped_count']} صف"):
                            for reason in summary['skipped']:
                                st.write(f"- {reason}")

# =============================================================================
# SPONSORS / CASES
# =============================================================================
with tab_sponsors:
    st.info("تم نقل الكفلاء بالفعل. لإضافة كفيل جديد استخدم صفحة التسجيل.")

with tab_cases:
    st.info("تم نقل الحالات بالفعل. لإضافة حالة جديدة استخدم صفحة التسجيل.")
