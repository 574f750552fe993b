"""
Sidebar navigation for the Khidma pages.
Pages are grouped by when the team uses them (daily round, month end, setup).
The built-in Streamlit page list is hidden; buttons switch pages instead.
"""
import streamlit as st

import config
from utils.auth import logout
from utils.months import working_month, format_month

SIDEBAR_BG = "#1F5E4B"

# Lucide-style outline SVG icons (24x24, stroke 2, no fill)
ICONS_SVG = {
    "home": '<path d="M3 9l9-7 9 7v11a2 2 0 0 1-2 2H5a2 2 0 0 1-2-2z"/><polyline points="9 22 9 12 15 12 15 22"/>',
    "coins": '<circle cx="8" cy="8" r="6"/><path d="M18.09 10.37A6 6 0 1 1 10.34 18"/><path d="M7 6h1v4"/>',
    "camera": '<path d="M23 19a2 2 0 0 1-2 2H3a2 2 0 0 1-2-2V8a2 2 0 0 1 2-2h4l2-3h6l2 3h4a2 2 0 0 1 2 2z"/><circle cx="12" cy="13" r="4"/>',
    "user-plus": '<path d="M16 21v-2a4 4 0 0 0-4-4H5a4 4 0 0 0-4 4v2"/><circle cx="8.5" cy="7" r="4"/><line x1="20" y1="8" x2="20" y2="14"/><line x1="23" y1="11" x2="17" y2="11"/>',
    "clipboard-check": '<path d="M16 4h2a2 2 0 0 1 2 2v14a2 2 0 0 1-2 2H6a2 2 0 0 1-2-2V6a2 2 0 0 1 2-2h2"/><rect x="8" y="2" width="8" height="4" rx="1"/><path d="m9 14 2 2 4-4"/>',
    "heart": '<path d="M20.84 4.61a5.5 5.5 0 0 0-7.78 0L12 5.67l-1.06-1.06a5.5 5.5 0 0 0-7.78 7.78l1.06 1.06L12 21.23l7.78-7.78 1.06-1.06a5.5 5.5 0 0 0 0-7.78z"/>',
    "printer": '<polyline points="6 9 6 2 18 2 18 9"/><path d="M6 18H4a2 2 0 0 1-2-2v-5a2 2 0 0 1 2-2h16a2 2 0 0 1 2 2v5a2 2 0 0 1-2 2h-2"/><rect x="6" y="14" width="12" height="8"/>',
    "upload": '<path d="M21 15v4a2 2 0 0 1-2 2H5a2 2 0 0 1-2-2v-4"/><polyline points="17 8 12 3 7 8"/><line x1="12" y1="3" x2="12" y2="15"/>',
}

# (section title, [(icon key, label, page path)]) - ASCII paths for st.switch_page
NAV_SECTIONS = [
    ("", [
        ("home", "الرئيسية", "pages/1_Dashboard.py"),
    ]),
    ("التحصيل اليومي", [
        ("coins", "التحصيل", "pages/2_Tahseel.py"),
        ("camera", "تسجيل دفعة", "pages/3_Collect.py"),
    ]),
    ("نهاية الشهر", [
        ("clipboard-check", "تسوية الشهر", "pages/5_Settle.py"),
        ("printer", "التقارير", "pages/7_Report.py"),
        ("heart", "الصدقات", "pages/6_Sadaqat.py"),
    ]),
    ("الإعداد", [
        ("user-plus", "تسجيل", "pages/4_Register.py"),
        ("upload", "استيراد", "pages/8_Import.py"),
    ]),
]


def svg_icon(name, size=20):
    path = ICONS_SVG.get(name, ICONS_SVG["home"])
    return (f'<svg xmlns="http://www.w3.org/2000/svg" width="{size}" height="{size}" viewBox="0 0 24 24" '
            f'fill="none" stroke="currentColor" stroke-width="2" stroke-linecap="round" '
            f'stroke-linejoin="round">{path}</svg>')


def get_sidebar_css():
    return f"""
<style>
    [data-testid="stSidebar"] {{
        background-color: {SIDEBAR_BG} !important;
        min-width: 230px !important;
        max-width: 230px !important;
        direction: rtl;
    }}

    /* Our own buttons replace the default page list */
    [data-testid="stSidebarNav"] {{
        display: none !important;
    }}

    [data-testid="stSidebar"] .nav-brand {{
        color: white;
        font-size: 1.6rem;
        font-weight: 700;
        text-align: right;
        margin-bottom: 0.1rem;
    }}

    [data-testid="stSidebar"] .nav-month {{
        color: rgba(255,255,255,0.75);
        font-size: 0.85rem;
        text-align: right;
        margin-bottom: 1rem;
    }}

    [data-testid="stSidebar"] .nav-section {{
        color: rgba(255,255,255,0.55);
        font-size: 0.75rem;
        text-align: right;
        margin: 0.9rem 0 0.2rem 0;
    }}

    [data-testid="stSidebar"] .nav-icon-wrap {{
        display: flex;
        justify-content: center;
        padding-top: 10px;
        color: rgba(255,255,255,0.85);
    }}

    [data-testid="stSidebar"] .stButton > button {{
        width: 100%;
        background: transparent !important;
        border: none !important;
        color: white !important;
        justify-content: flex-end !important;
        direction: rtl;
        min-height: 40px;
    }}

    [data-testid="stSidebar"] .stButton > button:hover {{
        background-color: rgba(255,255,255,0.12) !important;
    }}

    @media print {{
        [data-testid="stSidebar"] {{ display: none !important; }}
    }}
</style>
"""


# Session key for deferred navigation (st.switch_page is a no-op inside callbacks)
NAV_TARGET_KEY = "nav_target"


def _go(path):
    st.session_state[NAV_TARGET_KEY] = path


def inject_sidebar_nav():
    """
    Render the sidebar: app name, the month the team is working on, the
    grouped page buttons and a logout button.

    A button click only stores the target page; the switch happens at the
    top of the next run.
    """
    target = st.session_state.pop(NAV_TARGET_KEY, None)
    if target:
        st.switch_page(target)
        return

    st.markdown(get_sidebar_css(), unsafe_allow_html=True)

    with st.sidebar:
        st.markdown(f'<div class="nav-brand">{config.PAGE_ICON} {config.APP_TITLE}</div>', unsafe_allow_html=True)
        st.markdown(
            f'<div class="nav-month">شهر العمل: {format_month(working_month())}</div>',
            unsafe_allow_html=True,
        )

        for section, pages in NAV_SECTIONS:
            if section:
                st.markdown(f'<div class="nav-section">{section}</div>', unsafe_allow_html=True)
            for icon_key, label, path in pages:
                col_link, col_icon = st.columns([4, 1], gap="small")
                with col_link:
                    st.button(label, key=f"nav_{path}", use_container_width=True, on_click=_go, args=(path,))
                with col_icon:
                    st.markdown(f'<div class="nav-icon-wrap">{svg_icon(icon_key)}</div>', unsafe_allow_html=True)

        st.markdown("<div style='height: 1.5rem'></div>", unsafe_allow_html=True)
        st.button("خروج", key="nav_logout", use_container_width=True, on_click=logout)
