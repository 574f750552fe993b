# =============================================================================
# app.py - MAIN ENTRY POINT
# =============================================================================
# PURPOSE:
#   This is the main entry point for the Streamlit application.
#   When you run `streamlit run app.py`, this file executes first.
#
# WHAT IT DOES:
#   1. Configures the Streamlit page (title, icon, layout)
#   2. Asks for the team password if the browser has no login cookie
#   3. Creates the database tables on first run
#   4. Redirects to the Dashboard page
#
# TO RUN THE APP:
#   Open terminal in this folder and run:
#   streamlit run app.py
#
#   Optional environment variables:
#   KHIDMA_DB_PATH     - where the SQLite file lives (default khidma.db)
#   KHIDMA_PASSWORD    - the shared team password
#   ANTHROPIC_API_KEY  - needed for reading payment screenshots
# =============================================================================

import streamlit as st

import config
from database import init_db
from utils.auth import require_auth
from utils.sidebar_nav import inject_sidebar_nav

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
# This MUST be the first Streamlit command in the script!
st.set_page_config(
    page_title=config.APP_TITLE,
    page_icon=config.PAGE_ICON,
    layout=config.LAYOUT,
)

# Sidebar style (collapsed icon bar) so it applies on every load
inject_sidebar_nav()

require_auth()
init_db()

# -----------------------------------------------------------------------------
# REDIRECT TO DASHBOARD
# -----------------------------------------------------------------------------
st.switch_page("pages/1_Dashboard.py")

# =============================================================================
# LEARNING NOTES: MULTI-PAGE STATE
# =============================================================================
#
# Streamlit re-runs the whole script on each interaction. The multi-step
# pages (التحصيل, تسوية الشهر, تسجيل دفعة) keep their progress in
# st.session_state under a page prefix:
#
#   st.session_state["settle_step"] = "sadaqat"
#   st.rerun()    → runs the page again, now showing the sadaqat step
#
# Nothing is written to the database until the step's save button is
# pressed, so leaving a page half-way loses nothing but the edits.
#
# =============================================================================
