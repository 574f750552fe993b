"""
Shared styling for the right-to-left Arabic design across all pages
"""
import streamlit as st

from config import CURRENCY_LABEL
from utils.sidebar_nav import inject_sidebar_nav


def fmt_amount(value, currency=True):
    """1500.0 → "1,500 ج" (no decimals unless there are piasters)."""
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        number = 0.0
    text = f"{number:,.0f}" if number == int(number) else f"{number:,.2f}"
    return f"{text} {CURRENCY_LABEL}" if currency else text


def apply_minimal_style():
    """Apply the RTL clean design CSS and the sidebar navigation."""
    inject_sidebar_nav()
    st.markdown("""
    <style>
        @import url('https://fonts.googleapis.com/css2?family=IBM+Plex+Sans+Arabic:wght@400;600;700&display=swap');

        html, body, [class*="css"], .stMarkdown, .stTextInput, .stSelectbox, .stNumberInput {
            font-family: 'IBM Plex Sans Arabic', sans-serif;
        }

        .main .block-container {
            direction: rtl;
            text-align: right;
            max-width: 1100px;
            padding-top: 2.5rem;
        }

        h1 {
            font-size: 2.4rem;
            font-weight: 700;
            color: #1F5E4B;
            margin-bottom: 0.25rem;
        }

        h3 {
            font-size: 1.2rem;
            font-weight: 600;
            color: #1a1a1a;
            margin-top: 2rem;
            margin-bottom: 1rem;
        }

        .stCaption {
            color: #6b6b6b;
            font-size: 0.9rem;
        }

        .stButton > button {
            background-color: #1F5E4B;
            color: white;
            border: none;
            border-radius: 6px;
            padding: 0.6rem 1.5rem;
            font-weight: 600;
        }

        .stButton > button:hover {
            background-color: #174836;
            color: white;
        }

        [data-testid="stMetricValue"] {
            direction: ltr;
            text-align: right;
        }

        hr {
            border: none;
            border-top: 1px solid #e5e5e5;
            margin: 2.5rem 0;
        }

        .stProgress > div > div > div {
            background-color: #1F5E4B;
        }
    </style>
    """, unsafe_allow_html=True)


def apply_print_style():
    """Hide everything but the report when the browser prints the page."""
    st.markdown("""
    <style>
        .report-table { width: 100%; border-collapse: collapse; direction: rtl; }
        .report-table th, .report-table td { border: 1px solid #333; padding: 6px 10px; }
        .report-table th { background: #f0f0f0; }
        .report-table tfoot td { font-weight: 700; }

        @media print {
            header, footer, .no-print, .stButton,
            [data-testid="stToolbar"], [data-testid="stHeader"], [data-testid="stDecoration"] {
                display: none !important;
            }
            .main .block-container { padding: 0 !important; max-width: 100% !important; }
        }
    </style>
    """, unsafe_allow_html=True)
