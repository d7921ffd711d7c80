"""Streamlit pages and their session state helpers."""
