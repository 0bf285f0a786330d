"""Dashboard entry point: ``streamlit run quiz_dash.py``."""

from config.logging_setup import setup_logging
from config.settings import load_settings
from dashboard.ui import run_dashboard

if __name__ == "__main__":
    setup_logging(load_settings().log_level)
    run_dashboard()
