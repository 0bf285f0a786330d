"""
UI
==

This module implements the dashboard UI: a login gate followed by the
results view (indicators, charts, filters, paginated table, details).
"""

import pandas as pd
import plotly.express as px
import streamlit as st
from streamlit_autorefresh import st_autorefresh

from analytics.metrics import PASS_THRESHOLD, pass_percentage, results_to_frame, score_distribution
from config.settings import load_settings
from dashboard.data_management import (ITEMS_PER_PAGE, SCORE_RANGES, apply_filters, build_export_csv,
                                       check_credentials, detail_labels, export_filename,
                                       load_dashboard_data, page_after_filtering, page_numbers,
                                       paginate, total_pages)

DISTRIBUTION_COLORS = ["#ef4444", "#f97316", "#eab308", "#22c55e", "#059669"]


def initialize_session_state():
    """Initializes page config and session variables."""
    st.set_page_config(page_title="Maruti Quiz Dash", layout="wide")

    if 'authenticated' not in st.session_state:
        st.session_state.authenticated = False
    if 'dashboard_data' not in st.session_state:
        st.session_state.dashboard_data = None
    if 'current_page' not in st.session_state:
        st.session_state.current_page = 1
    if 'last_auto_refresh' not in st.session_state:
        st.session_state.last_auto_refresh = 0
    if 'active_filters' not in st.session_state:
        st.session_state.active_filters = None


def render_login(settings):
    st.title("🏭 Mechanical Trainee Assessment")
    st.subheader("Sign in to view results")

    with st.form("login_form"):
        username = st.text_input("Username")
        employee_id = st.text_input("Employee ID", type="password")
        submitted = st.form_submit_button("Login")

    if submitted:
        if check_credentials(username, employee_id, settings.dash_username, settings.dash_employee_id):
            st.session_state.authenticated = True
            st.session_state.dashboard_data = "loading"
            st.success("Login successful! Redirecting...")
            st.rerun()
        else:
            st.error("Invalid username or employee ID. Please check your credentials.")


def sync_with_api(settings):
    with st.status("Connecting to results API...", expanded=False) as status:
        data = load_dashboard_data(settings.api_urls, timeout=settings.fetch_timeout + 15)
        st.session_state.dashboard_data = data
        st.session_state.current_page = 1
        if data.is_sample:
            status.update(label="Unable to connect to server. Using sample data.", state="error")
        else:
            status.update(label=f"Loaded {data.total_responses} responses", state="complete")


def render_sidebar(data):
    with st.sidebar:
        st.title("📊 Quiz Results")
        if data is not None and not isinstance(data, str):
            if data.is_sample:
                st.warning("Using sample data")
                if data.error:
                    st.caption(data.error)
            else:
                st.success(f"Connected: {data.api_url}")
            st.caption(f"Last update: {data.loaded_at.strftime('%d/%m/%Y %H:%M:%S')}")

        st.divider()
        st.subheader("Update Settings")
        enable_auto_sync = st.checkbox("Enable Auto-sync", value=True)
        interval = st.slider("Interval (minutes)", 2, 10, 5, disabled=not enable_auto_sync)

        if enable_auto_sync:
            refresh_count = st_autorefresh(interval=interval * 60 * 1000, key="results_auto_sync")
            if refresh_count > st.session_state.last_auto_refresh:
                st.session_state.last_auto_refresh = refresh_count
                st.session_state.dashboard_data = "loading"

        if st.button("🔄 Refresh Now"):
            st.session_state.dashboard_data = "loading"
            st.rerun()

        st.divider()
        if st.button("🚪 Logout"):
            st.session_state.authenticated = False
            st.session_state.dashboard_data = None
            st.rerun()


def render_top_indicators(data):
    c1, c2, c3, c4, c5 = st.columns(5)
    c1.metric("Total Responses", data.total_responses)
    c2.metric(f"Passed (≥{PASS_THRESHOLD})", data.passed_count)
    c3.metric(f"Failed (<{PASS_THRESHOLD})", data.failed_count)
    c4.metric("Average Score", f"{data.average_score:.1f}")
    c5.metric("Pass Rate", f"{pass_percentage(data.passed_count, data.total_responses)}%")


def render_charts(df, data):
    column1, column2 = st.columns(2)

    with column1:
        distribution = score_distribution(df["Score"].tolist())
        fig = px.bar(
            x=list(distribution.keys()),
            y=list(distribution.values()),
            color=list(distribution.keys()),
            color_discrete_sequence=DISTRIBUTION_COLORS,
            labels={"x": "Score Range", "y": "Number of Candidates"},
            title="Score Distribution Analysis",
        )
        fig.update_layout(showlegend=False, yaxis=dict(dtick=1), height=320)
        st.plotly_chart(fig, width="stretch", key="score_distribution")

    with column2:
        fig = px.pie(
            names=[f"Passed (≥{PASS_THRESHOLD})", f"Failed (<{PASS_THRESHOLD})"],
            values=[data.passed_count, data.failed_count],
            hole=0.5,
            color_discrete_sequence=["#22c55e", "#ef4444"],
            title="Pass/Fail Distribution",
        )
        fig.update_layout(legend=dict(orientation="h"), height=320)
        st.plotly_chart(fig, width="stretch", key="pass_fail")


def render_department_stats(data):
    if not data.department_stats:
        return
    st.subheader("🏢 Department Statistics")
    st.dataframe(
        pd.DataFrame(data.department_stats).rename(columns={
            "name": "Department",
            "totalCandidates": "Candidates",
            "passed": "Passed",
            "failed": "Failed",
            "averageScore": "Average Score",
        }),
        width="stretch",
        hide_index=True
    )


def render_filters(data):
    c1, c2, c3, c4 = st.columns(4)
    department = c1.selectbox("Department", [""] + list(data.departments),
                              format_func=lambda d: d or "All departments")
    score_range = c2.selectbox("Score Range", [""] + SCORE_RANGES,
                               format_func=lambda r: r or "All scores")
    status = c3.selectbox("Status", ["", "passed", "failed"],
                          format_func=lambda s: s.capitalize() if s else "All")
    search = c4.text_input("Search name or ID")

    filters = (department, score_range, status, search)
    st.session_state.current_page = page_after_filtering(
        st.session_state.current_page, filters, st.session_state.active_filters)
    st.session_state.active_filters = filters
    return filters


def render_pagination(filtered):
    pages = total_pages(len(filtered))
    current = min(st.session_state.current_page, pages)

    buttons = ["◀"] + page_numbers(current, pages) + ["▶"]
    columns = st.columns(len(buttons) + 3)
    for column, label in zip(columns, buttons):
        if column.button(str(label), key=f"page_{label}", disabled=label == current):
            if label == "◀":
                current = max(1, current - 1)
            elif label == "▶":
                current = min(pages, current + 1)
            else:
                current = label
            st.session_state.current_page = current
            st.rerun()

    start = (current - 1) * ITEMS_PER_PAGE
    st.caption(f"Showing {min(start + 1, len(filtered))}-{min(start + ITEMS_PER_PAGE, len(filtered))} "
               f"of {len(filtered)} responses")
    return current


def render_results_table(filtered):
    current = render_pagination(filtered)
    page_df = paginate(filtered, current)
    st.dataframe(
        page_df.drop(columns=["Detailed Answers"]),
        width="stretch",
        hide_index=True,
        column_config={
            "Submission Date": st.column_config.DatetimeColumn(format="DD/MM/YYYY HH:mm"),
            "Reference": st.column_config.CheckboxColumn("⭐ Reference"),
        }
    )


def render_details(data, filtered):
    if filtered.empty:
        return

    st.subheader("🔍 Response Details")
    labels = detail_labels(filtered)
    choice = st.selectbox("Employee", list(labels), format_func=labels.get)
    response = data.responses[choice]

    score = response.get("score", 0)
    total = len(data.questions) or len(response.get("answers", []))
    c1, c2 = st.columns([3, 1])
    c2.metric("Score", f"{score}/{total}")
    if score >= PASS_THRESHOLD:
        c2.success("Passed")
    else:
        c2.error("Failed")

    rows = []
    for answer in response.get("answers", []):
        index = answer.get("questionIndex", 0)
        rows.append({
            "Question": (data.questions[index] if index < len(data.questions)
                         else f"Question {index + 1}"),
            "Answer": answer.get("selectedAnswer", ""),
            "Correct Answer": (data.correct_answers[index]
                               if index < len(data.correct_answers) else ""),
            "Result": "🟢" if answer.get("isCorrect") else "🔴",
        })
    with c1:
        st.dataframe(pd.DataFrame(rows), width="stretch", hide_index=True)


def run_dashboard():
    initialize_session_state()
    settings = load_settings()

    if not st.session_state.authenticated:
        render_login(settings)
        return

    if st.session_state.dashboard_data is None:
        st.session_state.dashboard_data = "loading"

    render_sidebar(st.session_state.dashboard_data)

    if st.session_state.dashboard_data == "loading":
        sync_with_api(settings)

    data = st.session_state.dashboard_data
    if data.is_sample:
        st.warning("Unable to connect to server. Using sample data for demonstration.")

    st.title("🏭 Mechanical Trainee Test Results")
    render_top_indicators(data)

    df = results_to_frame(data.responses)
    if df.empty:
        st.info("No responses yet.")
        return

    render_charts(df, data)
    render_department_stats(data)

    st.divider()
    st.subheader("📋 Responses")
    department, score_range, status, search = render_filters(data)
    filtered = apply_filters(df, department, score_range, status, search)

    render_results_table(filtered)
    st.download_button(
        "📥 Export CSV",
        data=build_export_csv(filtered),
        file_name=export_filename(),
        mime="text/csv"
    )

    st.divider()
    render_details(data, filtered)
