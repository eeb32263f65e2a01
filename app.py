# app.py
#
# RepoGrade (Streamlit UI)
#
# Purpose:
# Streamlit front-end. Paste a GitHub repository URL, watch the analysis
# progress, then read the score breakdown, the summary and the roadmap.
# Past analyses can be browsed, compared and exported.
#
# Design choice:
# UI code lives here. The analysis itself (GitHub, analyzers, scoring,
# narrative, SQLite) lives in separate modules and is reached through
# pipeline.py, so the terminal menu (main.py) runs exactly the same code.

import os
import base64
import logging
import sqlite3
from datetime import datetime
import streamlit as st
import pandas as pd

from analytics import (
    badge_distribution,
    comparison_rows,
    compute_history_summary,
    dimension_averages,
    dimension_scores,
    top_languages,
    weakest_dimensions,
)
from cache_utils import cache_clear
from config import load_settings
from db_utils import cleanup_old_cache, get_completed_analyses
from errors import RepoGradeError
from file_utils import save_analysis_json, save_analysis_txt, save_history_csv
from github_api import GitHubClient, is_valid_github_url
from log_utils import setup_logging
from patterns import ERROR_MESSAGES
from pipeline import analyze_with_timeout, get_analysis, get_history
from report_utils import export_analysis_pdf
from scoring import DIMENSIONS

logger = logging.getLogger(__name__)


# ----------------------------
# Page Config
# ----------------------------
st.set_page_config(page_title="RepoGrade", layout="wide")

settings = load_settings()
setup_logging(settings.log_level)


# ----------------------------
# Logo (inline SVG)
# ----------------------------
def repograde_logo_svg(accent="#0EA5E9", accent2="#22C55E"):
    return f"""
<svg width="42" height="42" viewBox="0 0 64 64" xmlns="http://www.w3.org/2000/svg" role="img" aria-label="RepoGrade logo">
  <defs>
    <linearGradient id="g" x1="0" y1="0" x2="1" y2="1">
      <stop offset="0" stop-color="{accent}"/>
      <stop offset="1" stop-color="{accent2}"/>
    </linearGradient>
  </defs>
  <rect x="0" y="0" width="64" height="64" rx="16" fill="#FFFFFF"/>
  <rect x="12" y="36" width="9" height="16" rx="3" fill="{accent}" opacity="0.85"/>
  <rect x="27" y="26" width="9" height="26" rx="3" fill="url(#g)"/>
  <rect x="42" y="14" width="9" height="38" rx="3" fill="{accent2}"/>
</svg>
""".strip()


def svg_to_data_uri(svg: str) -> str:
    b64 = base64.b64encode(svg.encode("utf-8")).decode("utf-8")
    return f"data:image/svg+xml;base64,{b64}"


# ----------------------------
# Tooltip text (single source of truth)
# ----------------------------
TOOLTIPS = {
    "Score": "Composite score (0-100). Sum of the nine dimension scores; each dimension's maximum is its weight.",
    "Rating": "0-40 Beginner, 41-75 Intermediate, 76-100 Advanced.",
    "code_quality": "Nesting depth, file sizes, naming conventions and duplicate file names.",
    "project_structure": "Folder organization, config files and separation of source/tests/docs.",
    "documentation": "README quality, inline comments and extra docs (LICENSE, CONTRIBUTING, ...).",
    "testing": "Test presence, test-to-code ratio, test organization and test frameworks.",
    "git_practices": "Commit message quality, branch usage and pull request workflow.",
    "security": "Committed secrets, .gitignore and a security policy.",
    "cicd": "CI/CD configuration (GitHub Actions, GitLab CI, Jenkins, ...).",
    "dependencies": "Package manager manifests present in the repo.",
    "containerization": "Dockerfile and docker-compose.",
}

PRIORITY_COLORS = {"high": "#EF4444", "medium": "#F59E0B", "low": "#22C55E"}


# ----------------------------
# UI helpers
# ----------------------------
def score_color(percent):
    """
    Convert a 0-100 percentage into a color used across the UI.
    """
    try:
        s = float(percent)
    except (TypeError, ValueError):
        return "#94A3B8"  # gray for unknown values

    if s >= 76:
        return "#22C55E"  # green
    if s >= 60:
        return "#0EA5E9"  # blue
    if s >= 41:
        return "#F59E0B"  # orange
    return "#EF4444"      # red


def render_badge(label, value, percent=None):
    """Small pill with a colored dot and a label/value."""
    color = score_color(value if percent is None else percent)
    safe_val = value if value is not None else "-"

    return f"""
    <span style="
        display:inline-flex;
        align-items:center;
        gap:8px;
        padding:7px 12px;
        border-radius:999px;
        border:1px solid #E2E8F0;
        background:#FFFFFF;
        font-weight:800;
        color:#0F172A;
        font-size: 13px;">
        <span style="width:10px;height:10px;border-radius:999px;background:{color};"></span>
        <span style="color:#334155; font-weight:800;">{label}:</span>
        <span>{safe_val}</span>
    </span>
    """


def render_score_bar(label, value, max_value):
    """Horizontal bar for one dimension, filled to value / max_value."""
    try:
        v = max(0, min(int(max_value), int(value)))
    except (TypeError, ValueError):
        v = 0

    pct = int(round(v / max_value * 100)) if max_value else 0
    bar_color = score_color(pct)

    return f"""
    <div style="margin: 10px 0;">
        <div style="display:flex; justify-content:space-between; align-items:center;">
            <div style="font-weight:900; color:#0F172A;">{label}</div>
            <div style="font-weight:900; color:#0F172A;">{v}/{max_value}</div>
        </div>
        <div style="
            width:100%;
            height:12px;
            background:#F1F5F9;
            border-radius:999px;
            overflow:hidden;
            border:1px solid #E2E8F0;
        ">
            <div style="
                height:12px;
                width:{pct}%;
                background:{bar_color};
                border-radius:999px;
            "></div>
        </div>
    </div>
    """


def render_breakdown(scores):
    """Score bars for every dimension present in scores ({key: score})."""
    for dim in DIMENSIONS:
        if dim.key not in scores:
            continue
        st.markdown(render_score_bar(dim.label, scores[dim.key], dim.max_score), unsafe_allow_html=True)
        st.caption(TOOLTIPS[dim.key])


def render_roadmap(roadmap):
    if not roadmap:
        st.info("No roadmap items.")
        return

    for i, item in enumerate(roadmap, start=1):
        priority = item.get("priority", "medium")
        color = PRIORITY_COLORS.get(priority, "#94A3B8")
        with st.expander(f"{i}. {item.get('title', '')}  [{priority.upper()}]", expanded=(i <= 2)):
            st.markdown(
                f'<span style="color:{color}; font-weight:900;">{priority.upper()} priority</span>'
                f" &middot; estimated {item.get('estimatedTime', '')}",
                unsafe_allow_html=True,
            )
            st.write(item.get("description", ""))


def render_exports(analysis, key_prefix):
    """PDF / JSON / TXT download buttons for one analysis."""
    c1, c2, c3 = st.columns(3)

    with c1:
        if st.button("Export PDF", key=f"{key_prefix}_pdf"):
            pdf_path = export_analysis_pdf(analysis)
            with open(pdf_path, "rb") as f:
                st.download_button(
                    "Download PDF",
                    data=f.read(),
                    file_name=os.path.basename(pdf_path),
                    mime="application/pdf",
                    key=f"{key_prefix}_pdf_dl",
                )
    with c2:
        if st.button("Export JSON", key=f"{key_prefix}_json"):
            json_path = save_analysis_json(analysis)
            with open(json_path, "rb") as f:
                st.download_button(
                    "Download JSON",
                    data=f.read(),
                    file_name=os.path.basename(json_path),
                    mime="application/json",
                    key=f"{key_prefix}_json_dl",
                )
    with c3:
        if st.button("Export TXT", key=f"{key_prefix}_txt"):
            txt_path = save_analysis_txt(analysis)
            with open(txt_path, "rb") as f:
                st.download_button(
                    "Download TXT",
                    data=f.read(),
                    file_name=os.path.basename(txt_path),
                    mime="text/plain",
                    key=f"{key_prefix}_txt_dl",
                )


# ----------------------------
# Minimal CSS
# ----------------------------
st.markdown(
    """
<style>
[data-testid="stHeader"]{ background: transparent !important; height: 0px !important; border-bottom: none !important; }
[data-testid="stToolbar"]{ visibility: hidden !important; height: 0px !important; }
[data-testid="stDecoration"]{ display: none !important; }
header{ visibility: hidden !important; height: 0px !important; }
.block-container{ padding-top: 1.2rem !important; }
</style>
""",
    unsafe_allow_html=True,
)


# ----------------------------
# Header
# ----------------------------
logo_uri = svg_to_data_uri(repograde_logo_svg())

st.markdown(
    f"""
<div style="display:flex; align-items:center; gap:12px; margin-bottom:6px;">
    <img src="{logo_uri}" width="42" height="42" />
    <div>
      <h1 style="margin:0; padding:0;">RepoGrade</h1>
      <div style="font-weight:800; margin-top:2px;">
        Score a GitHub repository and get a roadmap to improve it.
      </div>
    </div>
</div>
<div style="height:5px;width:100%;background: linear-gradient(90deg, #0EA5E9, #22C55E);
border-radius:999px;margin-bottom:18px;"></div>
""",
    unsafe_allow_html=True,
)


# ----------------------------
# Session state
# ----------------------------
# Streamlit re-runs the script on every interaction; the last report is kept here.
if "report" not in st.session_state:
    st.session_state["report"] = None
if "repo_url" not in st.session_state:
    st.session_state["repo_url"] = ""


# ----------------------------
# Sidebar controls
# ----------------------------
st.sidebar.header("Analyze")

repo_url_input = st.sidebar.text_input(
    "GitHub repository URL",
    value=st.session_state["repo_url"],
    placeholder="e.g., https://github.com/pallets/flask",
).strip()

use_cache = st.sidebar.checkbox("Use GitHub metadata cache", value=True)
analyze_btn = st.sidebar.button("Analyze Repository", type="primary")

st.sidebar.subheader("Status")
st.sidebar.write(f"GitHub token: {'set' if settings.github_token else 'not set (60 requests/hour)'}")
st.sidebar.write(f"AI narrative: {'Groq ' + settings.groq_model if settings.ai_available else 'off (template fallback)'}")
rate_limit_btn = st.sidebar.button("Check GitHub rate limit", type="secondary")

st.sidebar.subheader("Maintenance")
clear_narrative_btn = st.sidebar.button("Clear narrative cache", type="secondary")
cleanup_repo_cache_btn = st.sidebar.button("Remove expired repo cache", type="secondary")


# ----------------------------
# Maintenance actions
# ----------------------------
if clear_narrative_btn:
    removed = cache_clear(settings.narrative_cache_dir)
    st.sidebar.success(f"Cleared narrative cache ({removed} files).")

if cleanup_repo_cache_btn:
    removed = cleanup_old_cache(db_path=settings.db_path)
    st.sidebar.success(f"Removed {removed} expired cache rows.")

if rate_limit_btn:
    rate = GitHubClient(settings, use_cache=False).get_rate_limit()
    if rate is None:
        st.sidebar.error("Could not read the GitHub rate limit.")
    else:
        reset = datetime.fromtimestamp(rate["reset"]).strftime("%H:%M:%S") if rate["reset"] else "unknown"
        st.sidebar.info(f"{rate['remaining']}/{rate['limit']} requests left, resets at {reset}")


# ----------------------------
# Run analysis
# ----------------------------
# The pipeline runs in a worker thread bounded by analysis_timeout; progress
# updates are relayed back to this script thread, which owns the widgets.
if analyze_btn:
    if not is_valid_github_url(repo_url_input):
        st.error(ERROR_MESSAGES["INVALID_URL"])
        st.stop()

    st.session_state["repo_url"] = repo_url_input
    progress_bar = st.progress(0, text="Starting analysis...")

    def on_progress(percent, message):
        progress_bar.progress(int(percent), text=message)

    try:
        report = analyze_with_timeout(
            repo_url_input,
            settings,
            client=GitHubClient(settings, use_cache=use_cache),
            progress=on_progress,
        )
    except RepoGradeError as e:
        progress_bar.empty()
        st.error(str(e))
        st.stop()
    except sqlite3.Error as e:
        logger.error("Database error during analysis: %s", e)
        progress_bar.empty()
        st.error(ERROR_MESSAGES["DATABASE_ERROR"])
        st.stop()

    st.session_state["report"] = report
    st.success(f"Analysis complete in {report['duration_ms'] / 1000:.1f}s.")


report = st.session_state["report"]

tabs = st.tabs(["Results", "Roadmap", "Details", "History", "Compare"])


# ----------------------------
# Results
# ----------------------------
with tabs[0]:
    st.header("Results")

    if report is None:
        st.info("Enter a repository URL in the sidebar and click Analyze Repository.")
    else:
        info = report["repo_info"]
        st.subheader(info.get("full_name", ""))
        if info.get("description"):
            st.caption(info["description"])

        m1, m2, m3, m4 = st.columns(4)
        m1.metric("Score", f"{report['score']}/100", help=TOOLTIPS["Score"])
        m2.metric("Rating", report["rating"], help=TOOLTIPS["Rating"])
        m3.metric("Badge", report["badge"])
        m4.metric("Stars", info.get("stars", 0))

        if report["errors"]:
            failed = ", ".join(sorted(report["errors"]))
            st.warning(f"Some analyzers failed and were scored 0: {failed}")

        st.divider()
        left, right = st.columns([3, 2])

        with left:
            st.subheader("Score Breakdown")
            render_breakdown(report["metrics"])

        with right:
            st.subheader("Summary")
            st.write(report["summary"])

            st.subheader("Biggest Gaps")
            for gap in weakest_dimensions(report["metrics"]):
                st.write(f"- {gap['label']}: {gap['score']}/{gap['max_score']}")

            insights = report["insights"]
            st.subheader("Insights")
            badges = [
                render_badge("CI/CD", "yes" if insights["has_cicd"] else "no", 100 if insights["has_cicd"] else 0),
                render_badge("Docker", "yes" if insights["has_dockerfile"] else "no", 100 if insights["has_dockerfile"] else 0),
                render_badge("Contributors", insights["contributors"], 60),
            ]
            st.markdown(" ".join(badges), unsafe_allow_html=True)

            if insights["frameworks"]:
                st.write("**Frameworks:** " + ", ".join(insights["frameworks"]))
            if insights["testing_frameworks"]:
                st.write("**Testing:** " + ", ".join(insights["testing_frameworks"]))
            if insights["cicd_platforms"]:
                st.write("**CI/CD:** " + ", ".join(insights["cicd_platforms"]))

        if insights["languages"]:
            st.subheader("Languages (%)")
            st.bar_chart(pd.Series(insights["languages"], name="percent"))

        st.divider()
        st.subheader("Export")
        render_exports(report, "current")


# ----------------------------
# Roadmap
# ----------------------------
with tabs[1]:
    st.header("Improvement Roadmap")

    if report is None:
        st.info("Run an analysis to see its roadmap.")
    else:
        render_roadmap(report["roadmap"])


# ----------------------------
# Details
# ----------------------------
with tabs[2]:
    st.header("Analyzer Details")

    if report is None:
        st.info("Run an analysis to see analyzer details.")
    else:
        for dim in DIMENSIONS:
            score = report["metrics"].get(dim.key, 0)
            with st.expander(f"{dim.label}: {score}/{dim.max_score}"):
                st.caption(TOOLTIPS[dim.key])
                if dim.key in report["errors"]:
                    st.error(report["errors"][dim.key])
                details = report["details"].get(dim.key) or {}
                if details:
                    st.json(details)
                else:
                    st.write("No details.")


# ----------------------------
# History (SQLite)
# ----------------------------
with tabs[3]:
    st.header("History (SQLite)")

    completed = get_completed_analyses(limit=100, db_path=settings.db_path)
    summary = compute_history_summary(completed)

    h1, h2, h3, h4 = st.columns(4)
    h1.metric("Analyses", summary["analysis_count"])
    h2.metric("Repos", summary["repo_count"])
    h3.metric("Avg Score", summary["avg_score"])
    h4.metric("Best Score", summary["max_score"])

    if completed:
        c1, c2 = st.columns(2)
        with c1:
            st.subheader("Badges")
            st.bar_chart(pd.Series(badge_distribution(completed), name="analyses"))
        with c2:
            st.subheader("Average by Dimension (% of max)")
            avg_df = pd.DataFrame(dimension_averages(completed)).set_index("label")
            st.bar_chart(avg_df["percent"])

        langs = top_languages(completed, n=15)
        if langs:
            st.subheader("Primary Languages")
            st.bar_chart({row["language"]: row["repo_count"] for row in langs})

    st.divider()
    st.subheader("All Analyses")

    page = st.number_input("Page", min_value=1, value=1, step=1)
    history = get_history(settings, page=int(page), limit=20)

    if not history["items"]:
        st.info("No analyses saved yet.")
    else:
        st.caption(f"Page {history['page']} of {max(history['pages'], 1)} ({history['total']} analyses)")
        hist_df = pd.DataFrame(history["items"])
        st.dataframe(
            hist_df[["id", "repo_owner", "repo_name", "status", "score", "rating", "badge", "created_at", "repo_url"]].rename(
                columns={
                    "repo_owner": "Owner",
                    "repo_name": "Repo",
                    "status": "Status",
                    "score": "Score",
                    "rating": "Rating",
                    "badge": "Badge",
                    "created_at": "Created",
                    "repo_url": "Link",
                }
            ),
            column_config={"Link": st.column_config.LinkColumn("Link")},
            use_container_width=True,
            hide_index=True,
        )

        chosen_id = st.selectbox("View analysis", hist_df["id"].tolist())
        stored = get_analysis(chosen_id, settings) if chosen_id else None

        if stored:
            st.subheader(f"{stored['repo_owner']}/{stored['repo_name']}")
            st.write(f"Status: **{stored['status']}** ({stored['progress']}%)")

            if stored["status"] == "failed":
                st.error(stored.get("error_message") or "Analysis failed.")
            elif stored["status"] == "completed":
                st.metric("Score", f"{stored['score']}/100 ({stored['rating']}, {stored['badge']})")
                render_breakdown(dimension_scores(stored))
                st.write(stored.get("summary") or "")
                render_roadmap(stored.get("roadmap"))
                render_exports(stored, f"history_{chosen_id}")
            else:
                st.info(stored.get("current_step") or "Waiting to start...")


# ----------------------------
# Compare
# ----------------------------
with tabs[4]:
    st.header("Compare Analyses")

    completed = get_completed_analyses(limit=100, db_path=settings.db_path)
    if len(completed) < 2:
        st.info("Analyze at least two repositories to compare them.")
    else:
        labels = {
            f"{r['repo_owner']}/{r['repo_name']} ({r['analyzed_at']})": r
            for r in completed
        }
        chosen = st.multiselect("Analyses", list(labels), default=list(labels)[:2])

        if chosen:
            rows = comparison_rows([labels[c] for c in chosen])
            compare_df = pd.DataFrame(rows)
            st.dataframe(compare_df, use_container_width=True, hide_index=True)

            # the same repo can be picked twice, so index by the selection label
            chart_df = compare_df[[d.label for d in DIMENSIONS]].copy()
            chart_df.index = chosen
            st.bar_chart(chart_df.T)

            if st.button("Export comparison CSV"):
                csv_path = save_history_csv(rows, name="comparison")
                with open(csv_path, "rb") as f:
                    st.download_button(
                        "Download CSV",
                        data=f.read(),
                        file_name=os.path.basename(csv_path),
                        mime="text/csv",
                    )
