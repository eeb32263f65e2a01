# report_utils.py
#
# Purpose:
# Generate a one-analysis PDF report with ReportLab.
#
# The PDF is a shareable snapshot of a scored repository: composite score,
# the nine-dimension breakdown, the written summary and the roadmap.
#
# How it works:
# - Create the reports/ folder if it doesn't exist
# - Build a timestamped filename so old reports are not overwritten
# - Draw lines of text top to bottom on a ReportLab canvas
# - Start a new page when the current one fills up
# - Save the PDF and return the file path

import os
import textwrap
from datetime import datetime

from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from analytics import dimension_scores
from scoring import DIMENSIONS

REPORTS_DIR = "reports"

# characters per line at 11pt Helvetica with 50pt margins
WRAP_WIDTH = 95


def ensure_reports_dir(reports_dir=REPORTS_DIR):
    os.makedirs(reports_dir, exist_ok=True)


def _repo_label(analysis):
    owner = analysis.get("repo_owner")
    name = analysis.get("repo_name")
    if owner and name:
        return f"{owner}/{name}"

    info = analysis.get("repo_info") or {}
    return info.get("full_name") or analysis.get("repo_url", "")


def export_analysis_pdf(analysis, output_name=None, reports_dir=REPORTS_DIR):
    """
    Create a PDF report for one analysis and return the saved file path.

    analysis can be a pipeline report (analyze_repository) or a stored
    analysis (get_analysis_by_id). Only these keys are read:
      score, rating, badge, summary, roadmap, metrics, repo_url
      and repo_owner/repo_name or repo_info.full_name

    Long lines are wrapped since drawString does not wrap on its own.
    """
    ensure_reports_dir(reports_dir)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    repo = _repo_label(analysis)

    if not output_name:
        safe = repo.replace("/", "_") or "analysis"
        output_name = f"{safe}_report_{timestamp}.pdf"

    path = os.path.join(reports_dir, output_name)

    c = canvas.Canvas(path, pagesize=letter)
    width, height = letter

    x = 50
    y = height - 50
    line = 14

    def write(text, bold=False):
        """Write one line (wrapped if long) and move the cursor down."""
        nonlocal y

        chunks = textwrap.wrap(str(text), WRAP_WIDTH) or [""]
        for chunk in chunks:
            if y < 60:
                c.showPage()
                y = height - 50

            c.setFont("Helvetica-Bold" if bold else "Helvetica", 11)
            c.drawString(x, y, chunk)
            y -= line

    # ----------------------------
    # Report Content
    # ----------------------------
    write("RepoGrade Analysis Report", bold=True)
    write(f"Repository: {repo}")
    write(f"URL: {analysis.get('repo_url', '')}")
    write(f"Generated: {timestamp}")
    write("")

    write("Overall Score", bold=True)
    write(f"{analysis.get('score', 0)}/100 | {analysis.get('rating', '')} | {analysis.get('badge', '')} badge")
    write("")

    write("Score Breakdown", bold=True)
    scores = dimension_scores(analysis)
    if scores:
        for dim in DIMENSIONS:
            if dim.key in scores:
                write(f"{dim.label}: {scores[dim.key]}/{dim.max_score}")
    else:
        write("No dimension scores available.")
    write("")

    write("Summary", bold=True)
    summary = analysis.get("summary") or "No summary available."
    for paragraph in summary.split("\n"):
        write(paragraph.strip())
    write("")

    write("Improvement Roadmap", bold=True)
    roadmap = analysis.get("roadmap") or []
    if roadmap:
        for i, item in enumerate(roadmap, start=1):
            write(f"{i}. {item.get('title', '')} [{item.get('priority', 'medium')}]", bold=True)
            write(item.get("description", ""))
            write(f"Estimated time: {item.get('estimatedTime', '')}")
            resources = item.get("resources") or []
            if resources:
                write("Resources: " + ", ".join(resources))
            write("")
    else:
        write("No roadmap items available.")

    c.save()
    return path
