"""
test_exports.py

Tests for the on-disk outputs: file_utils (TXT / JSON / CSV, batch URL file)
and report_utils (PDF).

Each test writes into its own temporary reports directory so nothing lands in
the real reports/ folder.
"""

import csv
import json
import os
import shutil
import tempfile
import unittest

from analytics import comparison_rows
from file_utils import load_repo_urls, save_analysis_json, save_analysis_txt, save_history_csv
from report_utils import export_analysis_pdf

REPORT = {
    "id": "abc123",
    "repo_url": "https://github.com/octo/demo",
    "repo_info": {"full_name": "octo/demo"},
    "score": 64,
    "rating": "Intermediate",
    "badge": "Silver",
    "summary": "Solid foundation with clean code structure.",
    "roadmap": [
        {"priority": "high", "title": "Implement Unit Testing", "description": "Add tests.",
         "estimatedTime": "4-6 hours", "resources": ["pytest docs"]},
    ],
    "metrics": {"code_quality": 16, "documentation": 11, "testing": 4},
}


class ExportTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.reports = os.path.join(self.tmp, "reports")

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)


class TestFileExports(ExportTestCase):

    def test_txt_report(self):
        path = save_analysis_txt(REPORT, reports_dir=self.reports)

        self.assertTrue(os.path.basename(path).startswith("octo_demo_report_"))
        with open(path, encoding="utf-8") as f:
            text = f.read()

        self.assertIn("SCORE: 64/100 (Intermediate, Silver)", text)
        self.assertIn("- Code Quality: 16/20", text)
        self.assertIn("1. [high] Implement Unit Testing (4-6 hours)", text)

    def test_json_round_trips(self):
        path = save_analysis_json(REPORT, reports_dir=self.reports)

        with open(path, encoding="utf-8") as f:
            self.assertEqual(json.load(f), REPORT)

    def test_history_csv(self):
        rows = comparison_rows([{
            "repo_owner": "octo", "repo_name": "demo", "score": 64, "rating": "Intermediate",
            "badge": "Silver", "code_quality_score": 16, "analyzed_at": "2026-03-01T10:00:00",
        }])
        path = save_history_csv(rows, reports_dir=self.reports)

        with open(path, newline="", encoding="utf-8") as f:
            read = list(csv.DictReader(f))

        self.assertEqual(len(read), 1)
        self.assertEqual(read[0]["repo"], "octo/demo")
        self.assertEqual(read[0]["Code Quality"], "16")

    def test_empty_history_csv(self):
        path = save_history_csv([], reports_dir=self.reports)
        self.assertEqual(os.path.getsize(path), 0)


class TestLoadRepoUrls(ExportTestCase):

    def test_skips_blank_lines_and_comments(self):
        os.makedirs(self.reports)
        path = os.path.join(self.reports, "repos.txt")
        with open(path, "w", encoding="utf-8") as f:
            f.write("https://github.com/pallets/flask\n\n# https://github.com/psf/requests\n"
                    "  https://github.com/tiangolo/fastapi  \n")

        self.assertEqual(load_repo_urls(path), [
            "https://github.com/pallets/flask",
            "https://github.com/tiangolo/fastapi",
        ])

    def test_missing_file(self):
        self.assertEqual(load_repo_urls(os.path.join(self.tmp, "missing.txt")), [])


class TestPdfReport(ExportTestCase):

    def test_pdf_is_written(self):
        path = export_analysis_pdf(REPORT, reports_dir=self.reports)

        self.assertTrue(path.endswith(".pdf"))
        with open(path, "rb") as f:
            self.assertEqual(f.read(4), b"%PDF")

    def test_long_summary_and_custom_name(self):
        analysis = dict(REPORT, summary="word " * 2000, roadmap=[])
        path = export_analysis_pdf(analysis, output_name="long.pdf", reports_dir=self.reports)

        self.assertEqual(os.path.basename(path), "long.pdf")
        self.assertGreater(os.path.getsize(path), 0)


if __name__ == "__main__":
    unittest.main()
