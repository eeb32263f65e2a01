"""
test_docs_analyzer.py

Unit tests for the documentation analyzer.

The README text in these tests is built so the expected score can be counted
by hand (and it avoids the letters "toc", which the table-of-contents check
would pick up inside other words).
"""

import unittest

from docs_analyzer import (
    analyze_documentation,
    analyze_readme,
    extract_readme_sections,
    has_contributing,
    has_license,
)
from models import FileEntry, Readme, RepoSnapshot

GOOD_README = (
    "# Installation\n"
    "```\npip install demo\n```\n"
    "## Usage\n"
    "```\ndemo run\n```\n"
    "## License\n"
    "MIT\n"
    + "x" * 1200
)


class TestReadme(unittest.TestCase):

    def test_missing_readme_scores_zero(self):
        self.assertEqual(analyze_readme(None), 0)
        self.assertEqual(analyze_readme(Readme(content="")), 0)

    def test_tiny_readme_scores_zero(self):
        """Under 100 chars (-2) and under 200 chars with few sections (-3)."""
        self.assertEqual(analyze_readme(Readme(content="# Hi")), 0)

    def test_good_readme_is_capped(self):
        """
        5 base + 4 length + 2 installation + 2 usage + 1 license + 2 code blocks
        = 16, capped at 15.
        """
        self.assertEqual(analyze_readme(Readme(content=GOOD_README)), 15)

    def test_sections_are_lowercase_and_unique(self):
        readme = Readme(content=(
            "# My Project\n"
            "## Quick Installation Guide\n"
            "## Usage\n"
            "## Usage Examples\n"
            "## License\n"
        ))
        self.assertEqual(
            extract_readme_sections(readme),
            ["installation", "usage", "examples", "license"],
        )


class TestDocFiles(unittest.TestCase):

    def test_license_must_be_at_root(self):
        self.assertTrue(has_license(["LICENSE"]))
        self.assertTrue(has_license(["license.txt"]))
        self.assertTrue(has_license(["LICENCE.md"]))
        self.assertFalse(has_license(["docs/LICENSE.md"]))

    def test_contributing_anywhere(self):
        self.assertTrue(has_contributing(["CONTRIBUTING.md"]))
        self.assertTrue(has_contributing(["docs/contributing.md"]))
        self.assertFalse(has_contributing(["README.md"]))


class TestDocumentationScore(unittest.TestCase):

    def test_blended_score(self):
        """
        README 15, comments 13 (code present, no API docs), additional 12
        (LICENSE only): 15*0.75 + 13*0.15 + 12*0.10 = 14.4 -> 14
        """
        snap = RepoSnapshot(
            files=(FileEntry("README.md"), FileEntry("LICENSE"), FileEntry("src/main.py")),
            readme=Readme(content=GOOD_README),
        )
        result = analyze_documentation(snap)

        self.assertEqual(result.details.readme, 15)
        self.assertEqual(result.details.code_comments, 13)
        self.assertEqual(result.details.additional_docs, 12)
        self.assertEqual(result.score, 14)
        self.assertTrue(result.details.has_license)
        self.assertFalse(result.details.has_contributing)
        self.assertEqual(result.details.readme_length, len(GOOD_README))
        self.assertEqual(result.details.readme_sections, ("installation", "usage", "license"))

    def test_no_readme_still_scores_other_parts(self):
        snap = RepoSnapshot(files=(FileEntry("main.py"),))
        result = analyze_documentation(snap)

        # 0*0.75 + 13*0.15 + 10*0.10 = 2.95 -> 3
        self.assertEqual(result.score, 3)
        self.assertEqual(result.details.readme_length, 0)


if __name__ == "__main__":
    unittest.main()
