"""
test_practice_analyzers.py

Unit tests for git practices, security, CI/CD, dependencies and
containerization. All five only look at paths and metadata, so each test
builds the smallest snapshot that triggers the rule being checked.
"""

import unittest

from models import Branch, Commit, FileEntry, PullRequestStats, RepoSnapshot
from practice_analyzers import (
    analyze_cicd,
    analyze_containerization,
    analyze_dependencies,
    analyze_git_practices,
    analyze_security,
    collect_security_issues,
    detect_cicd_platforms,
    is_good_commit_message,
)


def paths_snapshot(*paths):
    return RepoSnapshot(files=tuple(FileEntry(p) for p in paths))


class TestGitPractices(unittest.TestCase):

    def test_commit_message_styles(self):
        self.assertTrue(is_good_commit_message("feat: add login"))
        self.assertTrue(is_good_commit_message("Fix crash on empty input"))
        self.assertFalse(is_good_commit_message("wip"))
        self.assertFalse(is_good_commit_message(""))

    def test_empty_history_gets_neutral_branch_and_pr_scores(self):
        """
        No commits (0), no branch data (5), no PR data (3):
          0*0.5 + 5*0.25 + 3*0.25 = 2
        """
        result = analyze_git_practices(RepoSnapshot())

        self.assertEqual(result.details.commit_quality, 0)
        self.assertEqual(result.details.branch_strategy, 5)
        self.assertEqual(result.details.pull_requests, 3)
        self.assertEqual(result.score, 2)

    def test_healthy_workflow(self):
        snap = RepoSnapshot(
            commits=tuple(Commit(message=f"feat: change {i}") for i in range(10)),
            branches=(Branch("main", protected=True), Branch("dev")),
            pull_requests=PullRequestStats(total=10, open=2, closed=8, merged=6),
        )
        result = analyze_git_practices(snap)

        self.assertEqual(result.details.commit_quality, 12)
        self.assertEqual(result.details.branch_strategy, 10)
        self.assertEqual(result.details.pull_requests, 12)
        # 6 + 2.5 + 3 = 11.5 -> 12
        self.assertEqual(result.score, 12)


class TestSecurity(unittest.TestCase):

    def test_committed_env_without_gitignore(self):
        """
        secrets 10-5-3 = 2, gitignore 0, policy 7:
          2*0.4 + 0*0.35 + 7*0.25 = 2.55 -> 3
        """
        result = analyze_security(paths_snapshot(".env", "app.py"))

        self.assertEqual(result.details.secrets, 2)
        self.assertEqual(result.details.gitignore, 0)
        self.assertEqual(result.score, 3)

        issues = {(i.type, i.severity) for i in result.details.security_issues}
        self.assertIn(("missing_gitignore", "high"), issues)
        self.assertIn(("env_file_committed", "critical"), issues)

    def test_clean_repo_scores_full(self):
        result = analyze_security(paths_snapshot(".gitignore", "SECURITY.md", "app.py"))

        self.assertEqual(result.score, 10)
        self.assertEqual(result.details.security_issues, ())

    def test_only_root_gitignore_counts(self):
        issues = collect_security_issues(["frontend/.gitignore", "main.py"])
        self.assertEqual([i.type for i in issues], ["missing_gitignore"])

    def test_env_example_is_not_a_committed_env(self):
        issues = collect_security_issues([".gitignore", ".env.example"])
        self.assertEqual(issues, [])


class TestCICD(unittest.TestCase):

    def test_github_actions(self):
        result = analyze_cicd(paths_snapshot(".github/workflows/ci.yml"))

        self.assertEqual(result.score, 8)
        self.assertTrue(result.details.has_cicd)
        self.assertEqual(result.details.platforms, ("GitHub Actions",))

    def test_no_cicd(self):
        result = analyze_cicd(paths_snapshot("src/main.py"))

        self.assertEqual(result.score, 0)
        self.assertFalse(result.details.has_cicd)

    def test_multiple_platforms(self):
        found = detect_cicd_platforms([".travis.yml", "Jenkinsfile"])
        self.assertEqual(found, ["Travis CI", "Jenkins"])


class TestDependencies(unittest.TestCase):

    def test_manifest_and_build_tool(self):
        result = analyze_dependencies(paths_snapshot("package.json", "vite.config.ts"))

        self.assertEqual(result.score, 5)
        self.assertEqual(result.details.package_managers, ("npm",))
        self.assertEqual(result.details.frameworks, ("Vite",))
        self.assertEqual(result.details.vulnerable_dependencies, 0)

    def test_manifest_only(self):
        result = analyze_dependencies(paths_snapshot("requirements.txt"))

        self.assertEqual(result.score, 3)
        self.assertEqual(result.details.package_managers, ("pip",))

    def test_nested_manifest_does_not_count(self):
        result = analyze_dependencies(paths_snapshot("src/requirements.txt"))
        self.assertEqual(result.score, 0)


class TestContainerization(unittest.TestCase):

    def test_dockerfile_and_compose(self):
        result = analyze_containerization(paths_snapshot("Dockerfile", "docker-compose.yml"))

        self.assertEqual(result.score, 3)
        self.assertTrue(result.details.has_dockerfile)
        self.assertTrue(result.details.has_docker_compose)

    def test_nested_dockerfile_counts_but_nested_compose_does_not(self):
        self.assertEqual(analyze_containerization(paths_snapshot("docker/Dockerfile")).score, 2)
        self.assertEqual(analyze_containerization(paths_snapshot("deploy/docker-compose.yml")).score, 0)


if __name__ == "__main__":
    unittest.main()
