"""
test_github_api.py

Unit tests for github_api.py.

The requests.Session is replaced by a MagicMock, so no network calls are made,
and time.sleep is patched so retry tests run instantly.
"""

import base64
import os
import shutil
import tempfile
import threading
import time
import unittest
from unittest import mock

import requests

import github_api
from config import Settings
from errors import GitHubNetworkError, InvalidRepoUrlError, RateLimitError, RepoNotFoundError
from github_api import GitHubClient, is_valid_github_url, parse_github_url


def response(status, body=None, headers=None):
    resp = mock.MagicMock()
    resp.status_code = status
    resp.json.return_value = body
    resp.headers = headers or {}
    return resp


def make_client(*responses, **settings_kwargs):
    """Client whose session.get returns the given responses in order."""
    session = mock.MagicMock()
    session.headers = {}
    session.get.side_effect = list(responses)
    settings = Settings(github_token=settings_kwargs.pop("github_token", None), **settings_kwargs)
    return GitHubClient(settings, session=session, use_cache=False), session


class TestParseUrl(unittest.TestCase):

    def test_valid_urls(self):
        self.assertEqual(parse_github_url("https://github.com/octocat/Hello-World"), ("octocat", "Hello-World"))
        self.assertEqual(parse_github_url("https://github.com/octocat/Hello-World.git"), ("octocat", "Hello-World"))
        self.assertEqual(parse_github_url("http://www.github.com/a-b/c.d/"), ("a-b", "c.d"))

    def test_invalid_urls(self):
        for url in ("", "github.com/a/b", "https://gitlab.com/a/b", "https://github.com/onlyowner",
                    "https://github.com/a/b/tree/main"):
            with self.assertRaises(InvalidRepoUrlError):
                parse_github_url(url)
        self.assertFalse(is_valid_github_url("not a url"))
        self.assertTrue(is_valid_github_url("https://github.com/psf/requests"))


class TestGet(unittest.TestCase):

    def setUp(self):
        patcher = mock.patch.object(github_api.time, "sleep")
        self.sleep = patcher.start()
        self.addCleanup(patcher.stop)

    def test_token_header(self):
        client, session = make_client(github_token="abc")
        self.assertEqual(session.headers["Authorization"], "Bearer abc")
        self.assertEqual(session.headers["User-Agent"], "RepoGrade-Analyzer")

    def test_404_is_not_retried(self):
        client, session = make_client(response(404))

        with self.assertRaises(RepoNotFoundError):
            client._get("/repos/a/b")
        self.assertEqual(session.get.call_count, 1)

    def test_5xx_is_retried_with_backoff(self):
        client, session = make_client(response(503), response(200, {"ok": True}))

        self.assertEqual(client._get("/x"), {"ok": True})
        self.assertEqual(session.get.call_count, 2)
        # backoff_base ** 0
        self.sleep.assert_called_once_with(1)

    def test_5xx_gives_up(self):
        client, session = make_client(response(500), response(500), response(500), github_max_retries=2)

        with self.assertRaises(GitHubNetworkError):
            client._get("/x")
        self.assertEqual(session.get.call_count, 3)
        self.assertEqual([c.args[0] for c in self.sleep.call_args_list], [1, 2])

    def test_403_rate_limit(self):
        client, _ = make_client(response(403, {"message": "API rate limit exceeded"}, {"X-RateLimit-Reset": "123"}))

        with self.assertRaises(RateLimitError) as ctx:
            client._get("/x")
        self.assertEqual(ctx.exception.reset_at, "123")

    def test_connection_errors_become_network_error(self):
        client, session = make_client(github_max_retries=1)
        session.get.side_effect = requests.ConnectionError("down")

        with self.assertRaises(GitHubNetworkError):
            client._get("/x")
        self.assertEqual(session.get.call_count, 2)


class TestEndpoints(unittest.TestCase):

    def test_get_repository_maps_fields(self):
        body = {
            "name": "demo",
            "full_name": "octo/demo",
            "owner": {"login": "octo"},
            "description": "Demo repo",
            "language": "Python",
            "stargazers_count": 42,
            "forks_count": 3,
            "open_issues_count": 1,
            "default_branch": "trunk",
            "license": {"name": "MIT License"},
        }
        client, _ = make_client(response(200, body))
        info = client.get_repository("octo", "demo")

        self.assertEqual(info.full_name, "octo/demo")
        self.assertEqual(info.stars, 42)
        self.assertEqual(info.default_branch, "trunk")
        self.assertEqual(info.license, "MIT License")

    def test_file_tree_falls_back_to_master_and_truncates(self):
        tree = {"tree": [
            {"path": "a.py", "type": "blob", "size": 10},
            {"path": "b.py", "type": "blob", "size": 20},
            {"path": "c.py", "type": "blob", "size": 30},
        ]}
        client, session = make_client(response(404), response(200, tree), max_files=2)

        files = client.get_file_tree("octo", "demo")

        self.assertEqual([f.path for f in files], ["a.py", "b.py"])
        self.assertTrue(session.get.call_args_list[1].args[0].endswith("/git/trees/master"))

    def test_readme_is_decoded(self):
        encoded = base64.b64encode("# Hello".encode("utf-8")).decode("ascii")
        client, _ = make_client(response(200, {"content": encoded, "size": 7}))

        readme = client.get_readme("octo", "demo")
        self.assertEqual(readme.content, "# Hello")

    def test_missing_readme_is_none(self):
        client, _ = make_client(response(404))
        self.assertIsNone(client.get_readme("octo", "demo"))

    def test_pull_request_counts(self):
        prs = [
            {"state": "open", "merged_at": None},
            {"state": "closed", "merged_at": "2026-01-01T00:00:00Z"},
            {"state": "closed", "merged_at": None},
        ]
        client, _ = make_client(response(200, prs))
        stats = client.get_pull_requests("octo", "demo")

        self.assertEqual((stats.total, stats.open, stats.closed, stats.merged), (3, 1, 2, 1))

    def test_language_percentages(self):
        client, _ = make_client(response(200, {"Python": 3, "Shell": 1}))
        self.assertEqual(client.get_languages("octo", "demo"), {"Python": 75.0, "Shell": 25.0})

    def test_rate_limit(self):
        client, _ = make_client(response(200, {"rate": {"limit": 60, "remaining": 12, "reset": 1700000000}}))
        self.assertEqual(client.get_rate_limit(), {"limit": 60, "remaining": 12, "reset": 1700000000})

    def test_rate_limit_error_is_none(self):
        client, _ = make_client(response(404))
        self.assertIsNone(client.get_rate_limit())

    def test_best_effort_endpoints_swallow_errors(self):
        with mock.patch.object(github_api.time, "sleep"):
            client, _ = make_client(response(404), response(404), response(404))
            self.assertEqual(client.get_commits("octo", "demo"), [])
            self.assertEqual(client.get_branches("octo", "demo"), [])
            self.assertEqual(client.get_contributors("octo", "demo"), [])


class TestRepositoryCache(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.db_path = os.path.join(self.tmp, "test.db")

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_second_call_uses_cache(self):
        session = mock.MagicMock()
        session.headers = {}
        session.get.side_effect = [response(200, {"name": "demo", "full_name": "octo/demo", "stargazers_count": 5})]

        client = GitHubClient(Settings(db_path=self.db_path), session=session, use_cache=True)
        first = client.get_repository("octo", "demo")
        second = client.get_repository("octo", "demo")

        self.assertEqual(first, second)
        self.assertEqual(second.stars, 5)
        self.assertEqual(session.get.call_count, 1)

    def test_concurrent_callers_fetch_once(self):
        """
        Two threads ask for the same repository at once. The first fetches
        (slowly) while holding the per-repo lock; the second waits, then reads
        the cache. GitHub sees exactly one request.
        """
        def slow_get(*args, **kwargs):
            time.sleep(0.2)
            return response(200, {"name": "demo", "full_name": "octo/demo", "stargazers_count": 5})

        session = mock.MagicMock()
        session.headers = {}
        session.get.side_effect = slow_get

        settings = Settings(db_path=self.db_path)
        clients = [GitHubClient(settings, session=session, use_cache=True) for _ in range(2)]
        results = []

        threads = [
            threading.Thread(target=lambda c=c: results.append(c.get_repository("octo", "race")))
            for c in clients
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(session.get.call_count, 1)
        self.assertEqual(len(results), 2)
        self.assertEqual(results[0], results[1])
        # lock entries are released once nobody holds them
        self.assertNotIn("octo/race", github_api._REPO_LOCKS)


if __name__ == "__main__":
    unittest.main()
