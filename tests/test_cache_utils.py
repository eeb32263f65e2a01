"""
test_cache_utils.py

Unit tests for the narrative file cache.

Entries are written to a temporary directory. Expiry is tested by pushing the
file's mtime into the past with os.utime, which is what cache_get() checks.
"""

import os
import shutil
import tempfile
import time
import unittest

from cache_utils import cache_clear, cache_get, cache_set, make_narrative_cache_key


class TestCache(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.cache_dir = os.path.join(self.tmp, "narrative")

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_set_then_get(self):
        cache_set(self.cache_dir, "k1", {"summary": "ok", "roadmap": []})
        self.assertEqual(cache_get(self.cache_dir, "k1", ttl_minutes=5), {"summary": "ok", "roadmap": []})

    def test_missing_is_none(self):
        self.assertIsNone(cache_get(self.cache_dir, "nope", ttl_minutes=5))

    def test_expired_is_none(self):
        cache_set(self.cache_dir, "old", {"summary": "stale"})
        path = os.path.join(self.cache_dir, "old.json")
        past = time.time() - 3600
        os.utime(path, (past, past))

        self.assertIsNone(cache_get(self.cache_dir, "old", ttl_minutes=30))

    def test_unreadable_file_is_a_miss(self):
        os.makedirs(self.cache_dir)
        with open(os.path.join(self.cache_dir, "bad.json"), "w", encoding="utf-8") as f:
            f.write("{not json")

        self.assertIsNone(cache_get(self.cache_dir, "bad", ttl_minutes=5))

    def test_clear_counts_entries(self):
        cache_set(self.cache_dir, "a", {})
        cache_set(self.cache_dir, "b", {})

        self.assertEqual(cache_clear(self.cache_dir), 2)
        self.assertIsNone(cache_get(self.cache_dir, "a", ttl_minutes=5))
        self.assertEqual(cache_clear(os.path.join(self.tmp, "never-created")), 0)


class TestCacheKey(unittest.TestCase):

    def test_key_ignores_dict_order(self):
        a = make_narrative_cache_key("octo/demo", {"testing_score": 3, "total_score": 40}, "m")
        b = make_narrative_cache_key("octo/demo", {"total_score": 40, "testing_score": 3}, "m")
        self.assertEqual(a, b)
        self.assertEqual(len(a), 64)

    def test_key_changes_with_inputs(self):
        base = make_narrative_cache_key("octo/demo", {"total_score": 40}, "m")

        self.assertNotEqual(base, make_narrative_cache_key("octo/other", {"total_score": 40}, "m"))
        self.assertNotEqual(base, make_narrative_cache_key("octo/demo", {"total_score": 41}, "m"))
        self.assertNotEqual(base, make_narrative_cache_key("octo/demo", {"total_score": 40}, "m2"))


if __name__ == "__main__":
    unittest.main()
