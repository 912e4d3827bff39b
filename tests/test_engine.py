from __future__ import annotations

import os
import re
import tempfile
import threading
import time
import unittest
from pathlib import Path
from typing import Any
from unittest.mock import Mock

from treeseek.engine import SearchOutcome, SearchRequest, search
from treeseek.engine.dispatcher import Dispatcher
from treeseek.errors import ConfigurationError, TraversalError
from treeseek.fs.listing import list_entries
from treeseek.runtime_logging import configure_runtime_logging


def collect(request: SearchRequest, **kwargs: Any) -> SearchOutcome:
    return search(request, keep_matches=True, **kwargs)


def make_tree(root: Path, entries: list[str]) -> None:
    """Create entries under root; a trailing slash marks a directory."""
    for entry in entries:
        path = root / entry
        if entry.endswith("/"):
            path.mkdir(parents=True, exist_ok=True)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("x", encoding="utf-8")


def make_wide_tree(root: Path, depth: int = 3, fanout: int = 4) -> None:
    def build(path: Path, level: int) -> None:
        (path / "target.txt").write_text("t", encoding="utf-8")
        (path / f"notes-{level}.log").write_text("n", encoding="utf-8")
        if level == depth:
            return
        for index in range(fanout):
            child = path / f"d{index}"
            child.mkdir()
            build(child, level + 1)

    build(root, 0)


def naive_counts(root: Path, file_name: str, dir_name: str, pattern: str) -> tuple[int, int, int]:
    compiled = re.compile(pattern) if pattern else None
    files = dirs = regex = 0
    for _dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames:
            if compiled is not None and compiled.collect(name):
                regex += 1
            if dir_name and name == dir_name:
                dirs += 1
        for name in filenames:
            if compiled is not None and compiled.collect(name):
                regex += 1
            if file_name and name == file_name:
                files += 1
    return files, dirs, regex


class EngineTestCase(unittest.TestCase):
    def setUp(self) -> None:
        configure_runtime_logging(level="off")
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()


class ScenarioTests(EngineTestCase):
    def setUp(self) -> None:
        super().setUp()
        make_tree(self.root, ["a/b/target.txt", "a/c/target.txt"])

    def test_finds_every_named_file(self) -> None:
        outcome = collect(SearchRequest(root=self.root, file_name="target.txt"))

        self.assertTrue(outcome.file_found)
        self.assertFalse(outcome.dir_found)
        self.assertEqual(outcome.stats.files_found, 2)
        self.assertEqual(outcome.stats.dirs_found, 0)
        self.assertEqual(
            sorted(event.path for event in outcome.matches),
            [self.root / "a" / "b" / "target.txt", self.root / "a" / "c" / "target.txt"],
        )
        self.assertFalse(outcome.cancelled)

    def test_finds_named_directory(self) -> None:
        outcome = collect(SearchRequest(root=self.root, dir_name="c"))

        self.assertTrue(outcome.dir_found)
        self.assertEqual(outcome.stats.dirs_found, 1)
        self.assertEqual(outcome.matches[0].path, self.root / "a" / "c")
        self.assertTrue(outcome.matches[0].is_dir)
        self.assertEqual(outcome.matches[0].depth, 1)

    def test_matches_are_streamed_but_not_retained_by_default(self) -> None:
        seen: list[Path] = []

        outcome = search(
            SearchRequest(root=self.root, file_name="target.txt"),
            on_match=lambda event: seen.append(event.path),
        )

        self.assertEqual(outcome.stats.files_found, 2)
        self.assertEqual(len(seen), 2)
        self.assertEqual(outcome.matches, [])

    def test_missing_target_is_not_an_error(self) -> None:
        outcome = collect(SearchRequest(root=self.root, file_name="absent.txt", dir_name="nope"))

        self.assertFalse(outcome.file_found)
        self.assertFalse(outcome.dir_found)
        self.assertEqual(outcome.stats.files_found, 0)
        self.assertEqual(outcome.errors, 0)

    def test_invalid_regex_fails_before_walking(self) -> None:
        lister = Mock(side_effect=list_entries)

        with self.assertRaises(ConfigurationError):
            collect(SearchRequest(root=self.root, regex_pattern="[invalid"), lister=lister)

        lister.assert_not_called()

    def test_rejects_zero_workers(self) -> None:
        with self.assertRaises(ConfigurationError):
            collect(SearchRequest(root=self.root, file_name="target.txt", max_workers=0))

    def test_regex_and_exact_name_emit_separate_events_regex_first(self) -> None:
        flat = self.root / "flat"
        make_tree(flat, ["target.txt"])

        outcome = collect(
            SearchRequest(root=flat, file_name="target.txt", regex_pattern=r"^target", max_workers=1)
        )

        self.assertEqual([event.kind for event in outcome.matches], ["regex", "file"])
        self.assertEqual(outcome.stats.regex_matches, 1)
        self.assertEqual(outcome.stats.files_found, 1)

    def test_regex_match_on_directory_sets_dir_flag(self) -> None:
        outcome = collect(SearchRequest(root=self.root, regex_pattern=r"^c$"))

        self.assertTrue(outcome.dir_found)
        self.assertFalse(outcome.file_found)
        self.assertEqual(outcome.stats.regex_matches, 1)

    def test_regex_is_unanchored_search(self) -> None:
        outcome = collect(SearchRequest(root=self.root, regex_pattern=r"get\."))

        self.assertEqual(outcome.stats.regex_matches, 2)
        self.assertTrue(outcome.file_found)

    def test_exclude_patterns_skip_subtrees(self) -> None:
        outcome = collect(SearchRequest(root=self.root, file_name="target.txt", exclude=("b/",)))

        self.assertEqual(outcome.stats.files_found, 1)
        self.assertEqual(outcome.matches[0].path, self.root / "a" / "c" / "target.txt")


class ExhaustivenessTests(EngineTestCase):
    def setUp(self) -> None:
        super().setUp()
        make_wide_tree(self.root)
        make_tree(self.root, ["d0/d1/d1/", "d3/extra/target.txt/"])

    def assert_matches_naive(self, max_workers: int) -> None:
        request = SearchRequest(
            root=self.root,
            file_name="target.txt",
            dir_name="d1",
            regex_pattern=r"\.log$",
            max_workers=max_workers,
        )
        outcome = collect(request)

        files, dirs, regex = naive_counts(self.root, "target.txt", "d1", r"\.log$")
        self.assertEqual(outcome.stats.files_found, files)
        self.assertEqual(outcome.stats.dirs_found, dirs)
        self.assertEqual(outcome.stats.regex_matches, regex)
        self.assertEqual(len(outcome.matches), files + dirs + regex)

    def test_counts_match_sequential_walk(self) -> None:
        for max_workers in (1, 2, 10):
            with self.subTest(max_workers=max_workers):
                self.assert_matches_naive(max_workers)

    def test_directory_named_like_target_file_is_not_a_file_match(self) -> None:
        outcome = collect(SearchRequest(root=self.root / "d3", file_name="target.txt", max_workers=1))

        # d3/extra/target.txt is a directory; only real files below d3 count.
        self.assertTrue(all(not event.is_dir for event in outcome.matches))
        self.assertEqual(outcome.stats.files_found, 21)

    def test_repeated_runs_are_identical(self) -> None:
        request = SearchRequest(root=self.root, file_name="target.txt", regex_pattern=r"^d\d$", max_workers=4)

        first = collect(request)
        second = collect(request)

        self.assertEqual(first.stats, second.stats)
        self.assertEqual((first.file_found, first.dir_found), (second.file_found, second.dir_found))
        self.assertEqual(
            sorted((str(e.path), e.kind) for e in first.matches),
            sorted((str(e.path), e.kind) for e in second.matches),
        )


class ReturnEarlyTests(EngineTestCase):
    def setUp(self) -> None:
        super().setUp()
        make_wide_tree(self.root)

    def test_stops_after_first_named_file(self) -> None:
        outcome = collect(SearchRequest(root=self.root, file_name="target.txt", return_early=True))

        self.assertTrue(outcome.file_found)
        self.assertTrue(outcome.cancelled)
        self.assertGreaterEqual(outcome.stats.files_found, 1)
        for event in outcome.matches:
            self.assertEqual(event.path.name, "target.txt")
            self.assertTrue(event.path.is_file())

    def test_regex_only_stops_at_first_match(self) -> None:
        outcome = collect(
            SearchRequest(root=self.root, regex_pattern=r"\.log$", return_early=True, max_workers=1)
        )

        self.assertTrue(outcome.cancelled)
        self.assertGreaterEqual(outcome.stats.regex_matches, 1)

    def test_waits_for_both_named_targets(self) -> None:
        make_tree(self.root, ["d2/d0/deep/"])

        outcome = collect(
            SearchRequest(root=self.root, file_name="target.txt", dir_name="deep", return_early=True)
        )

        self.assertTrue(outcome.file_found)
        self.assertTrue(outcome.dir_found)
        self.assertTrue(outcome.cancelled)
        self.assertEqual(outcome.stats.dirs_found, 1)

    def test_no_cancellation_when_target_never_found(self) -> None:
        outcome = collect(SearchRequest(root=self.root, file_name="absent", return_early=True))

        self.assertFalse(outcome.file_found)
        self.assertFalse(outcome.cancelled)


class CancellationTests(EngineTestCase):
    def test_remaining_sibling_directories_are_not_listed(self) -> None:
        make_tree(self.root, [f"d{index:02d}/target.txt" for index in range(30)])
        matched = threading.Event()
        lock = threading.Lock()
        listed: list[Path] = []

        def lister(path: Path) -> list[tuple[str, bool]]:
            with lock:
                listed.append(path)
            # Only d00 lists freely; every other directory waits for the first match.
            if path != self.root and path.name != "d00":
                matched.wait(timeout=5)
            return sorted(list_entries(path))

        outcome = search(
            SearchRequest(root=self.root, file_name="target.txt", return_early=True, max_workers=1),
            lister=lister,
            on_match=lambda _event: matched.set(),
        )

        self.assertTrue(outcome.cancelled)
        self.assertEqual(outcome.stats.files_found, 1)
        # Root, the spawned d00, and at most the one inline sibling already in progress.
        self.assertLessEqual(len(listed), 3)

    def test_rest_of_current_directory_is_abandoned(self) -> None:
        matched = threading.Event()
        late = [(f"late-{index}.txt", False) for index in range(20)]
        root_entries = [("target.txt", False), ("sub0", True), ("sub1", True), *late, ("sub2", True)]

        def lister(path: Path) -> list[tuple[str, bool]]:
            if path == self.root:
                return root_entries
            matched.wait(timeout=5)
            return []

        outcome = collect(
            SearchRequest(
                root=self.root,
                file_name="target.txt",
                regex_pattern=r"^late-",
                return_early=True,
                max_workers=1,
            ),
            lister=lister,
            on_match=lambda _event: matched.set(),
        )

        self.assertTrue(outcome.cancelled)
        self.assertEqual(outcome.stats.regex_matches, 0)
        self.assertEqual(
            [(event.path.name, event.kind) for event in outcome.matches],
            [("target.txt", "file")],
        )


class TraversalErrorTests(EngineTestCase):
    def setUp(self) -> None:
        super().setUp()
        make_tree(self.root, ["a/b/target.txt", "a/b/deeper/target.txt", "a/c/target.txt"])
        self.blocked = self.root / "a" / "b"

    def lister(self, path: Path) -> list[tuple[str, bool]]:
        if path == self.blocked:
            raise PermissionError(13, "Permission denied", str(path))
        return list_entries(path)

    def test_unreadable_subtree_is_reported_once(self) -> None:
        errors: list[TraversalError] = []

        outcome = collect(
            SearchRequest(root=self.root, file_name="target.txt"),
            lister=self.lister,
            on_error=errors.append,
        )

        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].path, self.blocked)
        self.assertIsInstance(errors[0].cause, PermissionError)
        self.assertEqual(outcome.errors, 1)
        self.assertTrue(outcome.file_found)
        self.assertEqual(outcome.stats.files_found, 1)

    def test_suppressed_errors_skip_the_handler(self) -> None:
        on_error = Mock()

        outcome = collect(
            SearchRequest(root=self.root, file_name="target.txt", suppress_errors=True),
            lister=self.lister,
            on_error=on_error,
        )

        on_error.assert_not_called()
        self.assertEqual(outcome.errors, 1)
        self.assertEqual(outcome.stats.files_found, 1)

    def test_unreadable_root_returns_empty_outcome(self) -> None:
        errors: list[TraversalError] = []

        outcome = collect(
            SearchRequest(root=self.root / "missing", file_name="target.txt"),
            on_error=errors.append,
        )

        self.assertEqual(len(errors), 1)
        self.assertFalse(outcome.file_found)
        self.assertEqual(outcome.matches, [])

    def test_callback_failure_propagates(self) -> None:
        def explode(_event: object) -> None:
            raise RuntimeError("sink failed")

        with self.assertRaises(RuntimeError):
            collect(SearchRequest(root=self.root, file_name="target.txt"), on_match=explode)


class ConcurrencyBudgetTests(EngineTestCase):
    def test_spawned_tasks_never_exceed_max_workers(self) -> None:
        make_wide_tree(self.root, depth=3, fanout=5)

        for max_workers in (1, 2, 4):
            with self.subTest(max_workers=max_workers):
                lock = threading.Lock()
                state = {"active": 0, "peak": 0}

                def lister(path: Path) -> list[tuple[str, bool]]:
                    with lock:
                        state["active"] += 1
                        state["peak"] = max(state["peak"], state["active"])
                    try:
                        time.sleep(0.002)
                        return list_entries(path)
                    finally:
                        with lock:
                            state["active"] -= 1

                outcome = collect(
                    SearchRequest(root=self.root, file_name="target.txt", max_workers=max_workers),
                    lister=lister,
                )

                self.assertLessEqual(outcome.peak_workers, max_workers)
                # Spawned tasks plus the root task running on the caller thread.
                self.assertLessEqual(state["peak"], max_workers + 1)
                self.assertEqual(outcome.stats.files_found, 156)

    def test_classify_is_non_exclusive(self) -> None:
        dispatcher = Dispatcher(
            SearchRequest(root=self.root, file_name="x", dir_name="x", regex_pattern="x"),
            re.compile("x"),
            stream=Mock(),
            cancel=Mock(),
            budget=Mock(),
            tracker=Mock(),
            pool=Mock(),
        )

        self.assertEqual(dispatcher.classify("x", is_dir=True), ["regex", "dir"])
        self.assertEqual(dispatcher.classify("x", is_dir=False), ["regex", "file"])
        self.assertEqual(dispatcher.classify("y", is_dir=False), [])


if __name__ == "__main__":
    unittest.main()
