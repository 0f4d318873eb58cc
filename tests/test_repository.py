"""Tests for parsing and ordering repository state."""

from __future__ import annotations

import unittest
from pathlib import Path

from branchlet.exceptions import GitCommandError, GitErrorKind
from branchlet.models import Branch
from branchlet.repository import (
    RepositoryReader,
    merge_remote_branches,
    order_by_recency,
    parse_ahead_behind,
    parse_branch_refs,
    parse_recent_checkouts,
    parse_worktree_porcelain,
)
from tests.fakes import porcelain, repository

ROOT = Path("/home/u/myrepo")

LISTING = """\
worktree /home/u/myrepo
HEAD 1111111111111111111111111111111111111111
branch refs/heads/main

worktree /home/u/myrepo.worktree/feat
HEAD 2222222222222222222222222222222222222222
branch refs/heads/feature/x

worktree /home/u/myrepo.worktree/scratch
HEAD 3333333333333333333333333333333333333333
detached


"""


def _branch(name: str, remote: bool = False) -> Branch:
    return Branch(name=name, commit="abc1234", is_remote=remote)


class ParseWorktreePorcelainTests(unittest.TestCase):
    def test_keeps_every_listed_path(self) -> None:
        worktrees = parse_worktree_porcelain(LISTING, ROOT)

        self.assertEqual(
            [str(worktree.path) for worktree in worktrees],
            [
                "/home/u/myrepo",
                "/home/u/myrepo.worktree/feat",
                "/home/u/myrepo.worktree/scratch",
            ],
        )

    def test_blocks_without_blank_separator_are_split_on_worktree_line(self) -> None:
        text = "worktree /a\nHEAD 1\nbranch refs/heads/one\nworktree /b\nHEAD 2\nbranch refs/heads/two"

        worktrees = parse_worktree_porcelain(text)

        self.assertEqual([(str(w.path), w.branch) for w in worktrees], [("/a", "one"), ("/b", "two")])

    def test_fields_are_parsed(self) -> None:
        feat = parse_worktree_porcelain(LISTING, ROOT)[1]

        self.assertEqual(feat.branch, "feature/x")
        self.assertEqual(feat.commit, "2" * 40)
        self.assertEqual(feat.name, "feat")
        self.assertFalse(feat.is_main)

    def test_missing_branch_line_is_detached(self) -> None:
        scratch = parse_worktree_porcelain(LISTING, ROOT)[2]

        self.assertEqual(scratch.branch, "detached")
        self.assertTrue(scratch.is_detached)

    def test_root_is_main_regardless_of_trailing_slash(self) -> None:
        slashed = LISTING.replace("worktree /home/u/myrepo\n", "worktree /home/u/myrepo/\n")
        for listing in (LISTING, slashed):
            for root in ("/home/u/myrepo", "/home/u/myrepo/"):
                with self.subTest(root=root, slashed=listing is slashed):
                    worktrees = parse_worktree_porcelain(listing, root)
                    self.assertEqual([w.is_main for w in worktrees], [True, False, False])

    def test_bare_marks_main(self) -> None:
        worktrees = parse_worktree_porcelain("worktree /srv/repo.git\nbare\n\nworktree /srv/wt\nHEAD 1\nbranch refs/heads/a\n")

        self.assertTrue(worktrees[0].is_main)
        self.assertFalse(worktrees[1].is_main)

    def test_empty_output(self) -> None:
        self.assertEqual(parse_worktree_porcelain(""), [])


class ParseBranchRefsTests(unittest.TestCase):
    def test_marks_current_and_default(self) -> None:
        text = "feature|abc1234|2024-05-01T10:00:00+02:00\nmain|def5678|2024-04-01T10:00:00+00:00\n"

        branches = parse_branch_refs(text, current_branch="feature", default_branch="main")

        self.assertEqual([b.name for b in branches], ["feature", "main"])
        self.assertTrue(branches[0].is_current)
        self.assertFalse(branches[0].is_default)
        self.assertTrue(branches[1].is_default)
        self.assertEqual(branches[0].last_used.year, 2024)

    def test_skips_malformed_lines(self) -> None:
        branches = parse_branch_refs("\nbroken line\nok|abc|2024-01-01T00:00:00+00:00\n")

        self.assertEqual([b.name for b in branches], ["ok"])

    def test_remote_listing_excludes_head_and_bare_remote_names(self) -> None:
        text = (
            "origin/HEAD|aaa|2024-01-01T00:00:00+00:00\n"
            "origin|aaa|2024-01-01T00:00:00+00:00\n"
            "origin/main|aaa|2024-01-01T00:00:00+00:00\n"
            "upstream/feature/y|bbb|2024-01-01T00:00:00+00:00\n"
        )

        branches = parse_branch_refs(text, remote=True)

        self.assertEqual([b.name for b in branches], ["origin/main", "upstream/feature/y"])
        for branch in branches:
            self.assertTrue(branch.is_remote)
            self.assertFalse(branch.name.endswith("/HEAD"))
            self.assertIn("/", branch.name)


class RecencyTests(unittest.TestCase):
    def test_destinations_are_deduplicated_most_recent_first(self) -> None:
        reflog = "\n".join(
            [
                "checkout: moving from B to A",
                "checkout: moving from C to B",
                "checkout: moving from A to C",
                "checkout: moving from main to A",
            ]
        )

        self.assertEqual(parse_recent_checkouts(reflog), ["A", "B", "C"])

    def test_commit_ids_are_never_ranked(self) -> None:
        sha = "0123456789abcdef0123456789abcdef01234567"
        reflog = f"checkout: moving from main to {sha}\ncheckout: moving from {sha} to main\n"

        self.assertEqual(parse_recent_checkouts(reflog), ["main"])

    def test_recent_branches_float_to_top_and_rest_keep_order(self) -> None:
        branches = [_branch("D"), _branch("C"), _branch("B"), _branch("A")]

        ordered = order_by_recency(branches, ["A", "B", "C"])

        self.assertEqual([b.name for b in ordered], ["A", "B", "C", "D"])

    def test_unranked_branches_keep_commit_date_order(self) -> None:
        branches = [_branch("x"), _branch("recent"), _branch("y"), _branch("z")]

        ordered = order_by_recency(branches, ["recent"])

        self.assertEqual([b.name for b in ordered], ["recent", "x", "y", "z"])


class MergeRemoteBranchesTests(unittest.TestCase):
    def test_remote_twin_of_local_branch_is_skipped(self) -> None:
        local = [_branch("main"), _branch("feature/x")]
        remote = [_branch("origin/main", True), _branch("origin/feature/x", True), _branch("origin/only-remote", True)]

        merged = merge_remote_branches(local, remote)

        self.assertEqual([b.name for b in merged], ["main", "feature/x", "origin/only-remote"])
        local_names = {b.name for b in local}
        remote_entries = [b for b in merged if b.is_remote]
        self.assertFalse(any(b.local_name in local_names for b in remote_entries))


class ParseAheadBehindTests(unittest.TestCase):
    def test_left_is_behind_right_is_ahead(self) -> None:
        self.assertEqual(parse_ahead_behind("3\t5\n"), (5, 3))

    def test_garbage_raises(self) -> None:
        with self.assertRaises(ValueError):
            parse_ahead_behind("x y")


class RepositoryReaderTests(unittest.TestCase):
    def test_branch_status_against_itself_is_none(self) -> None:
        fake = repository(ROOT, current="main", default="main")
        reader = RepositoryReader(ROOT, runner=fake)

        self.assertIsNone(reader.branch_status("main"))
        self.assertEqual(fake.called("rev-list"), [])

    def test_branch_status_falls_back_to_current_branch(self) -> None:
        fake = repository(ROOT, current="develop", default="feature")
        fake.on("rev-list", "--left-right", "--count", "develop...feature", stdout="1\t4\n")
        reader = RepositoryReader(ROOT, runner=fake)

        status = reader.branch_status("feature")

        self.assertEqual((status.ahead, status.behind, status.upstream_branch), (4, 1, "develop"))

    def test_branch_status_is_none_when_git_fails(self) -> None:
        fake = repository(ROOT, current="main", default="main").on("rev-list", returncode=128, stderr="bad")
        reader = RepositoryReader(ROOT, runner=fake)

        self.assertIsNone(reader.branch_status("feature"))

    def test_list_worktrees_fills_clean_and_status(self) -> None:
        fake = repository(ROOT)
        fake.on("worktree", "list", "--porcelain", stdout=porcelain((str(ROOT), "main"), ("/home/u/myrepo.worktree/feat", "feat")))
        fake.on("rev-list", "--left-right", "--count", "main...feat", stdout="0\t2\n")
        reader = RepositoryReader(ROOT, runner=fake)

        main, feat = reader.list_worktrees()

        self.assertTrue(main.is_main)
        self.assertIsNone(main.branch_status)
        self.assertTrue(feat.is_clean)
        self.assertEqual(feat.branch_status.ahead, 2)

    def test_list_worktrees_raises_classified_error(self) -> None:
        fake = repository(ROOT).on(
            "worktree", "list", returncode=128, stderr="fatal: not a git repository (or any parent)"
        )
        reader = RepositoryReader(ROOT, runner=fake)

        with self.assertRaises(GitCommandError) as ctx:
            reader.list_worktrees()

        self.assertIs(ctx.exception.kind, GitErrorKind.NOT_A_REPOSITORY)

    def test_list_branches_orders_by_recency_and_merges_remotes(self) -> None:
        fake = repository(ROOT)
        fake.on(
            "for-each-ref",
            "--sort=-committerdate",
            "--format=%(refname:short)|%(objectname:short)|%(committerdate:iso8601-strict)",
            "refs/heads/",
            stdout="newest|a|2024-03-01T00:00:00+00:00\nmain|b|2024-02-01T00:00:00+00:00\nold|c|2024-01-01T00:00:00+00:00\n",
        )
        fake.on(
            "for-each-ref",
            "--sort=-committerdate",
            "--format=%(refname:short)|%(objectname:short)|%(committerdate:iso8601-strict)",
            "refs/remotes/",
            stdout="origin/HEAD|a|2024-03-01T00:00:00+00:00\norigin/main|b|2024-02-01T00:00:00+00:00\norigin/new|d|2024-02-01T00:00:00+00:00\n",
        )
        fake.on("reflog", stdout="checkout: moving from main to old\n")
        reader = RepositoryReader(ROOT, runner=fake)

        self.assertEqual([b.name for b in reader.list_branches()], ["old", "newest", "main"])
        self.assertEqual(
            [b.name for b in reader.list_branches(include_remote=True)],
            ["old", "newest", "main", "origin/new"],
        )

    def test_supplementary_lookups_degrade_to_empty(self) -> None:
        fake = repository(ROOT)
        fake.on("for-each-ref", returncode=1, stderr="boom")
        fake.on("reflog", returncode=1, stderr="boom")
        reader = RepositoryReader(ROOT, runner=fake)

        self.assertEqual(reader.list_remote_branches(), [])
        self.assertEqual(reader.recent_branches(), [])

    def test_repository_info_snapshot(self) -> None:
        fake = repository(ROOT, current="feature/x", default="main")
        fake.on("for-each-ref", stdout="feature/x|a|2024-03-01T00:00:00+00:00\nmain|b|2024-02-01T00:00:00+00:00\n")
        reader = RepositoryReader(ROOT, runner=fake)

        info = reader.repository_info()

        self.assertEqual(info.path, ROOT)
        self.assertEqual(info.current_branch, "feature/x")
        self.assertEqual(info.default_branch, "main")
        self.assertEqual([str(worktree.path) for worktree in info.worktrees], [str(ROOT)])
        self.assertEqual([branch.name for branch in info.branches], ["feature/x", "main"])
        self.assertTrue(info.branches[0].is_current)


if __name__ == "__main__":
    unittest.main()
