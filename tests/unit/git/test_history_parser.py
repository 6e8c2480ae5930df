"""Tests for commit log and name-status parsing."""

from __future__ import annotations

import unittest

from diffwatch.git.history import (
    MESSAGE_MAX_LENGTH,
    ChangedFileRecord,
    CommitRecord,
    parse_log_output,
    parse_name_status,
    short_hash,
    truncate_message,
)


def _log_record(full_hash: str, message: str, author: str, date: str) -> str:
    return "\x1f".join([full_hash, message, author, date]) + "\x1e\n"


class CommitParsingTests(unittest.TestCase):
    def test_short_hash_is_first_seven_characters(self) -> None:
        self.assertEqual(short_hash("abcdef1234567890"), "abcdef1")

    def test_long_messages_truncate_to_limit_with_ellipsis(self) -> None:
        message = "x" * 80
        truncated = truncate_message(message)
        self.assertEqual(len(truncated), MESSAGE_MAX_LENGTH)
        self.assertEqual(truncated, "x" * 57 + "...")
        self.assertEqual(truncate_message("short"), "short")
        self.assertEqual(truncate_message("y" * 60), "y" * 60)

    def test_log_output_keeps_git_order(self) -> None:
        output = _log_record(
            "abcdef1234567890",
            "Fix the thing",
            "Ada",
            "2024-01-02 10:00:00 +0000",
        ) + _log_record("1234567abcdef", "Initial commit", "Bob", "2024-01-01 09:00:00 +0000")

        commits = parse_log_output(output)

        self.assertEqual(
            commits,
            [
                CommitRecord("abcdef1", "Fix the thing", "Ada", "2024-01-02 10:00:00 +0000"),
                CommitRecord("1234567", "Initial commit", "Bob", "2024-01-01 09:00:00 +0000"),
            ],
        )

    def test_display_message_truncates_but_record_keeps_full_message(self) -> None:
        commit = CommitRecord("abcdef1", "m" * 70, "Ada", "2024-01-02")
        self.assertEqual(len(commit.message), 70)
        self.assertTrue(commit.display_message().endswith("..."))

    def test_messages_may_contain_pipes_and_spaces(self) -> None:
        commits = parse_log_output(_log_record("f" * 40, "a | b | c", "Some One", "2024-01-01"))
        self.assertEqual(commits[0].message, "a | b | c")
        self.assertEqual(commits[0].author, "Some One")

    def test_empty_and_malformed_output(self) -> None:
        self.assertEqual(parse_log_output(""), [])
        self.assertEqual(parse_log_output("garbage\x1e\n"), [])


class NameStatusParsingTests(unittest.TestCase):
    def test_status_then_path(self) -> None:
        output = "M\tsrc/app.ts\nA\tREADME.md\nD\told.txt\n"
        self.assertEqual(
            parse_name_status(output),
            [
                ChangedFileRecord("src/app.ts", "M"),
                ChangedFileRecord("README.md", "A"),
                ChangedFileRecord("old.txt", "D"),
            ],
        )

    def test_rename_rows_keep_raw_status_and_join_remaining_tokens(self) -> None:
        records = parse_name_status("R100\told.ts\tnew.ts\n")
        self.assertEqual(records, [ChangedFileRecord("old.ts new.ts", "R100")])

    def test_blank_and_short_lines_are_skipped(self) -> None:
        self.assertEqual(parse_name_status("\n\nM\n"), [])


if __name__ == "__main__":
    unittest.main()
