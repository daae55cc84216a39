import json
import sys
import tempfile
import unittest
from pathlib import Path

from report_analyzer.parsers.jsonl import (
    SessionBuilder,
    content_text,
    decode_line,
    message_from_record,
    parse_content,
    parse_file,
)


def _jsonl(records: list) -> str:
    return "\n".join(r if isinstance(r, str) else json.dumps(r, ensure_ascii=False) for r in records)


class ContentTextTests(unittest.TestCase):
    def test_plain_string_is_returned_as_is(self) -> None:
        self.assertEqual(content_text("  keep  spacing "), "  keep  spacing ")

    def test_list_fragments_are_joined_with_spaces(self) -> None:
        content = ["first", {"type": "text", "text": "second"}, {"type": "image"}, "", "third"]
        self.assertEqual(content_text(content), "first second third")

    def test_wrapper_object_prefers_text_then_nested_content(self) -> None:
        self.assertEqual(content_text({"text": "direct"}), "direct")
        self.assertEqual(content_text({"content": "nested"}), "nested")
        self.assertEqual(content_text({"content": [{"text": "deep"}]}), "deep")

    def test_unknown_shapes_resolve_to_empty(self) -> None:
        self.assertEqual(content_text(None), "")
        self.assertEqual(content_text(42), "")
        self.assertEqual(content_text({"type": "tool_use"}), "")


class MessageRecordTests(unittest.TestCase):
    def test_type_message_without_role_defaults_to_user(self) -> None:
        message = message_from_record({"type": "message", "content": "hi"})
        self.assertIsNotNone(message)
        self.assertEqual(message.role, "user")

    def test_text_field_and_created_at_are_fallbacks(self) -> None:
        message = message_from_record({"role": "assistant", "text": "answer", "created_at": "2024-01-01T00:00:00Z"})
        self.assertEqual(message.content, "answer")
        self.assertEqual(message.timestamp, "2024-01-01T00:00:00Z")

    def test_records_without_role_or_message_type_are_ignored(self) -> None:
        self.assertIsNone(message_from_record({"type": "summary", "summary": "x"}))
        self.assertIsNone(message_from_record(["not", "an", "object"]))
        self.assertIsNone(message_from_record("string"))

    def test_non_string_timestamp_is_stringified(self) -> None:
        message = message_from_record({"role": "user", "content": "x", "timestamp": 1700000000})
        self.assertEqual(message.timestamp, "1700000000")

    def test_decode_line_logs_and_skips_malformed_json(self) -> None:
        with self.assertLogs("claude_report.parser", level="WARNING") as logs:
            self.assertIsNone(decode_line("{not json"))
        self.assertIn("Failed to parse line", logs.output[0])


class ParseContentTests(unittest.TestCase):
    def test_blank_lines_are_skipped_and_messages_keep_order(self) -> None:
        text = _jsonl([
            {"type": "message", "role": "user", "content": "hello world", "timestamp": "2024-01-01T10:00:00Z"},
            "",
            {"type": "message", "role": "assistant", "content": "hi ```code``` done", "timestamp": "2024-01-01T10:00:05Z"},
        ])
        sessions = parse_content(text, session_id="a.jsonl")

        self.assertEqual(len(sessions), 1)
        session = sessions[0]
        self.assertEqual(session.id, "a.jsonl")
        self.assertEqual([m.role for m in session.messages], ["user", "assistant"])
        self.assertEqual(session.messages[1].content, "hi ```code``` done")

    def test_only_malformed_lines_yield_no_sessions(self) -> None:
        with self.assertLogs("claude_report.parser", level="WARNING") as logs:
            sessions = parse_content("{oops\nnot json either\n")
        self.assertEqual(sessions, [])
        self.assertEqual(len(logs.output), 2)

    def test_malformed_line_count_is_kept_in_metadata(self) -> None:
        text = _jsonl([{"role": "user", "content": "ok"}, "{broken"])
        with self.assertLogs("claude_report.parser", level="WARNING"):
            sessions = parse_content(text)
        self.assertEqual(sessions[0].metadata.get("malformedLines"), 1)

    @unittest.skipUnless(hasattr(sys, "get_int_max_str_digits"), "integer digit limit needs Python 3.11+")
    def test_oversized_integer_line_is_skipped(self) -> None:
        text = "\n".join([
            json.dumps({"role": "user", "content": "before"}),
            '{"role": "assistant", "content": "x", "n": ' + "1" * 5000 + "}",
            json.dumps({"role": "assistant", "content": "after"}),
        ])
        with self.assertLogs("claude_report.parser", level="WARNING") as logs:
            sessions = parse_content(text)
        self.assertEqual([m.content for m in sessions[0].messages], ["before", "after"])
        self.assertEqual(sessions[0].metadata["malformedLines"], 1)
        self.assertIn("Failed to parse line", logs.output[0])

    def test_deeply_nested_line_is_skipped(self) -> None:
        text = json.dumps({"role": "user", "content": "kept"}) + "\n" + "[" * 100000
        with self.assertLogs("claude_report.parser", level="WARNING"):
            sessions = parse_content(text)
        self.assertEqual([m.content for m in sessions[0].messages], ["kept"])
        self.assertEqual(sessions[0].metadata["malformedLines"], 1)

    def test_generated_session_id_and_created_at(self) -> None:
        sessions = parse_content(_jsonl([{"role": "user", "content": "x"}]))
        self.assertTrue(sessions[0].id.startswith("session-"))
        self.assertTrue(sessions[0].createdAt.endswith("Z"))

    def test_content_round_trips_exactly(self) -> None:
        text = 'line "one"\nline two\twith tab and 한글 ```py\nprint(1)\n```'
        sessions = parse_content(_jsonl([{"role": "user", "content": text}]))
        self.assertEqual(sessions[0].messages[0].content, text)

    def test_crlf_line_endings_are_accepted(self) -> None:
        text = json.dumps({"role": "user", "content": "a"}) + "\r\n" + json.dumps({"role": "assistant", "content": "b"}) + "\r\n"
        sessions = parse_content(text)
        self.assertEqual([m.content for m in sessions[0].messages], ["a", "b"])


class ParseFileTests(unittest.TestCase):
    def _write(self, text: str, name: str = "session.jsonl") -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / name
        path.write_text(text, encoding="utf-8")
        return path

    def test_file_and_content_parsing_agree(self) -> None:
        text = _jsonl([
            {"role": "user", "content": [{"text": "fix"}, {"text": "the bug"}], "timestamp": "2024-02-01T00:00:00Z"},
            {"role": "assistant", "text": "done", "created_at": "2024-02-01T00:01:00Z"},
            {"type": "summary"},
        ])
        path = self._write(text)

        from_file = parse_file(path, session_id="s")
        from_text = parse_content(text, session_id="s")

        self.assertEqual(
            [m.model_dump() for m in from_file[0].messages],
            [m.model_dump() for m in from_text[0].messages],
        )
        self.assertEqual(from_file[0].metadata["sourcePath"], str(path))

    def test_missing_file_raises(self) -> None:
        with self.assertRaises(OSError):
            parse_file(Path(tempfile.gettempdir()) / "definitely-missing-claude-report.jsonl")

    def test_invalid_utf8_raises(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "bad.jsonl"
        path.write_bytes(b'{"role": "user", "content": "\xff\xfe"}\n')
        with self.assertRaises(UnicodeDecodeError):
            parse_file(path)


class SessionBuilderTests(unittest.TestCase):
    def test_feed_returns_recognized_message(self) -> None:
        builder = SessionBuilder("x")
        self.assertIsNone(builder.feed("   \n"))
        message = builder.feed(json.dumps({"role": "system", "content": "boot"}) + "\n")
        self.assertEqual(message.role, "system")
        self.assertEqual(len(builder.finish()[0].messages), 1)


if __name__ == "__main__":
    unittest.main()
