import unittest

from copilot_terminal.services.session_controller import SessionController, format_ms
from copilot_terminal.sessions import Session, SessionEntry


class SessionControllerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.controller = SessionController(line_prefix="copilot> ")
        self.sessions = [
            Session(id="abcdef0123456789", created_at=0, last_updated_at=1_000),
            Session(id="abd00000", created_at=0, last_updated_at=500),
            Session(id="ffff", created_at=0, last_updated_at=0, entries=[SessionEntry(timestamp=0, prompt="p")]),
        ]

    def test_format_ms(self) -> None:
        self.assertEqual("1970-01-01T00:00:01+00:00", format_ms(1_000))

    def test_short_id(self) -> None:
        self.assertEqual("abcdef01", self.controller.short_id("abcdef0123456789"))
        self.assertEqual("ffff", self.controller.short_id("ffff"))

    def test_list_marks_active_session(self) -> None:
        lines = self.controller.format_session_list(self.sessions, active_session_id="ffff")
        self.assertEqual(3, len(lines))
        self.assertTrue(lines[2].startswith("copilot> * [ffff]"))
        self.assertIn("entries=1", lines[2])
        self.assertTrue(lines[0].startswith("copilot>   [abcdef01]"))

    def test_empty_list(self) -> None:
        self.assertEqual(
            ["copilot> No saved sessions."],
            self.controller.format_session_list([], active_session_id=None),
        )

    def test_resolve_exact_and_prefix(self) -> None:
        self.assertEqual("ffff", self.controller.resolve_session_id(self.sessions, "ffff"))
        self.assertEqual("abcdef0123456789", self.controller.resolve_session_id(self.sessions, "abc"))
        self.assertIsNone(self.controller.resolve_session_id(self.sessions, "zzz"))
        self.assertIsNone(self.controller.resolve_session_id(self.sessions, "  "))

    def test_resolve_ambiguous_prefix(self) -> None:
        with self.assertRaises(ValueError):
            self.controller.resolve_session_id(self.sessions, "ab")

    def test_out_of_range_timestamps_do_not_break_listing(self) -> None:
        broken = Session(id="broken", created_at=10**20, last_updated_at=10**20)

        lines = self.controller.format_session_list([broken], active_session_id=None)

        self.assertIn(f"created={10**20}", lines[0])
