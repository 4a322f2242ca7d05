"""Tests for conversation line rendering."""

from __future__ import annotations

import unittest

from chatterm.conversation import Conversation
from chatterm.message import Message, MessageStatus, ModelRef, Role
from chatterm.rendering import message_header, render_conversation, wrap_content


class RenderingTests(unittest.TestCase):
    """Validate headers, wrapping and separators."""

    def test_headers(self) -> None:
        model = ModelRef.parse("llama3.2")
        self.assertEqual(message_header(Message(Role.USER, "hi")), "User")
        self.assertEqual(message_header(Message(Role.SYSTEM, "s")), "System")
        self.assertEqual(
            message_header(Message(Role.ASSISTANT, "", MessageStatus.STARTING, model)),
            "Assistant: (library/llama3.2) [starting]",
        )

    def test_wrap_keeps_blank_lines_and_width(self) -> None:
        lines = wrap_content("one two three four\n\nfive", 9)
        self.assertEqual(lines, ["one two", "three", "four", "", "five"])
        self.assertTrue(all(len(line) <= 9 for line in lines))

    def test_long_words_are_broken(self) -> None:
        self.assertEqual(wrap_content("abcdefgh", 3), ["abc", "def", "gh"])

    def test_render_conversation_structure(self) -> None:
        conversation = Conversation(
            messages=[Message(Role.USER, "hello"), Message(Role.ASSISTANT, "")]
        )
        lines = render_conversation(conversation, width=12)

        self.assertEqual([line.kind for line in lines], ["header", "body", "separator"] * 2)
        self.assertEqual([line.message_index for line in lines], [0, 0, 0, 1, 1, 1])
        self.assertEqual(lines[2].text, "-" * 10)
        self.assertTrue(all(len(line.text) <= 10 for line in lines))

    def test_tiny_width_is_clamped(self) -> None:
        lines = render_conversation(Conversation(messages=[Message(Role.USER, "ab")]), width=1)
        self.assertEqual(lines[-1].text, "-")


if __name__ == "__main__":
    unittest.main()
