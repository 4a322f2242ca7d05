"""Tests for message values and model references."""

from __future__ import annotations

import unittest

from chatterm.message import Message, MessageStatus, ModelRef, Role


class ModelRefTests(unittest.TestCase):
    """Validate parsing and provider naming of model references."""

    def test_bare_name_gets_library_owner(self) -> None:
        ref = ModelRef.parse("llama3.2")
        self.assertEqual(ref, ModelRef("library", "llama3.2"))
        self.assertEqual(ref.provider_name, "llama3.2")
        self.assertEqual(str(ref), "library/llama3.2")

    def test_owned_name_keeps_owner_for_provider(self) -> None:
        ref = ModelRef.parse(" someone/tiny ")
        self.assertEqual(ref.owner, "someone")
        self.assertEqual(ref.provider_name, "someone/tiny")

    def test_invalid_references_raise(self) -> None:
        for raw in ("", "   ", "/name", "owner/"):
            with self.subTest(raw=raw):
                with self.assertRaises(ValueError):
                    ModelRef.parse(raw)


class MessageTests(unittest.TestCase):
    """Validate immutable message helpers and persisted shape."""

    def test_with_helpers_return_new_instances(self) -> None:
        original = Message(Role.ASSISTANT, "", MessageStatus.STARTING)
        updated = original.with_content("Hel").with_status(None)
        self.assertEqual(original.content, "")
        self.assertEqual(updated.content, "Hel")
        self.assertIsNone(updated.status)

    def test_to_dict_omits_absent_fields(self) -> None:
        self.assertEqual(Message(Role.USER, "hi").to_dict(), {"role": "user", "content": "hi"})

    def test_from_dict_restores_status_and_model(self) -> None:
        message = Message(
            Role.ASSISTANT, "answer", MessageStatus.FAILED, ModelRef.parse("qwen2.5")
        )
        self.assertEqual(Message.from_dict(message.to_dict()), message)

    def test_from_dict_rejects_unknown_role(self) -> None:
        with self.assertRaises(ValueError):
            Message.from_dict({"role": "narrator", "content": "x"})

    def test_from_dict_rejects_non_string_content(self) -> None:
        with self.assertRaises(ValueError):
            Message.from_dict({"role": "user", "content": 5})


if __name__ == "__main__":
    unittest.main()
