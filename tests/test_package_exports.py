"""Tests for top-level package lazy exports."""

from __future__ import annotations

import unittest

import chatterm
from chatterm.focus import Mode


class PackageExportTests(unittest.TestCase):
    """Ensure __getattr__ and exported symbols behave as expected."""

    def test_lazy_exports_resolve_known_symbols(self) -> None:
        for name in chatterm.__all__:
            with self.subTest(name=name):
                self.assertIsNotNone(getattr(chatterm, name))
        self.assertTrue(callable(chatterm.load_config))
        self.assertIs(chatterm.Mode, Mode)

    def test_unknown_symbol_raises_attribute_error(self) -> None:
        with self.assertRaises(AttributeError):
            getattr(chatterm, "THIS_DOES_NOT_EXIST")


if __name__ == "__main__":
    unittest.main()
