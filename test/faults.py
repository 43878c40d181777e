# python
"""
Faults module behavioral tests (hierarchy, options, rich rendering).

Scope
- Validate the fault hierarchy callers rely on when catching.
- Validate read-only options and the rendered header/message/hint.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from rich.console import Console

from flotilla.faults import (
    BindingError,
    DeclarationError,
    FaultCode,
    FlotillaError,
    HelpRequested,
    MissingArgumentError,
    MissingOptionError,
    OrderingError,
    TargetNotFound,
    TaskArityError,
    UnknownOptionError,
)


class TestHierarchy(TestCase):
    """Behavioral tests for fault types."""

    def testDeclarationFaults(self):
        self.assertTrue(issubclass(OrderingError, DeclarationError))
        self.assertTrue(issubclass(TaskArityError, DeclarationError))

    def testBindingFaults(self):
        self.assertTrue(issubclass(UnknownOptionError, BindingError))
        self.assertTrue(issubclass(MissingOptionError, MissingArgumentError))
        self.assertFalse(issubclass(TargetNotFound, BindingError))

    def testHelpIsNotAFault(self):
        self.assertFalse(issubclass(HelpRequested, FlotillaError))
        self.assertEqual(HelpRequested("-h").token, "-h")

    def testCodes(self):
        self.assertEqual(OrderingError.code, FaultCode.ORDERING)
        self.assertEqual(FaultCode.TARGET_NOT_FOUND.normalize(), "11131")


class TestRendering(TestCase):
    """Behavioral tests for fault options and rich output."""

    def testOptionsAreReadOnly(self):
        fault = UnknownOptionError("unknown option '--x'", input="--x")
        self.assertEqual(str(fault), "unknown option '--x'")
        self.assertEqual(fault.options["input"], "--x")
        with self.assertRaises(TypeError):
            fault.options["input"] = "--y"

    def testRichRendering(self):
        stream = io.StringIO()
        console = Console(file=stream, color_system=None, width=120)
        console.print(MissingArgumentError("missing required argument 'first'", label="my_counter", hint="pass it"))
        output = stream.getvalue()
        self.assertIn("my_counter", output)
        self.assertIn(str(FaultCode.MISSING_ARGUMENT.value), output)
        self.assertIn("Missing Argument", output)
        self.assertIn("missing required argument 'first'", output)
        self.assertIn("pass it", output)


if __name__ == "__main__":
    unittest.main()
