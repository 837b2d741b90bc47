r"""@package testutils

Utilities to add more features to `unittest` classes.

This module provides a custom subclass of `unittest.TestCase`, namely
FuncTestCase, which obeys the global configuration settings in TestSettings.
The latter can be configured by the script invoking the test run (see
`tests.py`).
"""

import contextlib
import math
import sys
import time
import unittest
from unittest import mock
import warnings


__all__ = [
    "FuncTestCase",
    "TestSettings",
]


class FuncTestCase(unittest.TestCase):
    """Tweaked baseclass for unit tests.

    By deriving from this class, you:
        * Get timed individual tests (needs `verbosity=2`) if
          TestSettings.timing is true.
        * Can use a few more assertions useful for numerical results.
        * Can simulate platforms without code generation support using
          without_jit().
    """
    def setUp(self):
        super(FuncTestCase, self).setUp()
        self.startTime = time.time()

    def tearDown(self):
        if TestSettings.timing:
            duration = time.time() - self.startTime
            print("(%.4f seconds) ... " % (duration), file=sys.stderr, end='')
        super(FuncTestCase, self).tearDown()

    def assertIsNaN(self, value):
        r"""Assert that a value is a floating point NaN."""
        if not (isinstance(value, float) and math.isnan(value)):
            raise self.failureException("%r is not NaN" % (value,))

    def assertIdentical(self, a, b):
        r"""Assert two floats agree in every bit (NaN equals NaN)."""
        if math.isnan(a) and math.isnan(b):
            return
        self.assertEqual(a.hex(), b.hex())

    def assertListAlmostEqual(self, a, b, places=7):
        r"""Assert that two iterables contain (almost) the same values."""
        if len(a) != len(b):
            raise self.failureException("Lists have different lengths (%d != %d)" % (len(a), len(b)))
        fails = [i for i in range(len(a)) if round(abs(a[i]-b[i]), places) != 0]
        if fails:
            msg = "%d elements differ.\n" % len(fails)
            msg += "\n".join(["  [{i}] {a} != {b}".format(i=i, a=a[i], b=b[i])
                              for i in fails])
            raise self.failureException(msg)

    @contextlib.contextmanager
    def without_jit(self):
        r"""Context in which code generation appears to be unavailable."""
        with mock.patch("parsedfunc.flags.jit_available", return_value=False):
            yield

    @contextlib.contextmanager
    def recorded_warnings(self):
        r"""Context collecting all warnings issued inside it in a list."""
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            yield caught


class TestSettings(object):
    """Global settings for tests."""
    ## Stop test run on first fail/error.
    failfast = False
    ## Whether output is buffered.\ Just information, cannot be used to toggle output buffering.
    buffering = False
    ## Whether the timing for each test case should be printed.
    timing = False
