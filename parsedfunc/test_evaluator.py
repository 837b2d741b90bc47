#!/usr/bin/env python3

import unittest
import sys

from testutils import FuncTestCase
from .flags import FeatureFlags
from .numfunc import CompiledFunction
from .evaluator import evaluate, eval_error_message, EvaluationError


def _flags(fail):
    return FeatureFlags(jit_enabled=False, derivative_cache_enabled=True,
                        auto_optimize_enabled=True, fpoptimizer_disabled=False,
                        fail_on_eval_error=fail)


class _FakeFunction(CompiledFunction):
    def __init__(self, value, code):
        super(_FakeFunction, self).__init__()
        self.value = value
        self.code = code
        self.calls = []
    def configure(self, flags): pass
    def add_constant(self, name, value): return True
    def parse(self, text, variables): return True
    def evaluate(self, params=None):
        self.calls.append(params)
        return self.value
    def eval_error(self): return self.code


class TestEvalErrorMessage(FuncTestCase):
    def test_taxonomy(self):
        self.assertEqual(eval_error_message(0), "Unknown")
        self.assertEqual(eval_error_message(1), "Division by zero")
        self.assertEqual(eval_error_message(2), "Square root of a negative value")
        self.assertEqual(eval_error_message(3), "Logarithm of negative value")
        self.assertEqual(eval_error_message(4),
                         "Trigonometric error (asin or acos of illegal value)")
        self.assertEqual(eval_error_message(5), "Maximum recursion level reached")

    def test_out_of_range(self):
        for code in (-1, 6, 42):
            self.assertEqual(eval_error_message(code), "Unknown")


class TestEvaluate(FuncTestCase):
    def test_zero_function(self):
        for fail in (False, True):
            result = evaluate(None, [1.0, -2.0], _flags(fail))
            self.assertIs(type(result), float)
            self.assertEqual(result, 0.0)

    def test_success(self):
        f = _FakeFunction(2.5, 0)
        self.assertEqual(evaluate(f, [1.0], _flags(True)), 2.5)
        self.assertEqual(f.calls, [[1.0]])

    def test_nan_on_error(self):
        for code in range(1, 6):
            f = _FakeFunction(1.0, code)
            self.assertIsNaN(evaluate(f, [], _flags(False)))

    def test_fail_on_error(self):
        for code in range(1, 6):
            f = _FakeFunction(1.0, code)
            with self.assertRaises(EvaluationError) as cm:
                evaluate(f, [], _flags(True))
            self.assertEqual(cm.exception.code, code)
            self.assertEqual(cm.exception.reason, eval_error_message(code))
            self.assertIn(eval_error_message(code), str(cm.exception))
        with self.assertRaisesRegex(EvaluationError, "Division by zero"):
            evaluate(_FakeFunction(1.0, 1), [], _flags(True))

    def test_unknown_code(self):
        for code in (-3, 6, 99):
            with self.assertRaises(EvaluationError) as cm:
                evaluate(_FakeFunction(1.0, code), [], _flags(True))
            self.assertEqual(cm.exception.reason, "Unknown")
            self.assertIsNaN(evaluate(_FakeFunction(1.0, code), [], _flags(False)))


def run_tests():
    suite = unittest.TestLoader().loadTestsFromModule(sys.modules[__name__])
    return len(unittest.TextTestRunner(verbosity=2).run(suite).failures)


if __name__ == '__main__':
    unittest.main()
