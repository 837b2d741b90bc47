r"""@package parsedfunc.evaluator

Evaluation of compiled functions with error classification.

A numfunc.CompiledFunction does not raise on numerical problems. Instead, it
returns a value and provides an error code through `eval_error()`. The
evaluate() function in this module checks this code and, depending on the
`fail_on_eval_error` feature flag, either raises an EvaluationError or
returns NaN so that the problem propagates through subsequent computations.

`None` may be passed instead of a function to represent a function known to
vanish identically (e.g. a derivative w.r.t. a variable the function does not
depend on). Its value is `0.0`.
"""

import numpy as np

from .numfunc import ParsedFunctionError


__all__ = [
    "EVAL_ERROR_MESSAGES",
    "EvaluationError",
    "eval_error_message",
    "evaluate",
]


## Classification of evaluation error codes. Codes not listed map to the
## first entry.
EVAL_ERROR_MESSAGES = (
    "Unknown",
    "Division by zero",
    "Square root of a negative value",
    "Logarithm of negative value",
    "Trigonometric error (asin or acos of illegal value)",
    "Maximum recursion level reached",
)


class EvaluationError(ParsedFunctionError):
    r"""Raised when a function evaluation fails and failing is requested."""
    def __init__(self, code):
        ## Error code as returned by the function's `eval_error()`.
        self.code = code
        ## Human readable classification of the error code.
        self.reason = eval_error_message(code)
        super(EvaluationError, self).__init__(
            "Function evaluation encountered an error: %s" % self.reason
        )


def eval_error_message(code):
    r"""Return the classification message for an error code."""
    if code < 0 or code >= len(EVAL_ERROR_MESSAGES):
        code = 0
    return EVAL_ERROR_MESSAGES[code]


def evaluate(func, params, flags):
    r"""Evaluate a compiled function applying the error policy.

    @param func
        The numfunc.CompiledFunction to evaluate or `None` for the zero
        function.
    @param params
        Values of the function's variables.
    @param flags
        flags.FeatureFlags controlling whether errors are fatal.

    @return The function value. If an error occurred and
        `flags.fail_on_eval_error` is `False`, NaN is returned.

    @b Raises

    EvaluationError if an error occurred and `flags.fail_on_eval_error` is
    `True`.
    """
    if func is None:
        return 0.0
    result = func.evaluate(params)
    error_code = func.eval_error()
    if error_code == 0:
        return result
    if flags.fail_on_eval_error:
        raise EvaluationError(error_code)
    return np.nan
