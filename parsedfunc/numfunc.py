r"""@package parsedfunc.numfunc

Base of the compiled function system.

A *compiled function* is built from the text of a mathematical expression. It
is first configured with the resolved feature flags (see flags.FeatureFlags),
then named constants may be added, and finally the text is parsed against a
list of variable names. Afterwards, the function can be evaluated repeatedly
for different values of these variables.

Evaluation does not raise on numerical problems such as a division by zero.
Instead, the function stores an error code which can be retrieved via
CompiledFunction.eval_error() right after the evaluation. Interpreting this
code is the job of the evaluator.evaluate() function.

The concrete implementation shipped with this package is
sympyfunc.SympyFunction. Any other backend implementing the interface defined
here can be used in its place.
"""

from abc import ABCMeta, abstractmethod


__all__ = [
    "ParsedFunctionError",
    "CompiledFunction",
    "EVAL_OK",
    "EVAL_DIVISION_BY_ZERO",
    "EVAL_SQRT_NEGATIVE",
    "EVAL_LOG_NEGATIVE",
    "EVAL_TRIG_DOMAIN",
    "EVAL_MAX_RECURSION",
    "EVAL_OTHER",
]


## Evaluation succeeded.
EVAL_OK = 0
## Division by zero.
EVAL_DIVISION_BY_ZERO = 1
## Square root of a negative value.
EVAL_SQRT_NEGATIVE = 2
## Logarithm of a non-positive value.
EVAL_LOG_NEGATIVE = 3
## Argument of asin or acos outside [-1, 1].
EVAL_TRIG_DOMAIN = 4
## Expression nested too deeply to be evaluated.
EVAL_MAX_RECURSION = 5
## Any other problem (e.g. overflow or a complex result).
EVAL_OTHER = 6


class ParsedFunctionError(Exception):
    r"""Base class for errors raised while building or evaluating functions."""
    pass


class CompiledFunction(object, metaclass=ABCMeta):
    """Parent class for compiled functions.

    The methods a child has to override are:
        * configure() storing the feature flags
        * add_constant() making a named value available to parse()
        * parse() turning the expression text into an evaluable form
        * evaluate() computing the value for a vector of variable values
        * eval_error() returning the error code of the last evaluation

    Failures of add_constant() and parse() are signalled by returning `False`
    (with a diagnostic in #error_message for parse()). It is up to the caller
    to decide whether this is fatal.
    """

    def __init__(self):
        ## Diagnostic message of the last failed parse() call.
        self.error_message = None

    @abstractmethod
    def configure(self, flags):
        r"""Apply a flags.FeatureFlags object to this function."""
        pass

    @abstractmethod
    def add_constant(self, name, value):
        r"""Make a named constant available to subsequent parse() calls.

        Returns `True` on success and `False` if `name` is not usable as
        constant name (e.g. when it is a reserved word).
        """
        pass

    @abstractmethod
    def parse(self, text, variables):
        r"""Parse the expression `text` depending on the given variables.

        Returns `True` on success. On failure, `False` is returned and
        #error_message is populated.
        """
        pass

    @abstractmethod
    def evaluate(self, params=None):
        r"""Evaluate the function for the given variable values."""
        pass

    @abstractmethod
    def eval_error(self):
        r"""Error code of the last evaluate() call (`0` means no error)."""
        pass
