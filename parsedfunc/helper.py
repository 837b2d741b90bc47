r"""@package parsedfunc.helper

Convenience class for objects owning parsed functions.

An object evaluating user supplied function expressions typically needs to
resolve the feature flags from its settings once, create and configure its
functions, add constants to them and finally evaluate them (and possibly
their derivatives) repeatedly. FunctionParserHelper bundles these steps.

@b Examples

```
    helper = FunctionParserHelper(dict(fail_on_evalerror=True))
    f = helper.create_function("k*x^2", "x",
                               constant_names=["k0", "k"],
                               constant_expressions=["0.5", "2*k0"])
    derivs = helper.derivatives(f)
    helper.func_params = [3.0]
    helper.evaluate(f)               # -> 9.0
    helper.evaluate(derivs["x"])     # -> 6.0
```
"""

from collections import OrderedDict

from .flags import resolve_feature_flags
from .numfunc import ParsedFunctionError
from .evaluator import evaluate
from .constants import resolve_constants
from .sympyfunc import SympyFunction


__all__ = [
    "FunctionParseError",
    "FunctionParserHelper",
]


class FunctionParseError(ParsedFunctionError):
    r"""Raised when a function expression cannot be parsed."""
    pass


class FunctionParserHelper(object):
    r"""Own the feature flags and parameters for evaluating functions.

    The flags are resolved once at construction (see
    flags.resolve_feature_flags()) and are applied to every function created
    or passed through set_feature_flags().
    """

    def __init__(self, settings=None, function_class=SympyFunction, **kw):
        r"""Init function.

        Args:
            settings: (dict, optional)
                Feature settings, see flags.valid_params().
            function_class: (callable, optional)
                Class of functions to create. Default is
                sympyfunc.SympyFunction.
            **kw:
                Further feature settings overriding the ones in `settings`.
        """
        ## The resolved flags.FeatureFlags.
        self.flags = resolve_feature_flags(settings, **kw)
        ## Class (or factory) used to create new functions.
        self.function_class = function_class
        ## Parameter values used by evaluate() if none are given explicitly.
        self.func_params = []

    def set_feature_flags(self, func):
        r"""Configure a function with the flags of this helper."""
        func.configure(self.flags)

    def evaluate(self, func, params=None):
        r"""Evaluate a function (or `None` for zero) applying the error policy.

        If `params` is not given, the current #func_params are used.
        """
        if params is None:
            params = self.func_params
        return evaluate(func, params, self.flags)

    def add_constants(self, func, constant_names, constant_expressions):
        r"""Resolve constants and add them to an (unparsed) function.

        @return Ordered dictionary of the resolved constant values.
        """
        return resolve_constants(
            constant_names, constant_expressions, self.flags, target=func,
            function_class=self.function_class,
        )

    def create_function(self, expression, variables="", constant_names=(),
                        constant_expressions=(), optimize=True):
        r"""Create a configured and parsed function.

        @param expression
            Text of the function expression.
        @param variables
            Variable names, either as sequence or as comma separated string.
        @param constant_names,constant_expressions
            Constants to resolve (see constants.resolve_constants()) and make
            available to the expression.
        @param optimize
            Whether to run the algebraic optimizer on the parsed function.
            This is skipped anyway if the optimizer is disabled in the flags.

        @b Raises

        FunctionParseError if the expression cannot be parsed and
        constants.ConstantError for invalid constants.
        """
        func = self.function_class()
        self.set_feature_flags(func)
        self.add_constants(func, constant_names, constant_expressions)
        if not func.parse(expression, variables):
            raise FunctionParseError("Invalid function\n%s\nin parsed "
                                     "function object.\n%s"
                                     % (expression, func.error_message))
        if optimize:
            func.optimize()
        return func

    def derivatives(self, func, variables=None):
        r"""Create the first derivatives of a function.

        @param func
            Parsed function supporting `derivative()`.
        @param variables
            Variables to differentiate w.r.t. Defaults to all variables of
            the function.

        @return Ordered dictionary mapping variable names to the derivative
            functions. Derivatives that vanish identically are `None`, which
            evaluate() treats as zero.
        """
        if variables is None:
            variables = func.variables
        return OrderedDict((v, func.derivative(v)) for v in variables)
