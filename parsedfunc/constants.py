r"""@package parsedfunc.constants

Resolution of named constants defined by expressions.

Constants are given as two lists of equal length, one with the names and one
with the defining expressions. Each expression may refer to the constants
defined *before* it in the list, e.g.

```
    names = ["a", "b", "c"]
    expressions = ["2", "a*3", "a+b"]
    resolve_constants(names, expressions, flags)
    # -> OrderedDict([('a', 2.0), ('b', 6.0), ('c', 8.0)])
```

Every expression is compiled into its own function which only knows the
previously resolved constants. A constant referring to itself or to a later
one hence fails to parse, so no cycles can occur.
"""

from collections import OrderedDict

from .numfunc import ParsedFunctionError
from .evaluator import evaluate
from .sympyfunc import SympyFunction


__all__ = [
    "ConstantError",
    "resolve_constants",
]


class ConstantError(ParsedFunctionError):
    r"""Raised for invalid constant definitions."""
    pass


def resolve_constants(names, expressions, flags, target=None,
                      function_class=SympyFunction):
    r"""Evaluate constant expressions in order and collect their values.

    @param names
        Sequence of constant names.
    @param expressions
        Sequence of expressions defining the constants. Must have the same
        length as `names`.
    @param flags
        flags.FeatureFlags to configure the functions with. These also decide
        whether evaluation errors raise or lead to NaN values.
    @param target
        Optional numfunc.CompiledFunction to add all resolved constants to.
        This has to happen before the target is parsed.
    @param function_class
        Callable creating the (empty) functions used to evaluate the
        constant expressions. Default is sympyfunc.SympyFunction.

    @return Ordered dictionary mapping the names to the values.

    @b Raises

    ConstantError if the lists differ in length, a name is invalid or repeated,
    or an expression cannot be parsed. evaluator.EvaluationError for evaluation
    errors if `flags.fail_on_eval_error` is set.
    """
    names = list(names)
    expressions = list(expressions)
    if len(names) != len(expressions):
        raise ConstantError("The constant names and constant expressions "
                            "must have equal length (got %d and %d)."
                            % (len(names), len(expressions)))
    seen = set()
    for name in names:
        if name in seen:
            raise ConstantError("Duplicate constant name '%s' in parsed "
                                "function object." % (name,))
        seen.add(name)
    resolved = OrderedDict()
    for name, expression in zip(names, expressions):
        func = function_class()
        func.configure(flags)
        # `resolved` holds exactly the constants defined before this one
        _add_constants(func, resolved)
        if not func.parse(expression, ""):
            raise ConstantError("Invalid constant expression\n%s\n in parsed "
                                "function object.\n%s"
                                % (expression, func.error_message))
        resolved[name] = evaluate(func, None, flags)
    if target is not None:
        _add_constants(target, resolved)
    return resolved


def _add_constants(func, constants):
    r"""Add constants to a function, raising for invalid names."""
    for name, value in constants.items():
        if not func.add_constant(name, value):
            raise ConstantError("Invalid constant name '%s' in parsed "
                                "function object." % (name,))
