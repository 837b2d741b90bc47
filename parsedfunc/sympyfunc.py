r"""@package parsedfunc.sympyfunc

Compiled functions based on SymPy expressions.

The expression text is parsed using SymPy's parser with a restricted
namespace, such that only the variables, the added constants and the
supported functions listed in #FUNCTIONS may be referenced. Any other name is
reported as undefined identifier. The caret `^` may be used for powers.

Parsing is done *without* automatic evaluation. An expression like `1/0` or
`sqrt(-1)` is therefore kept as is and only fails when it is evaluated, where
the problem is reported via an error code (see numfunc).

Algebraic simplification (see SympyFunction.optimize()) is skipped for
expressions with such invalid constant parts, so that it cannot turn them into
infinities or complex numbers and hide the error.

Since the parser generates Python code, text containing a double underscore
`__` is rejected before parsing. No valid name contains one.

Two evaluation strategies are available:

    * *interpreted* evaluation walks the expression tree using the `mpmath`
      floating point context `fp`
    * *JIT* evaluation lets `sympy.lambdify` generate and compile Python code
      for the expression, using checked versions of the functions that have
      a restricted domain

Both report the same error codes. The strategy is chosen by the `jit_enabled`
flag of the flags.FeatureFlags given to SympyFunction.configure().

@b Examples

```
    f = SympyFunction()
    f.configure(resolve_feature_flags())
    f.add_constant("a", 2.0)
    f.parse("a*x^2 + sin(y)", "x,y")
    f.evaluate([1.5, 0.0])       # -> 4.5
    df = f.derivative("x")
    df.evaluate([1.5, 0.0])      # -> 6.0
```
"""

from collections import OrderedDict
import keyword
import math
from tokenize import TokenError

import numpy as np
import sympy as sp
from sympy.core.function import AppliedUndef
from sympy.parsing.sympy_parser import (parse_expr, standard_transformations,
                                        convert_xor)
from mpmath import fp

from .flags import FeatureFlags
from .numfunc import (CompiledFunction, EVAL_OK, EVAL_DIVISION_BY_ZERO,
                      EVAL_SQRT_NEGATIVE, EVAL_LOG_NEGATIVE, EVAL_TRIG_DOMAIN,
                      EVAL_MAX_RECURSION, EVAL_OTHER)
from .utils import isiterable, cache_method_results


__all__ = [
    "SympyFunction",
    "FUNCTIONS",
    "BUILTIN_CONSTANTS",
    "MAX_RECURSION_DEPTH",
]


## Functions that may be used in expressions.
FUNCTIONS = OrderedDict([
    ("sin", sp.sin),
    ("cos", sp.cos),
    ("tan", sp.tan),
    ("asin", sp.asin),
    ("acos", sp.acos),
    ("atan", sp.atan),
    ("atan2", sp.atan2),
    ("sinh", sp.sinh),
    ("cosh", sp.cosh),
    ("tanh", sp.tanh),
    ("exp", sp.exp),
    ("log", sp.log),
    ("sqrt", sp.sqrt),
    ("abs", sp.Abs),
    ("min", sp.Min),
    ("max", sp.Max),
    ("sign", sp.sign),
])

## Named constants that are always available.
BUILTIN_CONSTANTS = OrderedDict([
    ("pi", sp.pi),
])

## Maximum nesting depth of expressions the interpreter evaluates.
MAX_RECURSION_DEPTH = 256

# Namespace the generated parser code is evaluated in.
_PARSER_GLOBALS = dict(
    Symbol=sp.Symbol,
    Function=sp.Function,
    Integer=sp.Integer,
    Float=sp.Float,
    Rational=sp.Rational,
    Add=sp.Add,
    Mul=sp.Mul,
    Pow=sp.Pow,
)

_TRANSFORMATIONS = standard_transformations + (convert_xor,)

_RESERVED = frozenset(FUNCTIONS) | frozenset(BUILTIN_CONSTANTS) | frozenset(_PARSER_GLOBALS)

# Flags used for functions that have not been configured.
_DEFAULT_FLAGS = FeatureFlags(
    jit_enabled=False,
    derivative_cache_enabled=True,
    auto_optimize_enabled=True,
    fpoptimizer_disabled=False,
    fail_on_eval_error=False,
)


class _EvalFailure(Exception):
    r"""Raised internally to abort an evaluation with an error code."""
    def __init__(self, code):
        super(_EvalFailure, self).__init__(code)
        self.code = code


def _is_valid_name(name):
    r"""Check whether a string can be used as variable or constant name."""
    return (isinstance(name, str) and name.isidentifier()
            and not name.startswith('_') and '__' not in name
            and not keyword.iskeyword(name) and name not in _RESERVED)


def _checked_sqrt(x):
    if x < 0:
        raise _EvalFailure(EVAL_SQRT_NEGATIVE)
    return fp.sqrt(x)


def _checked_log(x):
    if x <= 0:
        raise _EvalFailure(EVAL_LOG_NEGATIVE)
    return fp.log(x)


def _checked_asin(x):
    if abs(x) > 1:
        raise _EvalFailure(EVAL_TRIG_DOMAIN)
    return fp.asin(x)


def _checked_acos(x):
    if abs(x) > 1:
        raise _EvalFailure(EVAL_TRIG_DOMAIN)
    return fp.acos(x)


def _sign(x):
    return math.copysign(1.0, x) if x != 0 else 0.0


def _heaviside(x, h0=0.5):
    if x == 0:
        return h0
    return 0.0 if x < 0 else 1.0


def _dirac_delta(x, k=0):
    # Derivatives of abs, min, max and sign are undefined at their kinks.
    if x == 0:
        raise _EvalFailure(EVAL_OTHER)
    return 0.0


def _power(base, exponent):
    r"""Floating point power with error codes for invalid arguments."""
    if exponent == 0.5:
        return _checked_sqrt(base)
    if exponent == -0.5 and base < 0:
        raise _EvalFailure(EVAL_SQRT_NEGATIVE)
    if base == 0 and exponent < 0:
        raise _EvalFailure(EVAL_DIVISION_BY_ZERO)
    if base < 0 and exponent != int(exponent):
        raise _EvalFailure(EVAL_OTHER)
    return base ** exponent


def _product(args):
    result = 1.0
    for a in args:
        result *= a
    return result


# Functions with a restricted domain replaced in generated code.
_JIT_NAMESPACE = dict(
    sqrt=_checked_sqrt,
    log=_checked_log,
    asin=_checked_asin,
    acos=_checked_acos,
    sign=_sign,
    Heaviside=_heaviside,
    DiracDelta=_dirac_delta,
)

# Implementations used by the interpreter, keyed by SymPy function class.
_INTERPRETER_FUNCS = {
    sp.sin: fp.sin,
    sp.cos: fp.cos,
    sp.tan: fp.tan,
    sp.asin: _checked_asin,
    sp.acos: _checked_acos,
    sp.atan: fp.atan,
    sp.atan2: math.atan2,
    sp.sinh: fp.sinh,
    sp.cosh: fp.cosh,
    sp.tanh: fp.tanh,
    sp.exp: fp.exp,
    sp.log: _checked_log,
    sp.Abs: abs,
    sp.Min: min,
    sp.Max: max,
    sp.sign: _sign,
    sp.Heaviside: _heaviside,
    sp.DiracDelta: _dirac_delta,
    sp.Add: fp.fsum,
    sp.Mul: _product,
    sp.Pow: _power,
}

# Exceptions signalling a failed evaluation (other than _EvalFailure).
_EVAL_EXCEPTIONS = (ZeroDivisionError, RecursionError, OverflowError,
                    ValueError, TypeError, NameError)

# Results of simplifying invalid parts like `1/0`, `log(0)` or `sqrt(-1)`.
_INVALID_ATOMS = (sp.zoo, sp.oo, sp.S.NegativeInfinity, sp.nan, sp.I)


class SympyFunction(CompiledFunction):
    r"""Compiled function backed by a SymPy expression.

    Functions are created empty. They need to be configured (optionally),
    get their constants (optionally) and then be parsed before they can be
    evaluated. Derivatives of a parsed function w.r.t. one of its variables
    are created by derivative().

    The last evaluation's error code is stored on the object, so a single
    instance should not be evaluated concurrently.
    """

    def __init__(self):
        super(SympyFunction, self).__init__()
        self._flags = _DEFAULT_FLAGS
        self._constants = OrderedDict()
        self._variables = ()
        self._symbols = ()
        self._text = None
        self._expr = None
        self._compiled = None
        self._eval_error = EVAL_OK

    @property
    def flags(self):
        r"""The flags.FeatureFlags this function has been configured with."""
        return self._flags

    @property
    def text(self):
        r"""Text of the parsed expression (`None` if not yet parsed)."""
        return self._text

    @property
    def expr(self):
        r"""The parsed SymPy expression (`None` if not yet parsed)."""
        return self._expr

    @property
    def variables(self):
        r"""Tuple of the variable names in the order expected by evaluate()."""
        return self._variables

    @property
    def constants(self):
        r"""Copy of the dictionary of constants added to this function."""
        return OrderedDict(self._constants)

    def __repr__(self):
        return "<%s(%s)>" % (self.__class__.__name__, self._text)

    def __getstate__(self):
        r"""Return a picklable state, omitting generated code and caches."""
        state = self.__dict__.copy()
        state['_compiled'] = None
        state.pop('_method_cache', None)
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)

    def configure(self, flags):
        r"""Apply feature flags, dropping any previously compiled code."""
        self._flags = flags
        self._method_cache_disabled = not flags.derivative_cache_enabled
        self._reset()

    def add_constant(self, name, value):
        r"""Add a named constant.

        Constants can be re-defined by adding them again. Names of functions,
        builtin constants and of the current variables are rejected.
        """
        if not _is_valid_name(name) or name in self._variables:
            return False
        self._constants[name] = float(value)
        return True

    def parse(self, text, variables=""):
        r"""Parse an expression text.

        @param text
            The expression to parse.
        @param variables
            Names of the variables the expression depends on. Either a
            sequence of names or a single string with comma separated names.
            Defaults to no variables.
        """
        self._reset()
        self._expr = None
        self._text = text
        self.error_message = None
        try:
            names = self._variable_names(variables)
        except ValueError as e:
            self.error_message = str(e)
            return False
        if '__' in text:
            self.error_message = "Double underscores are not allowed: %s" % (text,)
            return False
        symbols = tuple(sp.Symbol(n, real=True) for n in names)
        local_dict = dict(FUNCTIONS)
        local_dict.update(BUILTIN_CONSTANTS)
        # 17 digits make the printed constants round-trip to the same double
        local_dict.update((k, sp.Float(v, 17))
                          for k, v in self._constants.items())
        local_dict.update(zip(names, symbols))
        try:
            expr = parse_expr(text, local_dict=local_dict,
                              global_dict=dict(_PARSER_GLOBALS),
                              transformations=_TRANSFORMATIONS,
                              evaluate=False)
            if not isinstance(expr, sp.Expr):
                self.error_message = "Not a numeric expression: %s" % (expr,)
                return False
            functions = expr.atoms(AppliedUndef)
            free_symbols = expr.free_symbols
        except RecursionError:
            self.error_message = "Expression is nested too deeply."
            return False
        except (SyntaxError, TokenError, TypeError, ValueError, NameError,
                AttributeError, MemoryError, sp.SympifyError) as e:
            # MemoryError is raised by Python's parser on stack overflow.
            self.error_message = "%s: %s" % (type(e).__name__, e)
            return False
        undefined = sorted(f.func.__name__ for f in functions)
        if undefined:
            self.error_message = "Undefined function: %s" % ", ".join(undefined)
            return False
        undefined = sorted(s.name for s in free_symbols - set(symbols))
        if undefined:
            self.error_message = "Undefined identifier: %s" % ", ".join(undefined)
            return False
        self._variables = names
        self._symbols = symbols
        self._expr = expr
        return True

    def _variable_names(self, variables):
        r"""Convert and check the variables argument of parse()."""
        if not isiterable(variables):
            variables = [v.strip() for v in (variables or "").split(",")]
            variables = [v for v in variables if v]
        names = tuple(variables)
        for name in names:
            if not _is_valid_name(name):
                raise ValueError("Invalid variable name '%s'" % (name,))
            if name in self._constants:
                raise ValueError("Variable name '%s' is already used by a "
                                 "constant" % name)
        if len(set(names)) != len(names):
            raise ValueError("Duplicate variable names in: %s" % ", ".join(names))
        return names

    def _reset(self):
        self._compiled = None
        self._eval_error = EVAL_OK
        self._method_cache = dict()

    def _ensure_parsed(self):
        if self._expr is None:
            raise RuntimeError("Function has not been parsed successfully.")

    def optimize(self):
        r"""Algebraically simplify the expression.

        This does nothing if the optimizer is disabled in the flags. The
        expression is also kept as is if it contains a constant part that
        cannot be evaluated (e.g. `1/0`), since simplification would replace
        it by an infinity or a complex number and change the error reported
        on evaluation.
        """
        self._ensure_parsed()
        if self._flags.fpoptimizer_disabled:
            return
        self._expr = self._simplify(self._expr)
        self._reset()

    def _simplify(self, expr):
        if self._has_invalid_constant(expr):
            return expr
        simplified = sp.simplify(expr)
        if simplified.has(*_INVALID_ATOMS) and not expr.has(*_INVALID_ATOMS):
            return expr
        return simplified

    def _has_invalid_constant(self, node):
        r"""Check whether a variable-free subexpression fails to evaluate."""
        if not node.free_symbols:
            try:
                self._interpret(node, {}, 0)
            except (_EvalFailure,) + _EVAL_EXCEPTIONS:
                return True
            return False
        return any(self._has_invalid_constant(a) for a in node.args)

    @cache_method_results()
    def derivative(self, variable):
        r"""Create the derivative w.r.t. one of the variables.

        The returned function shares flags, variables and constants with this
        function. If the derivative is identically zero, `None` is returned
        instead (see evaluator.evaluate()).

        Results are cached per variable if the `derivative_cache_enabled`
        flag is set.
        """
        self._ensure_parsed()
        try:
            symbol = self._symbols[self._variables.index(variable)]
        except ValueError:
            raise ValueError("Unknown variable: %s" % (variable,))
        expr = sp.diff(self._expr, symbol)
        if self._flags.auto_optimize_enabled:
            expr = self._simplify(expr)
        if expr == 0:
            return None
        deriv = type(self)()
        deriv.configure(self._flags)
        deriv._constants = OrderedDict(self._constants)
        deriv._variables = self._variables
        deriv._symbols = self._symbols
        deriv._text = "d(%s)/d%s" % (self._text, variable)
        deriv._expr = expr
        return deriv

    def evaluate(self, params=None):
        r"""Evaluate the function.

        @param params
            Values of the variables, in the order they were given to parse().
            May be omitted for functions without variables.

        @return The function value, or NaN in case an error occurred. Use
            eval_error() to retrieve the error code.
        """
        self._ensure_parsed()
        values = [] if params is None else [float(p) for p in np.ravel(params)]
        if len(values) != len(self._variables):
            raise ValueError("Expected %d parameter values, got %d."
                             % (len(self._variables), len(values)))
        self._eval_error = EVAL_OK
        try:
            if self._flags.jit_enabled:
                result = self._jit_function()(*values)
            else:
                result = self._interpret(
                    self._expr, dict(zip(self._symbols, values)), 0
                )
            if isinstance(result, complex):
                raise _EvalFailure(EVAL_OTHER)
            result = float(result)
            if math.isnan(result) and not self._has_nan_input(values):
                raise _EvalFailure(EVAL_OTHER)
            return result
        except _EvalFailure as e:
            self._eval_error = e.code
        except ZeroDivisionError:
            self._eval_error = EVAL_DIVISION_BY_ZERO
        except RecursionError:
            self._eval_error = EVAL_MAX_RECURSION
        except (OverflowError, ValueError, TypeError, NameError):
            self._eval_error = EVAL_OTHER
        return np.nan

    def _has_nan_input(self, values):
        # NaN variables or constants propagate without an error
        return any(math.isnan(v) for v in values) or any(
            math.isnan(c) for c in self._constants.values()
        )

    def eval_error(self):
        return self._eval_error

    def _jit_function(self):
        r"""Generate and compile code for the expression (once)."""
        if self._compiled is None:
            self._compiled = sp.lambdify(
                self._symbols, self._expr, modules=[_JIT_NAMESPACE, 'math']
            )
        return self._compiled

    def _interpret(self, node, values, depth):
        r"""Recursively evaluate an expression tree node."""
        if depth > MAX_RECURSION_DEPTH:
            raise _EvalFailure(EVAL_MAX_RECURSION)
        if node.is_Symbol:
            return values[node]
        if node.is_number and not node.args:
            return float(node)
        try:
            func = _INTERPRETER_FUNCS[node.func]
        except KeyError:
            raise _EvalFailure(EVAL_OTHER)
        args = [self._interpret(a, values, depth+1) for a in node.args]
        if node.is_Add or node.is_Mul:
            return func(args)
        return func(*args)
