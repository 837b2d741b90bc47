r"""@package parsedfunc

Parsed function expressions with configurable compilation and evaluation.

Functions are given as text, like `"a*x^2 + sin(y)"`, and turned into
compiled function objects (see numfunc.CompiledFunction and its SymPy based
implementation sympyfunc.SympyFunction). How they are compiled is controlled
by a set of feature flags resolved from user settings in the flags module:
expressions may be compiled to code (JIT) or interpreted, derivatives may be
cached and automatically simplified.

Numerical problems during evaluation (division by zero, logarithm of a
negative value, ...) are classified by evaluator.evaluate(), which either
raises an evaluator.EvaluationError or returns NaN, depending on the
`fail_on_evalerror` setting.

Named constants can be defined by expressions referring to previously defined
constants. They are resolved in order by constants.resolve_constants().

The helper.FunctionParserHelper class ties these parts together for objects
owning one or more functions.
"""

from .flags import FeatureFlags, FeatureWarning, resolve_feature_flags
from .numfunc import CompiledFunction, ParsedFunctionError
from .sympyfunc import SympyFunction
from .evaluator import EvaluationError, eval_error_message, evaluate
from .constants import ConstantError, resolve_constants
from .helper import FunctionParseError, FunctionParserHelper
