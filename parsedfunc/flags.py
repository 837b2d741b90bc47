r"""@package parsedfunc.flags

Feature flags controlling how parsed functions are compiled and evaluated.

The flags are resolved once from host settings and then applied to every
function before it is evaluated for the first time. The settings understood
here (together with their defaults) are listed by valid_params():

    * `enable_jit`: compile function expressions to Python code for faster
      evaluation (default: whether code generation works on this platform)
    * `enable_ad_cache`: cache derivatives once they have been computed
    * `enable_auto_optimize`: simplify derivatives right after creating them
    * `disable_fpoptimizer`: disable the algebraic optimizer completely
    * `fail_on_evalerror`: raise on evaluation errors instead of returning NaN

@b Examples

```
    flags = resolve_feature_flags(dict(fail_on_evalerror=True))
    func = SympyFunction()
    func.configure(flags)
```
"""

from collections import namedtuple, OrderedDict
import functools
import warnings

import sympy as sp

from .utils import insert_missing


__all__ = [
    "FeatureFlags",
    "FeatureWarning",
    "Parameter",
    "jit_available",
    "valid_params",
    "resolve_feature_flags",
]


class FeatureWarning(UserWarning):
    """Warning issued when a requested feature is not available."""
    pass


## Immutable set of resolved feature flags.
FeatureFlags = namedtuple("FeatureFlags", [
    "jit_enabled",
    "derivative_cache_enabled",
    "auto_optimize_enabled",
    "fpoptimizer_disabled",
    "fail_on_eval_error",
])


## Declaration of one setting: its default, a description and its group.
Parameter = namedtuple("Parameter", ["default", "description", "group"])


@functools.lru_cache(maxsize=None)
def jit_available():
    r"""Return whether expressions can be compiled to code on this platform.

    The check is performed once by compiling and running a trivial
    expression. Restricted interpreters that forbid code generation at
    runtime will fail this probe.
    """
    x = sp.Symbol('x')
    try:
        f = sp.lambdify([x], x + 1, modules='math')
    except (SyntaxError, ImportError, RuntimeError):
        return False
    return f(1.0) == 2.0


def valid_params():
    r"""Return the declaration of all settings understood by this module.

    The result is an ordered dictionary mapping the setting name to a
    Parameter tuple.
    """
    return OrderedDict([
        ("enable_jit", Parameter(
            jit_available(),
            "Enable just-in-time compilation of function expressions for "
            "faster evaluation",
            "Advanced")),
        ("enable_ad_cache", Parameter(
            True,
            "Enable caching of function derivatives for faster startup time",
            "Advanced")),
        ("enable_auto_optimize", Parameter(
            True,
            "Enable automatic immediate optimization of derivatives",
            "Advanced")),
        ("disable_fpoptimizer", Parameter(
            False,
            "Disable the function parser algebraic optimizer",
            "Advanced")),
        ("fail_on_evalerror", Parameter(
            False,
            "Fail fatally if a function evaluation returns an error code "
            "(otherwise just pass on NaN)",
            "Advanced")),
    ])


def resolve_feature_flags(settings=None, **kw):
    r"""Create the FeatureFlags for the given settings.

    Args:
        settings: (dict, optional)
            Mapping of setting names (see valid_params()) to boolean values.
            Missing settings take their default value.
        **kw:
            Further settings. These take precedence over the ones given in
            `settings`.

    Raises:
        TypeError: If an unknown setting name is given.

    Requesting `enable_jit` on a platform where code generation does not work
    is not an error. A FeatureWarning is issued and JIT compilation stays
    disabled.
    """
    params = valid_params()
    settings = dict(settings or {})
    settings.update(kw)
    unknown = [k for k in settings if k not in params]
    if unknown:
        raise TypeError("Unknown feature settings: %s" % ", ".join(unknown))
    settings = insert_missing(
        settings, **dict((k, p.default) for k, p in params.items())
    )
    enable_jit = bool(settings['enable_jit'])
    if enable_jit and not jit_available():
        warnings.warn(
            "Tried to enable JIT compilation but code generation is not "
            "available on this platform.",
            FeatureWarning
        )
        enable_jit = False
    disable_fpoptimizer = bool(settings['disable_fpoptimizer'])
    return FeatureFlags(
        jit_enabled=enable_jit,
        derivative_cache_enabled=bool(settings['enable_ad_cache']),
        auto_optimize_enabled=(bool(settings['enable_auto_optimize'])
                               and not disable_fpoptimizer),
        fpoptimizer_disabled=disable_fpoptimizer,
        fail_on_eval_error=bool(settings['fail_on_evalerror']),
    )
