r"""@package parsedfunc.utils

General utilities for simplifying certain tasks in Python.
"""

import functools


__all__ = [
    "isiterable",
    "merge_dicts",
    "insert_missing",
    "cache_method_results",
]


def isiterable(obj):
    r"""Check whether an object is iterable.

    Strings are *not* considered iterable here, since they are usually used
    as scalar values (e.g. names).
    """
    if isinstance(obj, str):
        return False
    try:
        iter(obj)
        return True
    except TypeError:
        return False


def merge_dicts(*dicts):
    """Merge two or more dicts, later ones replacing values of earlier ones.

    Note that only shallow copies are made of the dicts. `None` arguments are
    skipped.

    @b Examples

    ```
        a = dict(a=1, b=2, c=3)
        b = dict(c=-3, d=-4)
        c = merge_dicts(a, b)
        # Result: dict(a=1, b=2, c=-3, d=-4)
    ```
    """
    result = {}
    for d in dicts:
        if d is not None:
            result.update(d)
    return result


def insert_missing(dict_arg, **kwargs):
    """Insert all missing kwargs into the given dict and return it.

    Note that the original dict `dict_arg` is not altered.
    """
    return merge_dicts(kwargs, dict_arg)


def cache_method_results(key=None):
    r"""Create a decorator to cache instance method results.

    It will create a new attribute ``'_method_cache'`` on the instance
    containing a dictionary with keys for each cached method. These will also
    be dictionaries containing the results for the different arguments.

    The cache can be bypassed per instance by setting an attribute
    ``_method_cache_disabled`` to a true value. Results are then neither
    stored nor looked up.

    @b Limitations

        * cached methods cannot be called with keyword args or non-hashable
          types
        * the cache is not limited to a certain size

    @param key
        Unique key to store the method's results in. By default, the method
        name is used (obtained via ``method.__name__``).

    @b Examples
    ```
        class MyClass():
            @cache_method_results()
            def some_lengthy_computation(self, a, b, c):
                result = a**2 + b**3 + c**4
                return result
    ```
    """
    def cache_decorator(method):
        fn_key = method.__name__ if key is None else key
        @functools.wraps(method)
        def wrapper(self, *args):
            if getattr(self, '_method_cache_disabled', False):
                return method(self, *args)
            method_cache = getattr(self, '_method_cache', dict())
            self._method_cache = method_cache
            cache = method_cache[fn_key] = method_cache.get(fn_key, dict())
            try:
                return cache[args]
            except KeyError:
                result = method(self, *args)
                cache[args] = result
                return result
        return wrapper
    return cache_decorator
