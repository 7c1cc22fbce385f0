from __future__ import annotations

import copy
import functools
from typing import Any, Callable, TypeVar

T = TypeVar("T")


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return ("__dict__", tuple(sorted((k, _freeze(v)) for k, v in value.items())))
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, tuple) and len(value) == 2 and value[0] == "__dict__":
        return {k: _thaw(v) for k, v in value[1]}
    if isinstance(value, tuple):
        return tuple(_thaw(v) for v in value)
    return value


def memoize_snapshot(func: Callable[..., T], maxsize: int = 128) -> Callable[..., T]:
    """
    Caller-side memoization keyed on the structure of the input snapshot plus
    option flags. Records and configs are frozen models, so equal snapshots
    hash equal. Collections reach `func` as tuples/frozensets. Each caller
    gets its own copy of the cached result.
    """

    @functools.lru_cache(maxsize=maxsize)
    def cached(args: tuple, kwargs: tuple) -> T:
        return func(*(_thaw(a) for a in args), **{k: _thaw(v) for k, v in kwargs})

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        frozen_args = tuple(_freeze(a) for a in args)
        frozen_kwargs = tuple(sorted((k, _freeze(v)) for k, v in kwargs.items()))
        return copy.deepcopy(cached(frozen_args, frozen_kwargs))

    wrapper.cache_info = cached.cache_info  # type: ignore[attr-defined]
    wrapper.cache_clear = cached.cache_clear  # type: ignore[attr-defined]
    return wrapper
