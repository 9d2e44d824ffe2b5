"""Read-only containers for plan data.

``FrozenDict`` and ``FrozenList`` subclass the builtins so they compare equal to
plain data and serialize like it, but reject every in-place mutation.
"""

from __future__ import annotations

from typing import Any, NoReturn


def _immutable(self: object, *_args: Any, **_kwargs: Any) -> NoReturn:
    raise TypeError(f"'{type(self).__name__}' object is immutable")


class FrozenDict(dict):  # type: ignore[type-arg]
    __slots__ = ()

    __setitem__ = __delitem__ = __ior__ = _immutable
    clear = pop = popitem = setdefault = update = _immutable

    def __hash__(self) -> int:  # type: ignore[override]
        return hash(tuple(sorted(self.items(), key=lambda kv: kv[0])))

    def __reduce__(self) -> tuple[Any, ...]:
        return type(self), (dict(self),)


class FrozenList(list):  # type: ignore[type-arg]
    __slots__ = ()

    __setitem__ = __delitem__ = __iadd__ = __imul__ = _immutable
    append = extend = insert = pop = remove = clear = reverse = sort = _immutable

    def __hash__(self) -> int:  # type: ignore[override]
        return hash(tuple(self))

    def __reduce__(self) -> tuple[Any, ...]:
        return type(self), (list(self),)


def freeze(value: Any) -> Any:
    """Recursively convert dicts and lists (and tuples) to their frozen forms."""
    if isinstance(value, dict):
        return FrozenDict((k, freeze(v)) for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return FrozenList(freeze(v) for v in value)
    return value
