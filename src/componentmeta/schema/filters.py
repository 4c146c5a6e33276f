"""Type suppression predicates.

``exclude`` and ``ignore`` options accept strings, regular expressions,
callables or lists of those. They are compiled once into ``TypePredicate``
objects exposing a single ``matches(type_name, type_info)`` capability.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, Optional

from ..checker.base import ResolvedType, TypeChecker
from ..errors import ConfigurationError


class TypePredicate(ABC):
    @abstractmethod
    def matches(self, type_name: str, type_info: ResolvedType) -> bool:
        """Return True when the type must not be expanded."""


class NeverPredicate(TypePredicate):
    def matches(self, type_name: str, type_info: ResolvedType) -> bool:
        return False


class DeclarationPathPredicate(TypePredicate):
    """Matches types declared in files whose path contains a substring or pattern."""

    def __init__(self, pattern: str | re.Pattern[str]) -> None:
        self.pattern = pattern

    def matches(self, type_name: str, type_info: ResolvedType) -> bool:
        if type_info.declaration is None:
            return False
        path = type_info.declaration.file
        if isinstance(self.pattern, re.Pattern):
            return self.pattern.search(path) is not None
        return self.pattern in path


class TypeNamePredicate(TypePredicate):
    def __init__(self, pattern: str | re.Pattern[str]) -> None:
        self.pattern = pattern

    def matches(self, type_name: str, type_info: ResolvedType) -> bool:
        if isinstance(self.pattern, re.Pattern):
            return self.pattern.fullmatch(type_name) is not None
        return type_name == self.pattern


class CallablePredicate(TypePredicate):
    """Adapts a user callable; errors raised by it surface as ConfigurationError."""

    def __init__(
        self,
        func: Callable[..., Any],
        build_args: Callable[[str, ResolvedType], Optional[tuple]],
    ) -> None:
        self.func = func
        self._build_args = build_args

    def matches(self, type_name: str, type_info: ResolvedType) -> bool:
        args = self._build_args(type_name, type_info)
        if args is None:
            return False
        try:
            return bool(self.func(*args))
        except Exception as exc:
            label = getattr(self.func, "__name__", repr(self.func))
            raise ConfigurationError(
                f"Type filter {label} failed while evaluating '{type_name}': {exc}"
            ) from exc


class AnyPredicate(TypePredicate):
    def __init__(self, predicates: Iterable[TypePredicate]) -> None:
        self.predicates: List[TypePredicate] = list(predicates)

    def matches(self, type_name: str, type_info: ResolvedType) -> bool:
        return any(pred.matches(type_name, type_info) for pred in self.predicates)


def _declaration_file_args(type_name: str, type_info: ResolvedType) -> Optional[tuple]:
    if type_info.declaration is None:
        return None
    return (type_info.declaration.file,)


def compile_exclude(value: Any) -> TypePredicate:
    """Compile the ``exclude`` option; matched against the declaring file path."""
    if value is None:
        return NeverPredicate()
    if isinstance(value, (str, re.Pattern)):
        return DeclarationPathPredicate(value)
    if callable(value):
        return CallablePredicate(value, _declaration_file_args)
    if isinstance(value, (list, tuple)):
        return AnyPredicate(compile_exclude(item) for item in value)
    raise ConfigurationError(
        f"exclude must be a string, pattern, callable or list of those, got {type(value).__name__}"
    )


def compile_ignore(items: Any, checker: Optional[TypeChecker] = None) -> TypePredicate:
    """Compile the ``ignore`` option; matched against the type name."""
    if items is None:
        return NeverPredicate()
    if not isinstance(items, (list, tuple)):
        items = [items]
    predicates: List[TypePredicate] = []
    for item in items:
        if isinstance(item, (str, re.Pattern)):
            predicates.append(TypeNamePredicate(item))
        elif callable(item):
            predicates.append(
                CallablePredicate(
                    item, lambda name, info: (name, info, checker)
                )
            )
        else:
            raise ConfigurationError(
                f"ignore entries must be strings, patterns or callables, got {type(item).__name__}"
            )
    return AnyPredicate(predicates)
