"""Filter predicates for scan requests.

Predicates form a closed family of immutable value objects. Each one
references a column by name and carries literal value(s). They can be
translated to remote SQL (see ``sfscan.pushdown.filters``) or evaluated
locally against a record, which callers use to post-filter rows for the
predicates that could not be pushed down.

Local evaluation follows SQL semantics: comparisons involving null are
unknown, and only predicates that are definitely true keep a row.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Optional


class Predicate(ABC):
    """Base class for all filter predicates."""

    @abstractmethod
    def references(self) -> set[str]:
        """Column names referenced by this predicate."""
        pass

    def evaluate(self, record: Mapping[str, Any]) -> bool:
        """Return True if ``record`` definitely satisfies the predicate."""
        return self._eval(record) is True

    @abstractmethod
    def _eval(self, record: Mapping[str, Any]) -> Optional[bool]:
        """True, False, or None when the result is unknown."""
        pass


@dataclass(frozen=True)
class _Comparison(Predicate):
    attribute: str
    value: Any

    def references(self) -> set[str]:
        return {self.attribute}

    def _eval(self, record: Mapping[str, Any]) -> Optional[bool]:
        left = record.get(self.attribute)
        if left is None or self.value is None:
            return None
        try:
            return self._compare(left, self.value)
        except TypeError:
            return None

    @abstractmethod
    def _compare(self, left: Any, right: Any) -> bool:
        pass


@dataclass(frozen=True)
class EqualTo(_Comparison):
    def _compare(self, left: Any, right: Any) -> bool:
        return left == right


@dataclass(frozen=True)
class NotEqualTo(_Comparison):
    def _compare(self, left: Any, right: Any) -> bool:
        return left != right


@dataclass(frozen=True)
class GreaterThan(_Comparison):
    def _compare(self, left: Any, right: Any) -> bool:
        return left > right


@dataclass(frozen=True)
class GreaterThanOrEqual(_Comparison):
    def _compare(self, left: Any, right: Any) -> bool:
        return left >= right


@dataclass(frozen=True)
class LessThan(_Comparison):
    def _compare(self, left: Any, right: Any) -> bool:
        return left < right


@dataclass(frozen=True)
class LessThanOrEqual(_Comparison):
    def _compare(self, left: Any, right: Any) -> bool:
        return left <= right


@dataclass(frozen=True)
class EqualNullSafe(Predicate):
    """Equality where two nulls compare equal and null never yields unknown."""

    attribute: str
    value: Any

    def references(self) -> set[str]:
        return {self.attribute}

    def _eval(self, record: Mapping[str, Any]) -> Optional[bool]:
        left = record.get(self.attribute)
        if left is None or self.value is None:
            return left is None and self.value is None
        return left == self.value


@dataclass(frozen=True)
class In(Predicate):
    attribute: str
    values: tuple[Any, ...]

    def __post_init__(self) -> None:
        # Accept any iterable but keep the predicate hashable
        object.__setattr__(self, "values", tuple(self.values))

    def references(self) -> set[str]:
        return {self.attribute}

    def _eval(self, record: Mapping[str, Any]) -> Optional[bool]:
        left = record.get(self.attribute)
        if left is None:
            return None
        if left in [v for v in self.values if v is not None]:
            return True
        if any(v is None for v in self.values):
            return None
        return False


@dataclass(frozen=True)
class IsNull(Predicate):
    attribute: str

    def references(self) -> set[str]:
        return {self.attribute}

    def _eval(self, record: Mapping[str, Any]) -> Optional[bool]:
        return record.get(self.attribute) is None


@dataclass(frozen=True)
class IsNotNull(Predicate):
    attribute: str

    def references(self) -> set[str]:
        return {self.attribute}

    def _eval(self, record: Mapping[str, Any]) -> Optional[bool]:
        return record.get(self.attribute) is not None


@dataclass(frozen=True)
class And(Predicate):
    left: Predicate
    right: Predicate

    def references(self) -> set[str]:
        return self.left.references() | self.right.references()

    def _eval(self, record: Mapping[str, Any]) -> Optional[bool]:
        left = self.left._eval(record)
        right = self.right._eval(record)
        if left is False or right is False:
            return False
        if left is None or right is None:
            return None
        return True


@dataclass(frozen=True)
class Or(Predicate):
    left: Predicate
    right: Predicate

    def references(self) -> set[str]:
        return self.left.references() | self.right.references()

    def _eval(self, record: Mapping[str, Any]) -> Optional[bool]:
        left = self.left._eval(record)
        right = self.right._eval(record)
        if left is True or right is True:
            return True
        if left is None or right is None:
            return None
        return False


@dataclass(frozen=True)
class Not(Predicate):
    child: Predicate

    def references(self) -> set[str]:
        return self.child.references()

    def _eval(self, record: Mapping[str, Any]) -> Optional[bool]:
        result = self.child._eval(record)
        return None if result is None else not result


@dataclass(frozen=True)
class _StringMatch(Predicate):
    attribute: str
    value: str

    def references(self) -> set[str]:
        return {self.attribute}

    def _eval(self, record: Mapping[str, Any]) -> Optional[bool]:
        left = record.get(self.attribute)
        if left is None or self.value is None:
            return None
        if not isinstance(left, str):
            return None
        return self._match(left, self.value)

    @abstractmethod
    def _match(self, left: str, pattern: str) -> bool:
        pass


@dataclass(frozen=True)
class StringStartsWith(_StringMatch):
    def _match(self, left: str, pattern: str) -> bool:
        return left.startswith(pattern)


@dataclass(frozen=True)
class StringEndsWith(_StringMatch):
    def _match(self, left: str, pattern: str) -> bool:
        return left.endswith(pattern)


@dataclass(frozen=True)
class StringContains(_StringMatch):
    def _match(self, left: str, pattern: str) -> bool:
        return pattern in left


# Every concrete predicate kind; the translator keeps one entry per kind.
PREDICATE_TYPES: tuple[type[Predicate], ...] = (
    EqualTo,
    EqualNullSafe,
    NotEqualTo,
    GreaterThan,
    GreaterThanOrEqual,
    LessThan,
    LessThanOrEqual,
    In,
    IsNull,
    IsNotNull,
    And,
    Or,
    Not,
    StringStartsWith,
    StringEndsWith,
    StringContains,
)
