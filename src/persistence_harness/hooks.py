"""
Extension points supplied by a concrete test to the lifecycle harness.

Tests describe what the harness should map and cache through a HarnessHooks
value instead of overriding methods on a base class. Every field may be given
either as a value or as a zero-argument callable returning the value.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Sequence, Union


Dialect = str
DialectPredicate = Callable[[Dialect], bool]


def _always_applicable(dialect: Dialect) -> bool:
    return True


def _resolve(value):
    return value() if callable(value) else value


@dataclass(frozen=True)
class HarnessHooks:
    """
    Extension points of the lifecycle harness.

    Attributes:
        annotated_classes: Mapped classes under test
        legacy_descriptors: Dotted paths of modules registering legacy mappings
        cached_classes: Cache region per entity class
        cached_collections: Cache region per collection role
            (``module.Class.attribute``)
        dialect_applicable: Predicate telling whether the test applies to a dialect
    """

    annotated_classes: Union[Sequence[type], Callable[[], Sequence[type]]]
    legacy_descriptors: Union[Sequence[str], Callable[[], Sequence[str]]] = ()
    cached_classes: Union[Mapping[type, str], Callable[[], Mapping[type, str]]] = field(
        default_factory=dict
    )
    cached_collections: Union[Mapping[str, str], Callable[[], Mapping[str, str]]] = field(
        default_factory=dict
    )
    dialect_applicable: DialectPredicate = _always_applicable

    @classmethod
    def from_marker_kwargs(cls, **kwargs: Any) -> "HarnessHooks":
        """Build hooks from the keyword arguments of a ``persistence`` marker."""
        if "annotated_classes" not in kwargs:
            raise TypeError("the persistence marker requires annotated_classes")
        return cls(**kwargs)

    def get_annotated_classes(self) -> List[type]:
        return list(_resolve(self.annotated_classes))

    def get_legacy_descriptors(self) -> List[str]:
        return list(_resolve(self.legacy_descriptors) or ())

    def get_cached_classes(self) -> Dict[type, str]:
        return dict(_resolve(self.cached_classes) or {})

    def get_cached_collections(self) -> Dict[str, str]:
        return dict(_resolve(self.cached_collections) or {})

    def applies_to(self, dialect: Dialect) -> bool:
        return bool(self.dialect_applicable(dialect))
