"""Reference catalog snapshot.

A snapshot is fetched once when a form is opened and treated as immutable
for the rest of the editing session.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Any

from document_desk.domain.value_objects import CatalogKind
from document_desk.exceptions import LookupNotFoundError


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    code: str
    name: str = ""
    rate_percent: Decimal | None = None
    active: bool = True
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.rate_percent is not None and not isinstance(
            self.rate_percent, Decimal
        ):
            object.__setattr__(self, "rate_percent", Decimal(str(self.rate_percent)))
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    def attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)


@dataclass(frozen=True)
class CatalogSnapshot:
    """Read-only lookup tables keyed by catalog kind."""

    tables: Mapping[CatalogKind, tuple[CatalogEntry, ...]] = field(
        default_factory=dict
    )
    unavailable: frozenset[CatalogKind] = frozenset()

    def __post_init__(self) -> None:
        frozen = {CatalogKind(kind): tuple(rows) for kind, rows in self.tables.items()}
        object.__setattr__(self, "tables", MappingProxyType(frozen))

    @classmethod
    def from_entries(
        cls, **tables: Iterable[CatalogEntry]
    ) -> CatalogSnapshot:
        """Build a snapshot from keyword tables, e.g. ``tax_codes=[...]``."""
        return cls({CatalogKind(kind): tuple(rows) for kind, rows in tables.items()})

    @classmethod
    def empty(cls) -> CatalogSnapshot:
        return cls()

    def entries(self, kind: CatalogKind) -> tuple[CatalogEntry, ...]:
        return self.tables.get(kind, ())

    def active_entries(self, kind: CatalogKind) -> tuple[CatalogEntry, ...]:
        return tuple(entry for entry in self.entries(kind) if entry.active)

    def find(self, kind: CatalogKind, code: str) -> CatalogEntry | None:
        """Exact, case-sensitive lookup among active entries."""
        for entry in self.entries(kind):
            if entry.active and entry.code == code:
                return entry
        return None

    def require(self, kind: CatalogKind, code: str) -> CatalogEntry:
        entry = self.find(kind, code)
        if entry is None:
            raise LookupNotFoundError(kind.value, code)
        return entry

    def search(self, kind: CatalogKind, term: str) -> list[CatalogEntry]:
        """Case-insensitive substring match on code or name, for lookup pickers."""
        needle = term.strip().lower()
        return [
            entry
            for entry in self.active_entries(kind)
            if needle in entry.code.lower() or needle in entry.name.lower()
        ]

    def is_available(self, kind: CatalogKind) -> bool:
        return kind not in self.unavailable
