from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from document_desk.domain.catalog import CatalogSnapshot
from document_desk.domain.documents import LineItem
from document_desk.domain.numeric import ZERO
from document_desk.domain.value_objects import CatalogKind, TaxResolutionStatus


@dataclass(frozen=True, slots=True)
class TaxResolution:
    rate_percent: Decimal
    status: TaxResolutionStatus

    @property
    def is_not_found(self) -> bool:
        return self.status is TaxResolutionStatus.NOT_FOUND


BLANK = TaxResolution(ZERO, TaxResolutionStatus.BLANK)
NOT_FOUND = TaxResolution(ZERO, TaxResolutionStatus.NOT_FOUND)


class TaxResolver:
    """Maps a tax code to a percentage rate using the catalog snapshot.

    Blank codes resolve to a zero rate. A code with no active catalog entry
    resolves to NOT_FOUND, which also carries a zero rate so callers can keep
    calculating; the Validator is responsible for flagging it.
    """

    def resolve(self, tax_code: Any, snapshot: CatalogSnapshot) -> TaxResolution:
        code = "" if tax_code is None else str(tax_code)
        if not code.strip():
            return BLANK
        entry = snapshot.find(CatalogKind.TAX_CODES, code)
        if entry is None or entry.rate_percent is None:
            return NOT_FOUND
        return TaxResolution(entry.rate_percent, TaxResolutionStatus.RESOLVED)

    def unresolved_codes(
        self, lines: Iterable[LineItem], snapshot: CatalogSnapshot
    ) -> set[str]:
        return {
            line.tax_code
            for line in lines
            if self.resolve(line.tax_code, snapshot).is_not_found
        }
