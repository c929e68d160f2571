from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from decimal import Decimal

from document_desk.domain.catalog import CatalogSnapshot
from document_desk.domain.documents import LineItem
from document_desk.domain.numeric import calculation_context, calculation_value, round2
from document_desk.logging_config import get_logger
from document_desk.services.tax import TaxResolver

logger = get_logger(__name__)

# Editing any other field leaves tax_amount and line_total as they are.
RECALCULATION_FIELDS = frozenset({"quantity", "unit_price", "tax_code"})


def line_base(line: LineItem) -> Decimal:
    """Unrounded quantity x unit price; unusable inputs count as zero."""
    with calculation_context():
        return calculation_value(line.quantity) * calculation_value(line.unit_price)


class LineCalculator:
    """Recomputes the derived tax amount and total of a single line.

    Pure: the result depends only on the line's quantity, unit price and tax
    code plus the catalog snapshot, so recomputing twice gives the same line.
    """

    def __init__(self, tax_resolver: TaxResolver | None = None) -> None:
        self._tax_resolver = tax_resolver or TaxResolver()

    def recompute(self, line: LineItem, snapshot: CatalogSnapshot) -> LineItem:
        base = line_base(line)
        resolution = self._tax_resolver.resolve(line.tax_code, snapshot)
        if resolution.is_not_found:
            logger.debug(
                "tax_code_not_found",
                client_id=str(line.client_id),
                tax_code=line.tax_code,
            )
        with calculation_context():
            tax_amount = round2(base * resolution.rate_percent / Decimal("100"))
            line_total = round2(base) + tax_amount
        if tax_amount == line.tax_amount and line_total == line.line_total:
            return line
        return replace(line, tax_amount=tax_amount, line_total=line_total)

    def recompute_all(
        self, lines: Iterable[LineItem], snapshot: CatalogSnapshot
    ) -> list[LineItem]:
        return [self.recompute(line, snapshot) for line in lines]
