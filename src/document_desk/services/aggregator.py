from __future__ import annotations

from collections.abc import Iterable

from document_desk.domain.documents import DocumentTotals, LineItem
from document_desk.domain.numeric import ZERO, calculation_context, round2
from document_desk.services.line_calculator import line_base


class DocumentAggregator:
    """Sums already-rounded per-line components into document totals.

    The grand total is the sum of rounded line totals and each line total is
    its rounded base plus its rounded tax, so grand_total always equals
    product_subtotal + tax_total. Every call walks the full line list.
    """

    def aggregate(self, lines: Iterable[LineItem]) -> DocumentTotals:
        subtotal = ZERO
        tax_total = ZERO
        grand_total = ZERO
        with calculation_context():
            for line in lines:
                subtotal += round2(line_base(line))
                tax_total += line.tax_amount
                grand_total += line.line_total
        return DocumentTotals(
            product_subtotal=round2(subtotal),
            tax_total=round2(tax_total),
            grand_total=round2(grand_total),
        )
