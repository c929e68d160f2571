from __future__ import annotations

from collections.abc import Iterable

from document_desk.domain.catalog import CatalogEntry, CatalogSnapshot
from document_desk.domain.schemas import DocumentSchema
from document_desk.domain.value_objects import CatalogKind
from document_desk.exceptions import CatalogFetchError
from document_desk.logging_config import get_logger
from document_desk.services.interfaces import ReferenceCatalogAdapter

logger = get_logger(__name__)

LINE_CATALOGS: tuple[CatalogKind, ...] = (
    CatalogKind.PRODUCTS,
    CatalogKind.UOMS,
    CatalogKind.WAREHOUSES,
    CatalogKind.TAX_CODES,
)


def catalogs_for(schema: DocumentSchema) -> tuple[CatalogKind, ...]:
    """Catalogs a document-entry form needs: its counterparty list plus line lookups."""
    return (schema.counterparty_catalog, *LINE_CATALOGS)


class CatalogService:
    """Loads the reference catalog snapshot once per form.

    A catalog that fails to load is recorded as unavailable and left empty so
    the rest of the form stays usable; blank lookups then surface through
    validation rather than as a crash.
    """

    def __init__(self, adapter: ReferenceCatalogAdapter) -> None:
        self._adapter = adapter

    async def load_snapshot(self, kinds: Iterable[CatalogKind]) -> CatalogSnapshot:
        tables: dict[CatalogKind, tuple[CatalogEntry, ...]] = {}
        unavailable: set[CatalogKind] = set()
        for kind in kinds:
            try:
                rows = await self._adapter.fetch_catalog(kind)
            except CatalogFetchError as e:
                logger.warning(
                    "catalog_unavailable", kind=kind.value, reason=e.context.get("reason")
                )
                unavailable.add(kind)
                rows = []
            tables[kind] = tuple(rows)
        logger.debug(
            "catalog_snapshot_loaded",
            sizes={kind.value: len(rows) for kind, rows in tables.items()},
            unavailable=sorted(kind.value for kind in unavailable),
        )
        return CatalogSnapshot(tables, frozenset(unavailable))

    async def load_for(self, schema: DocumentSchema) -> CatalogSnapshot:
        return await self.load_snapshot(catalogs_for(schema))
