"""Builds and commits the single batched ledger write of a sync run."""

from __future__ import annotations

import logging

from ledger_server.errors import LedgerStoreError, LedgerWriteError
from ledger_server.ledger.rows import AssetColumns
from ledger_server.ledger.store import CellWrite, LedgerStore, cell_ref
from ledger_server.pricing.models import PriceSyncStatus, RowResult

LOGGER = logging.getLogger(__name__)


class LedgerWriter:
    def __init__(self, store: LedgerStore, sheet: str, columns: AssetColumns = AssetColumns()) -> None:
        self._store = store
        self.sheet = sheet
        self.columns = columns

    def build_write_set(
        self,
        successes: list[RowResult],
        timestamp: str,
        include_price: bool = True,
    ) -> list[CellWrite]:
        """Price, timestamp and 24h change cells per success row, all stamped with ``timestamp``."""
        writes: list[CellWrite] = []
        for result in successes:
            if result.status is not PriceSyncStatus.SUCCESS or result.quote is None:
                continue
            row_index = result.row.row_index
            if include_price:
                writes.append(
                    CellWrite(cell_ref(self.sheet, self.columns.current_price, row_index), [[result.quote.price]])
                )
            writes.append(CellWrite(cell_ref(self.sheet, self.columns.last_price_update, row_index), [[timestamp]]))
            if result.quote.change_24h is not None:
                writes.append(
                    CellWrite(
                        cell_ref(self.sheet, self.columns.price_change_24h, row_index),
                        [[result.quote.change_24h]],
                    )
                )
        return writes

    def commit(self, write_set: list[CellWrite]) -> LedgerWriteError | None:
        if not write_set:
            return None
        try:
            self._store.batch_write(write_set)
        except LedgerWriteError as error:
            LOGGER.warning("ledger batch write failed: cells=%s error=%s", len(write_set), error.message)
            return error
        except LedgerStoreError as error:
            LOGGER.warning("ledger batch write failed: cells=%s error=%s", len(write_set), error.message)
            return LedgerWriteError(error.message, status=error.status)
        except Exception as error:
            LOGGER.exception("ledger batch write unexpected failure: cells=%s", len(write_set))
            return LedgerWriteError(f"Ledger write failed: {error}")
        LOGGER.info("ledger batch write complete: cells=%s", len(write_set))
        return None
