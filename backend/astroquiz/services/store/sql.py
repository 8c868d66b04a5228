import random
import time
from typing import Any, List, Sequence

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from astroquiz import db
from astroquiz.errors import StoreUnavailableError
from astroquiz.models import SheetRow
from .base import TabularStore, cell_text, parse_range, trim_row

APPEND_ATTEMPTS = 25


class SqlTabularStore(TabularStore):
    """Tabular store kept in the ``sheet_row`` table.

    Must be used inside an application context. Each call commits on its
    own, so two requests doing read-then-update on one row still race.
    """

    def read(self, table: str, a1: str = '') -> List[List[str]]:
        rng = parse_range(a1)
        try:
            query = SheetRow.query.filter(SheetRow.sheet == table, SheetRow.row_number >= rng.first_row)
            if rng.last_row is not None:
                query = query.filter(SheetRow.row_number <= rng.last_row)
            stored = query.order_by(SheetRow.row_number).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreUnavailableError(f"Failed to read {table}: {exc}") from exc

        by_number = {}
        for row in stored:
            by_number[row.row_number] = trim_row(row.get_cells()[rng.column_slice()])
        filled = [n for n, cells in by_number.items() if cells]
        if not filled:
            return []
        # Interior blank rows come back empty, trailing ones are dropped
        return [by_number.get(n, []) for n in range(rng.first_row, max(filled) + 1)]

    def _next_row_number(self, table: str) -> int:
        last = db.session.query(func.max(SheetRow.row_number)).filter(SheetRow.sheet == table).scalar()
        return (last or 0) + 1

    def append(self, table: str, rows: Sequence[Sequence[Any]]) -> None:
        # Another writer may claim the same row numbers between the max()
        # read and the commit; the unique constraint rejects the loser, which
        # then re-reads the end of the table.
        for attempt in range(1, APPEND_ATTEMPTS + 1):
            try:
                next_number = self._next_row_number(table)
                for offset, values in enumerate(rows):
                    new_row = SheetRow(sheet=table, row_number=next_number + offset)
                    new_row.set_cells(cell_text(v) for v in values)
                    db.session.add(new_row)
                db.session.commit()
                return
            except IntegrityError as exc:
                db.session.rollback()
                if attempt == APPEND_ATTEMPTS:
                    raise StoreUnavailableError(f"Failed to append to {table}: {exc}") from exc
                current_app.logger.info(f"[store] row {next_number} of {table} taken, retrying append ({attempt})")
                time.sleep(random.uniform(0, 0.005 * attempt))
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise StoreUnavailableError(f"Failed to append to {table}: {exc}") from exc

    def update(self, table: str, a1: str, rows: Sequence[Sequence[Any]]) -> None:
        rng = parse_range(a1)
        try:
            for offset, values in enumerate(rows):
                number = rng.first_row + offset
                row = SheetRow.query.filter_by(sheet=table, row_number=number).first()
                if row is None:
                    row = SheetRow(sheet=table, row_number=number)
                    cells = []
                else:
                    cells = row.get_cells()
                end = rng.first_col + len(values)
                if len(cells) < end:
                    cells.extend([''] * (end - len(cells)))
                cells[rng.first_col:end] = [cell_text(v) for v in values]
                row.set_cells(cells)
                db.session.add(row)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreUnavailableError(f"Failed to update {table}!{a1}: {exc}") from exc
