"""Tabular store adapters.

A store exposes read / append / update over a named table and an A1 range.
The domain repository only talks to this interface, so the SQL table used in
development and tests and a real Google spreadsheet are interchangeable.
"""

from .base import TabularStore, CellRange, parse_range, cell_text
from .sql import SqlTabularStore
from .sheets import GoogleSheetsStore, credentials_from_config


def build_store(config):
    """Create the store selected by ``STORE_BACKEND``."""
    backend = (config.get('STORE_BACKEND') or 'sql').lower()
    if backend == 'sql':
        return SqlTabularStore()
    if backend == 'sheets':
        return GoogleSheetsStore(
            spreadsheet_id=config.get('GOOGLE_SPREADSHEET_ID'),
            credentials_info=lambda: credentials_from_config(config),
        )
    raise ValueError(f"Unknown STORE_BACKEND {backend!r}")


__all__ = [
    'TabularStore',
    'CellRange',
    'parse_range',
    'cell_text',
    'SqlTabularStore',
    'GoogleSheetsStore',
    'credentials_from_config',
    'build_store',
]
