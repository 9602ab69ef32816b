#!/usr/bin/env python3
"""
Nomina Catalog Database
=======================
SQLite store for the fragment catalog:
- Cultures, categories and thematic universes
- Given names, family names, titles, creatures, places, concepts
- History (biography) fragments with their name-length bounds

The generation engine only reads from it. Records are bulk-imported from a
YAML seed file; authoring individual records is the CRUD backend's job.

Storage: SQLite database (nomina.db)
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from nomina.catalog.loader import (
    SECTIONS,
    build_all,
    build_categorie,
    build_culture,
    build_records,
    build_univers,
    load_seed,
)
from nomina.catalog.reader import CatalogSource
from nomina.config import config
from nomina.errors import CatalogUnavailable
from nomina.models import (
    Categorie,
    Culture,
    EntityKind,
    FragmentKind,
    UniversThematique,
)
from nomina.settings import get_setting, resolve_path

logger = logging.getLogger(__name__)


# Column list per table, in insert order
_COLUMNS = {
    'univers': ('id', 'name', 'description'),
    'cultures': ('id', 'name', 'description'),
    'categories': ('id', 'name', 'description', 'univers_id'),
    'prenoms': ('id', 'valeur', 'genre', 'culture_id', 'categorie_id'),
    'noms_famille': ('id', 'valeur', 'culture_id', 'categorie_id'),
    'titres': ('id', 'valeur', 'type', 'genre', 'culture_id', 'categorie_id'),
    'creatures': ('id', 'valeur', 'type', 'description', 'personnage_id', 'culture_id', 'categorie_id'),
    'fragments_histoire': ('id', 'texte', 'applies_to', 'genre', 'min_name_length',
                           'max_name_length', 'culture_id', 'categorie_id'),
    'lieux': ('id', 'valeur', 'type', 'categorie_id'),
    'concepts': ('id', 'valeur', 'type', 'mood', 'keywords', 'categorie_id'),
}


class CatalogDB(CatalogSource):
    """
    SQLite catalog store.

    Usage:
        db = CatalogDB()

        # Bulk import a seed catalog
        db.import_seed("nomina/catalog/data/seed.yaml")

        # Scoped pool (records of culture 1 plus culture wildcards)
        prenoms = db.fetch_pool(FragmentKind.PRENOM, culture_id=1)

        # Counts per table
        db.stats()
    """

    def __init__(self, db_path: str = None, timeout: float = None, create: bool = True):
        if db_path is None:
            db_path = resolve_path(get_setting("catalog.db_path", "data/nomina.db"))
        if timeout is None:
            timeout = float(get_setting("catalog.timeout", 5.0))

        self.db_path = Path(db_path)
        self.timeout = timeout
        if create:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_db()

    @contextmanager
    def _connect(self):
        """Open a connection, mapping store failures to CatalogUnavailable."""
        if not self.db_path.exists():
            raise CatalogUnavailable(f"Catalog database not found: {self.db_path}")
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        except sqlite3.Error as e:
            raise CatalogUnavailable(f"Cannot open catalog database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            raise CatalogUnavailable(f"Catalog database error: {e}") from e
        finally:
            conn.close()

    def _init_db(self):
        """Create database tables"""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS univers (
                    id INTEGER PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS cultures (
                    id INTEGER PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS categories (
                    id INTEGER PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT,
                    univers_id INTEGER REFERENCES univers(id)
                )
            """)

            # Fragment tables: a NULL culture/category means "any"
            conn.execute("""
                CREATE TABLE IF NOT EXISTS prenoms (
                    id INTEGER PRIMARY KEY,
                    valeur TEXT,
                    genre TEXT,
                    culture_id INTEGER,
                    categorie_id INTEGER
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS noms_famille (
                    id INTEGER PRIMARY KEY,
                    valeur TEXT,
                    culture_id INTEGER,
                    categorie_id INTEGER
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS titres (
                    id INTEGER PRIMARY KEY,
                    valeur TEXT,
                    type TEXT,
                    genre TEXT,
                    culture_id INTEGER,
                    categorie_id INTEGER
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS creatures (
                    id INTEGER PRIMARY KEY,
                    valeur TEXT,
                    type TEXT,
                    description TEXT,
                    personnage_id INTEGER,
                    culture_id INTEGER,
                    categorie_id INTEGER
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS fragments_histoire (
                    id INTEGER PRIMARY KEY,
                    texte TEXT,
                    applies_to TEXT,
                    genre TEXT,
                    min_name_length INTEGER,
                    max_name_length INTEGER,
                    culture_id INTEGER,
                    categorie_id INTEGER
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS lieux (
                    id INTEGER PRIMARY KEY,
                    valeur TEXT,
                    type TEXT,
                    categorie_id INTEGER
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS concepts (
                    id INTEGER PRIMARY KEY,
                    valeur TEXT,
                    type TEXT,
                    mood TEXT,
                    keywords TEXT,
                    categorie_id INTEGER
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS imports (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    source TEXT,
                    records INTEGER NOT NULL,
                    imported_at TEXT NOT NULL
                )
            """)

            conn.execute("CREATE INDEX IF NOT EXISTS idx_prenoms_scope ON prenoms(culture_id, categorie_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_titres_scope ON titres(culture_id, categorie_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_fragments_scope ON fragments_histoire(applies_to, culture_id, categorie_id)")
            conn.commit()

    def _now(self) -> str:
        return datetime.now().isoformat()

    # =========================================================================
    # Import
    # =========================================================================

    def _insert(self, conn, table: str, records: Iterable) -> int:
        columns = _COLUMNS[table]
        placeholders = ', '.join('?' for _ in columns)
        count = 0
        for record in records:
            values = []
            for col in columns:
                value = getattr(record, col)
                if isinstance(value, EntityKind):
                    value = value.value
                values.append(value)
            conn.execute(
                f"INSERT OR REPLACE INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
                values,
            )
            count += 1
        return count

    def import_catalog(self, catalog: Dict, source: str = None, replace: bool = False) -> int:
        """
        Bulk import a catalog as returned by load_seed().

        Args:
            catalog: Mapping of 'cultures'/'categories'/'univers' and
                FragmentKind to record lists
            source: Label stored in the import log
            replace: Empty every table first

        Returns:
            Number of records written
        """
        with self._connect() as conn:
            if replace:
                for table in _COLUMNS:
                    conn.execute(f"DELETE FROM {table}")
            total = 0
            total += self._insert(conn, 'univers', catalog.get('univers', []))
            total += self._insert(conn, 'cultures', catalog.get('cultures', []))
            total += self._insert(conn, 'categories', catalog.get('categories', []))
            for kind, table in SECTIONS.items():
                total += self._insert(conn, table, catalog.get(kind, []))
            conn.execute(
                "INSERT INTO imports (source, records, imported_at) VALUES (?, ?, ?)",
                (source, total, self._now()),
            )
        logger.info("Imported %d catalog records from %s", total, source or 'memory')
        return total

    def import_seed(self, path, replace: bool = False) -> int:
        """Import a YAML seed file."""
        return self.import_catalog(load_seed(Path(path)), source=str(path), replace=replace)

    # =========================================================================
    # CatalogSource
    # =========================================================================

    def fetch_pool(self, kind: FragmentKind, culture_id: Optional[int] = None,
                   categorie_id: Optional[int] = None) -> Sequence:
        kind = FragmentKind(kind)
        table = SECTIONS[kind]
        clauses = []
        params: List = []
        if culture_id is not None and 'culture_id' in _COLUMNS[table]:
            clauses.append("(culture_id = ? OR culture_id IS NULL)")
            params.append(culture_id)
        if categorie_id is not None:
            clauses.append("(categorie_id = ? OR categorie_id IS NULL)")
            params.append(categorie_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._connect() as conn:
            cursor = conn.execute(f"SELECT * FROM {table} {where} ORDER BY id ASC", params)
            return build_records(kind, [dict(row) for row in cursor.fetchall()])

    def _fetch_all(self, table: str) -> List[dict]:
        with self._connect() as conn:
            cursor = conn.execute(f"SELECT * FROM {table} ORDER BY id ASC")
            return [dict(row) for row in cursor.fetchall()]

    def fetch_cultures(self) -> Sequence[Culture]:
        return build_all(build_culture, self._fetch_all('cultures'), 'culture')

    def fetch_categories(self) -> Sequence[Categorie]:
        return build_all(build_categorie, self._fetch_all('categories'), 'categorie')

    def fetch_univers(self) -> Sequence[UniversThematique]:
        return build_all(build_univers, self._fetch_all('univers'), 'univers')

    # =========================================================================
    # Statistics
    # =========================================================================

    def stats(self) -> dict:
        """Get record counts per table"""
        with self._connect() as conn:
            stats = {'tables': {}}
            for table in _COLUMNS:
                cursor = conn.execute(f"SELECT COUNT(*) FROM {table}")
                stats['tables'][table] = cursor.fetchone()[0]

            cursor = conn.execute("""
                SELECT applies_to, COUNT(*) FROM fragments_histoire
                GROUP BY applies_to
            """)
            stats['fragments_by_scope'] = {row[0]: row[1] for row in cursor.fetchall()}

            cursor = conn.execute("SELECT MAX(imported_at) FROM imports")
            stats['last_import'] = cursor.fetchone()[0]
            stats['total'] = sum(stats['tables'].values())
            return stats


# Singleton
_default_db = None

def get_catalogdb() -> CatalogDB:
    """Get default database instance"""
    global _default_db
    if _default_db is None:
        _default_db = CatalogDB(db_path=config().db_path)
    return _default_db
