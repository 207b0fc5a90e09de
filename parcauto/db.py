import sqlite3
from contextlib import closing

from flask import current_app

from parcauto.forms import fits_sqlite_int
from parcauto.logger import get_logger
from parcauto.search import build_where

logger = get_logger(__name__)

CAR_TABLE = "cars"
CAR_IMAGE_TABLE = "car_images"
CAR_COLUMNS = (
    "title",
    "description",
    "price",
    "year",
    "image",
    "brand",
    "model",
    "fuel_type",
    "mileage",
    "transmission",
)
NEWEST_FIRST = "ORDER BY created_at DESC, id DESC"
FILTER_CHOICE_COLUMNS = ("fuel_type", "transmission")


def _storable_ids(*ids):
    # Ids beyond SQLite INTEGER cannot name a row.
    return all(isinstance(value, int) and fits_sqlite_int(value) for value in ids)


def _create_cars_table(conn):
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {CAR_TABLE} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            description TEXT,
            price REAL,
            year INTEGER,
            image TEXT,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )
        """
    )


def _add_listing_details(conn):
    # Databases created before versioning may already carry some of these.
    existing_cols = {
        row[1] for row in conn.execute(f"PRAGMA table_info({CAR_TABLE})").fetchall()
    }
    for col_name, col_type in (
        ("brand", "TEXT"),
        ("model", "TEXT"),
        ("fuel_type", "TEXT"),
        ("mileage", "INTEGER"),
        ("transmission", "TEXT"),
    ):
        if col_name not in existing_cols:
            conn.execute(f"ALTER TABLE {CAR_TABLE} ADD COLUMN {col_name} {col_type}")


def _create_car_images_table(conn):
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {CAR_IMAGE_TABLE} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            car_id INTEGER NOT NULL,
            image TEXT NOT NULL,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (car_id) REFERENCES {CAR_TABLE}(id) ON DELETE CASCADE
        )
        """
    )
    conn.execute(
        f"CREATE INDEX IF NOT EXISTS idx_car_images_car_id ON {CAR_IMAGE_TABLE} (car_id)"
    )


# Applied in order; position + 1 is the schema version. Append only.
MIGRATIONS = (
    _create_cars_table,
    _add_listing_details,
    _create_car_images_table,
)


class CarStore:
    """Car and gallery persistence on a single SQLite file."""

    def __init__(self, path):
        self.path = path

    def connect(self):
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def schema_version(self):
        with closing(self.connect()) as conn:
            return conn.execute("PRAGMA user_version").fetchone()[0]

    def migrate(self):
        """Apply pending migrations and return how many ran."""
        with closing(self.connect()) as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            current = conn.execute("PRAGMA user_version").fetchone()[0]
            pending = MIGRATIONS[current:]
            for version, migration in enumerate(pending, start=current + 1):
                with conn:
                    migration(conn)
                    conn.execute(f"PRAGMA user_version = {version}")
                logger.info("Applied migration %d (%s)", version, migration.__name__)
        return len(pending)

    def list_cars(self):
        with closing(self.connect()) as conn:
            rows = conn.execute(f"SELECT * FROM {CAR_TABLE} {NEWEST_FIRST}").fetchall()
        return [dict(row) for row in rows]

    def search_cars(self, filters):
        where_sql, params = build_where(filters)
        if not where_sql:
            return self.list_cars()
        with closing(self.connect()) as conn:
            rows = conn.execute(
                f"SELECT * FROM {CAR_TABLE} {where_sql} {NEWEST_FIRST}",
                params,
            ).fetchall()
        return [dict(row) for row in rows]

    def distinct_values(self, column):
        """Sorted non-empty values of a text column, for filter choices."""
        if column not in FILTER_CHOICE_COLUMNS:
            raise ValueError(f"no filter choices for {column!r}")
        with closing(self.connect()) as conn:
            rows = conn.execute(
                f"""
                SELECT DISTINCT {column} FROM {CAR_TABLE}
                WHERE {column} IS NOT NULL AND {column} != ''
                ORDER BY {column}
                """
            ).fetchall()
        return [row[0] for row in rows]

    def get_car(self, car_id):
        if not _storable_ids(car_id):
            return None
        with closing(self.connect()) as conn:
            row = conn.execute(
                f"SELECT * FROM {CAR_TABLE} WHERE id = ?",
                (car_id,),
            ).fetchone()
        return dict(row) if row else None

    def get_cars_by_ids(self, car_ids):
        if not car_ids:
            return []
        placeholders = ",".join("?" for _ in car_ids)
        with closing(self.connect()) as conn:
            rows = conn.execute(
                f"SELECT * FROM {CAR_TABLE} WHERE id IN ({placeholders}) {NEWEST_FIRST}",
                tuple(car_ids),
            ).fetchall()
        return [dict(row) for row in rows]

    def list_images(self, car_id):
        if not _storable_ids(car_id):
            return []
        with closing(self.connect()) as conn:
            rows = conn.execute(
                f"SELECT * FROM {CAR_IMAGE_TABLE} WHERE car_id = ? ORDER BY id ASC",
                (car_id,),
            ).fetchall()
        return [dict(row) for row in rows]

    def get_image(self, image_id, car_id):
        if not _storable_ids(image_id, car_id):
            return None
        with closing(self.connect()) as conn:
            row = conn.execute(
                f"SELECT * FROM {CAR_IMAGE_TABLE} WHERE id = ? AND car_id = ?",
                (image_id, car_id),
            ).fetchone()
        return dict(row) if row else None

    def insert_car(self, fields, gallery=()):
        """Insert a car and its gallery rows in one transaction; return the id."""
        columns = [name for name in CAR_COLUMNS if name in fields]
        placeholders = ", ".join("?" for _ in columns)
        with closing(self.connect()) as conn, conn:
            cursor = conn.execute(
                f"INSERT INTO {CAR_TABLE} ({', '.join(columns)}) VALUES ({placeholders})",
                tuple(fields[name] for name in columns),
            )
            car_id = cursor.lastrowid
            self._insert_images(conn, car_id, gallery)
        return car_id

    def update_car(self, car_id, fields, gallery=()):
        """Update the given columns and append gallery rows; False if missing."""
        if not _storable_ids(car_id):
            return False
        columns = [name for name in CAR_COLUMNS if name in fields]
        with closing(self.connect()) as conn, conn:
            if not conn.execute(
                f"SELECT 1 FROM {CAR_TABLE} WHERE id = ?", (car_id,)
            ).fetchone():
                return False
            if columns:
                assignments = ", ".join(f"{name} = ?" for name in columns)
                conn.execute(
                    f"UPDATE {CAR_TABLE} SET {assignments} WHERE id = ?",
                    tuple(fields[name] for name in columns) + (car_id,),
                )
            self._insert_images(conn, car_id, gallery)
        return True

    def delete_car(self, car_id):
        if not _storable_ids(car_id):
            return False
        with closing(self.connect()) as conn, conn:
            cursor = conn.execute(f"DELETE FROM {CAR_TABLE} WHERE id = ?", (car_id,))
        return cursor.rowcount > 0

    def insert_image(self, car_id, image_path):
        with closing(self.connect()) as conn, conn:
            cursor = conn.execute(
                f"INSERT INTO {CAR_IMAGE_TABLE} (car_id, image) VALUES (?, ?)",
                (car_id, image_path),
            )
        return cursor.lastrowid

    def delete_image(self, image_id, car_id):
        if not _storable_ids(image_id, car_id):
            return False
        with closing(self.connect()) as conn, conn:
            cursor = conn.execute(
                f"DELETE FROM {CAR_IMAGE_TABLE} WHERE id = ? AND car_id = ?",
                (image_id, car_id),
            )
        return cursor.rowcount > 0

    @staticmethod
    def _insert_images(conn, car_id, image_paths):
        for image_path in image_paths:
            conn.execute(
                f"INSERT INTO {CAR_IMAGE_TABLE} (car_id, image) VALUES (?, ?)",
                (car_id, image_path),
            )


def get_store():
    return current_app.extensions["parcauto.store"]
