"""Restaurant persistence on a SQLite connection."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

from eatery.errors import DataNotFoundError, err_db
from eatery.image import image_from_json, images_from_json, images_to_json
from eatery.response import Paging
from eatery.restaurant.models import Filter, Restaurant, RestaurantCreate, RestaurantUpdate
from eatery.sqlmodel import SimpleUser

_RESTAURANT_COLUMNS = (
    "id",
    "owner_id",
    "name",
    "addr",
    "logo",
    "cover",
    "status",
    "created_at",
    "updated_at",
)
_USER_COLUMNS = (
    "id",
    "first_name",
    "last_name",
    "role",
    "avatar",
    "status",
    "created_at",
    "updated_at",
)
_PRELOADS = frozenset({"User"})

_SCHEMA = """
CREATE TABLE IF NOT EXISTS restaurants (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id INTEGER NOT NULL DEFAULT 0,
    name TEXT NOT NULL DEFAULT '',
    addr TEXT NOT NULL DEFAULT '',
    logo BLOB,
    cover BLOB,
    status INTEGER NOT NULL DEFAULT 1,
    created_at TEXT,
    updated_at TEXT
);
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT,
    first_name TEXT NOT NULL DEFAULT '',
    last_name TEXT NOT NULL DEFAULT '',
    role TEXT NOT NULL DEFAULT '',
    avatar BLOB,
    status INTEGER NOT NULL DEFAULT 1,
    created_at TEXT,
    updated_at TEXT
);
"""


def create_schema(connection: sqlite3.Connection) -> None:
    """Create the restaurant and user tables if they are missing."""
    connection.executescript(_SCHEMA)


def _blob(value):
    return value.encode("utf-8") if isinstance(value, str) else value


def _parse_time(value) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _format_time(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _where(cond: dict) -> tuple[str, list]:
    clauses = []
    params = []
    for column, value in cond.items():
        if column not in _RESTAURANT_COLUMNS:
            raise err_db(ValueError(f"unknown column {column!r}"))
        if value is None:
            clauses.append(f"{column} IS NULL")
        else:
            clauses.append(f"{column} = ?")
            params.append(value)
    return " AND ".join(clauses) or "1 = 1", params


def _restaurant_from_row(row: sqlite3.Row) -> Restaurant:
    logo = row["logo"]
    cover = row["cover"]
    return Restaurant(
        id=row["id"],
        status=row["status"],
        created_at=_parse_time(row["created_at"]),
        updated_at=_parse_time(row["updated_at"]),
        name=row["name"],
        address=row["addr"],
        owner_id=row["owner_id"],
        logo=image_from_json(_blob(logo)) if logo is not None else None,
        cover=images_from_json(_blob(cover)) if cover is not None else None,
    )


def _user_from_row(row: sqlite3.Row) -> SimpleUser:
    avatar = row["avatar"]
    return SimpleUser(
        id=row["id"],
        status=row["status"],
        created_at=_parse_time(row["created_at"]),
        updated_at=_parse_time(row["updated_at"]),
        last_name=row["last_name"],
        first_name=row["first_name"],
        role=row["role"],
        avatar=image_from_json(_blob(avatar)) if avatar is not None else None,
    )


class SQLStore:
    """Reads and writes restaurants."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def _query(self, sql: str, params) -> list[sqlite3.Row]:
        try:
            cursor = self._connection.cursor()
            cursor.row_factory = sqlite3.Row
            return cursor.execute(sql, list(params)).fetchall()
        except sqlite3.Error as exc:
            raise err_db(exc) from exc

    def _preload(self, restaurants: list[Restaurant], more_keys) -> None:
        for key in more_keys:
            if key not in _PRELOADS:
                raise err_db(ValueError(f"unsupported relations: {key}"))
            owner_ids = sorted({restaurant.owner_id for restaurant in restaurants})
            if not owner_ids:
                continue
            marks = ", ".join("?" for _ in owner_ids)
            rows = self._query(
                f"SELECT {', '.join(_USER_COLUMNS)} FROM users WHERE id IN ({marks})",
                owner_ids,
            )
            users = {row["id"]: row for row in rows}
            for restaurant in restaurants:
                row = users.get(restaurant.owner_id)
                restaurant.user = _user_from_row(row) if row is not None else None

    def create(self, data: RestaurantCreate) -> None:
        """Insert a restaurant and fill in its id, status and timestamps."""
        now = datetime.now(timezone.utc)
        status = data.status or 1
        created_at = data.created_at or now
        updated_at = data.updated_at or now
        values = {
            "owner_id": data.owner_id,
            "name": data.name,
            "addr": data.address,
            "logo": data.logo.to_json() if data.logo is not None else None,
            "cover": images_to_json(data.cover),
            "status": status,
            "created_at": _format_time(created_at),
            "updated_at": _format_time(updated_at),
        }
        if data.id:
            values = {"id": data.id, **values}
        columns = ", ".join(values)
        marks = ", ".join("?" for _ in values)
        try:
            with self._connection:
                cursor = self._connection.execute(
                    f"INSERT INTO restaurants ({columns}) VALUES ({marks})",
                    list(values.values()),
                )
        except sqlite3.Error as exc:
            raise err_db(exc) from exc
        data.id = cursor.lastrowid
        data.status = status
        data.created_at = created_at
        data.updated_at = updated_at

    def find_data_with_condition(self, cond: dict, *more_keys: str) -> Restaurant:
        """Return the first restaurant matching every column in cond."""
        clause, params = _where(cond)
        rows = self._query(
            f"SELECT {', '.join(_RESTAURANT_COLUMNS)} FROM restaurants "
            f"WHERE {clause} ORDER BY id LIMIT 1",
            params,
        )
        if not rows:
            raise DataNotFoundError()
        restaurant = _restaurant_from_row(rows[0])
        self._preload([restaurant], more_keys)
        return restaurant

    def list_data_with_condition(
        self, filter: Filter, paging: Paging, *more_keys: str
    ) -> list[Restaurant]:
        """Return one page of live restaurants, newest first, and set paging.total."""
        clauses = []
        params: list = []
        if filter.user_id > 0:
            clauses.append("owner_id = ?")
            params.append(filter.user_id)
        clauses.append("status NOT IN (0)")
        where = " AND ".join(clauses)

        (total,) = self._query(f"SELECT COUNT(*) FROM restaurants WHERE {where}", params)[0]
        paging.total = total

        offset = (paging.page - 1) * paging.limit
        sql = (
            f"SELECT {', '.join(_RESTAURANT_COLUMNS)} FROM restaurants "
            f"WHERE {where} ORDER BY id DESC"
        )
        if paging.limit > 0:
            sql += f" LIMIT {int(paging.limit)}"
            if offset > 0:
                sql += f" OFFSET {int(offset)}"
        elif offset > 0:
            sql += f" LIMIT -1 OFFSET {int(offset)}"

        restaurants = [_restaurant_from_row(row) for row in self._query(sql, params)]
        self._preload(restaurants, more_keys)
        return restaurants

    def update(self, cond: dict, update_data: RestaurantUpdate) -> None:
        """Write the set fields of update_data to every matching restaurant."""
        if not cond:
            raise err_db(ValueError("WHERE conditions required"))
        clause, params = _where(cond)
        changes = update_data.changes()
        if not changes:
            return
        assignments = ", ".join(f"{column} = ?" for column in changes)
        try:
            with self._connection:
                self._connection.execute(
                    f"UPDATE restaurants SET {assignments} WHERE {clause}",
                    [*changes.values(), *params],
                )
        except sqlite3.Error as exc:
            raise err_db(exc) from exc