from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Location
from .repository import LocationRepository

_COLUMNS = "location_id, name, timezone, address_line, city, state, postal_code, country"


def _row_to_location(r: dict) -> Location:
    return Location(
        location_id=int(r["location_id"]),
        name=r["name"],
        timezone=r.get("timezone"),
        address_line=r.get("address_line"),
        city=r.get("city"),
        state=r.get("state"),
        postal_code=r.get("postal_code"),
        country=r.get("country"),
    )


class MySQLLocationRepository(LocationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, location_id: int) -> Optional[Location]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM locations WHERE location_id=%s", (int(location_id),))
            r = fetchone(cur)
            return _row_to_location(r) if r else None

    def list_all(self) -> Sequence[Location]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM locations ORDER BY name")
            return [_row_to_location(r) for r in fetchall(cur)]
