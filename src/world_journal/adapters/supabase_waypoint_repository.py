"""Supabase-backed waypoint repository."""

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from supabase import Client

from world_journal.domain.waypoints import Waypoint
from world_journal.errors import StorageError
from world_journal.services.waypoints import WaypointRepository

_COLUMNS = "id, lat, lng, title, description, image, images, journal_text"

_COLUMN_NAMES = {"primary_image": "image"}


@dataclass
class SupabaseWaypointRepository(WaypointRepository):
    """Supabase implementation for waypoint persistence."""

    client: Client
    table_name: str = "waypoints"

    def list_waypoints(self) -> list[Waypoint]:
        """Return all waypoints."""
        response = self._execute(
            "list",
            lambda: self.client.table(self.table_name).select(_COLUMNS).execute(),
        )
        return [_row_to_waypoint(row) for row in response.data or []]

    def get_waypoint(self, waypoint_id: UUID) -> Waypoint | None:
        """Return a waypoint by id, if present."""
        response = self._execute(
            "get",
            lambda: self.client.table(self.table_name)
            .select(_COLUMNS)
            .eq("id", str(waypoint_id))
            .limit(1)
            .execute(),
        )
        if not response.data:
            return None
        return _row_to_waypoint(response.data[0])

    def create_waypoint(self, fields: Mapping[str, object]) -> Waypoint:
        """Insert a waypoint row and return it."""
        response = self._execute(
            "create",
            lambda: self.client.table(self.table_name)
            .insert(_to_row(fields))
            .execute(),
        )
        if not response.data:
            raise StorageError("Failed to create waypoint in Supabase")
        return _row_to_waypoint(response.data[0])

    def update_waypoint(
        self, waypoint_id: UUID, fields: Mapping[str, object]
    ) -> Waypoint | None:
        """Update the given columns and return the updated row."""
        response = self._execute(
            "update",
            lambda: self.client.table(self.table_name)
            .update(_to_row(fields))
            .eq("id", str(waypoint_id))
            .execute(),
        )
        if not response.data:
            return None
        return _row_to_waypoint(response.data[0])

    def delete_waypoint(self, waypoint_id: UUID) -> bool:
        """Delete a waypoint row."""
        response = self._execute(
            "delete",
            lambda: self.client.table(self.table_name)
            .delete()
            .eq("id", str(waypoint_id))
            .execute(),
        )
        return bool(response.data)

    def _execute(self, action: str, query: Callable[[], Any]) -> Any:
        try:
            return query()
        except Exception as exc:
            raise StorageError(f"Supabase waypoint {action} failed") from exc


def _to_row(fields: Mapping[str, object]) -> dict[str, object]:
    row: dict[str, object] = {}
    for name, value in fields.items():
        if name == "images":
            value = list(value)  # type: ignore[call-overload]
        row[_COLUMN_NAMES.get(name, name)] = value
    return row


def _row_to_waypoint(row: dict[str, object]) -> Waypoint:
    return Waypoint(
        id=UUID(str(row["id"])),
        lat=float(row["lat"]),  # type: ignore[arg-type]
        lng=float(row["lng"]),  # type: ignore[arg-type]
        title=str(row.get("title") or ""),
        description=row.get("description") or None,  # type: ignore[arg-type]
        primary_image=row.get("image") or None,  # type: ignore[arg-type]
        images=tuple(_parse_images(row.get("images"))),
        journal_text=row.get("journal_text"),  # type: ignore[arg-type]
    )


def _parse_images(raw: object) -> list[str]:
    """Accept a JSON array column or a JSON-encoded text column."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        raw = json.loads(raw)
    if not isinstance(raw, list):
        return []
    return [str(item) for item in raw]
