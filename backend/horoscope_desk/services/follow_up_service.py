"""
Horoscope Desk Backend: Follow-up Service
==========================================

What:  Reminders for staff ("call the bride's family on Friday").
How:   `follow_ups` rows joined with the registration's name and gender.
       "Due today" compares against CURDATE(), which the gateway rewrites
       to date('now') on SQLite.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from horoscope_desk.database import Gateway
from horoscope_desk.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

STATUSES = ("pending", "done")

_LIST_SQL = """
      SELECT f.id, f.registration_id, f.share_id, f.due_date, f.note, f.status, f.created_at,
             r.name AS registration_name, r.role AS registration_role
      FROM follow_ups f
      LEFT JOIN registrations r ON r.registration_id = f.registration_id
      WHERE 1=1
"""


def _validate_due_date(value: Any) -> str:
    try:
        return date.fromisoformat(str(value)).isoformat()
    except ValueError:
        raise ValidationError("due_date must be a date in YYYY-MM-DD format", field="due_date")


class FollowUpService:

    async def list_follow_ups(self, gateway: Gateway, due_today: bool = False) -> List[Dict[str, Any]]:
        query = _LIST_SQL
        params: List[Any] = []
        if due_today:
            query += " AND f.due_date = CURDATE() AND f.status = ?"
            params.append("pending")
        query += " ORDER BY f.due_date ASC, f.id DESC"
        return await gateway.fetch_all(query, params)

    async def create(
        self,
        gateway: Gateway,
        created_by: int,
        registration_id: Optional[str],
        due_date: Optional[str],
        note: Optional[str],
        share_id: Optional[int] = None,
    ) -> int:
        if not registration_id or not due_date or not note:
            raise ValidationError("Profile ID, due date and note are required")
        due = _validate_due_date(due_date)

        result, _ = await gateway.execute(
            "INSERT INTO follow_ups (registration_id, share_id, due_date, note, created_by) "
            "VALUES (?, ?, ?, ?, ?)",
            [registration_id, share_id or None, due, note, created_by],
        )
        logger.info("Follow-up %s created for %s (due %s)", result.inserted_id, registration_id, due)
        return result.inserted_id

    async def update(self, gateway: Gateway, follow_up_id: int, changes: Dict[str, Any]) -> None:
        updates: List[str] = []
        values: List[Any] = []
        if changes.get("status") is not None:
            if changes["status"] not in STATUSES:
                raise ValidationError("status must be 'pending' or 'done'", field="status")
            updates.append("status = ?")
            values.append(changes["status"])
        if changes.get("due_date") is not None:
            updates.append("due_date = ?")
            values.append(_validate_due_date(changes["due_date"]))
        if changes.get("note") is not None:
            updates.append("note = ?")
            values.append(changes["note"])
        if not updates:
            raise ValidationError("Nothing to update")

        values.append(follow_up_id)
        result, _ = await gateway.execute(
            f"UPDATE follow_ups SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            values,
        )
        if result.affected_row_count == 0:
            raise NotFoundError(resource="follow-up", resource_id=str(follow_up_id))


follow_up_service = FollowUpService()
