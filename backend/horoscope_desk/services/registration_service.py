"""
Horoscope Desk Backend: Registration (Profile) Service
=======================================================

What:  Search, fetch, create and edit matchmaking profiles.
How:   Plain SQL through the Gateway. Profile ID, phone and WhatsApp number
       are unique; each is pre-checked with a SELECT so the common case
       gets a precise message, and the database constraint still catches
       races (surfaced as DuplicateKeyError).
Who:   Called by routes/registrations.py.

Duplicate-field detection:
    The native error text differs per backend:

        mysql   Duplicate entry '9876543210' for key 'registrations.phone'
        sqlite  UNIQUE constraint failed: registrations.phone

    duplicate_field() pulls the key/column part out per backend and then
    does the substring match. This is a heuristic over driver text, not a
    structured lookup.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from horoscope_desk.database import Gateway
from horoscope_desk.exceptions import DuplicateKeyError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

GENDERS = ("male", "female")
SEARCH_LIMIT = 30

REGISTRATION_COLUMNS = (
    "id, registration_id, name, role, phone, whatsapp_number, "
    "horoscope_path, notes, address, created_at"
)

DUPLICATE_MESSAGES = {
    "registration_id": "This Profile ID is already in use. Profile ID must be unique.",
    "phone": "This phone number is already registered",
    "whatsapp_number": "This WhatsApp number is already registered",
}
GENERIC_DUPLICATE_MESSAGE = "Duplicate value; Profile ID must be unique."

_MYSQL_KEY_RE = re.compile(r"for key '([^']+)'")
_SQLITE_KEY_RE = re.compile(r"UNIQUE constraint failed: (.+)$")

EDITABLE_FIELDS = (
    "registration_id",
    "name",
    "role",
    "phone",
    "whatsapp_number",
    "horoscope_path",
    "notes",
    "address",
)


def clean_text(value: Any) -> Optional[str]:
    """Trim; empty → None."""
    if value is None:
        return None
    return str(value).strip() or None


def normalize_whatsapp(value: Any) -> Optional[str]:
    """Keep digits only; empty → None."""
    if value is None:
        return None
    return re.sub(r"\D", "", str(value)) or None


def duplicate_field(error: DuplicateKeyError) -> Optional[str]:
    """Best guess at which unique column a DuplicateKeyError refers to."""
    native = error.native_message or ""
    if error.backend == "mysql":
        match = _MYSQL_KEY_RE.search(native)
    elif error.backend == "sqlite":
        match = _SQLITE_KEY_RE.search(native)
    else:
        match = None
    haystack = match.group(1) if match else native

    if "registration_id" in haystack:
        return "registration_id"
    if "phone" in haystack:
        return "phone"
    if "whatsapp" in haystack:
        return "whatsapp_number"
    return None


def duplicate_message(error: DuplicateKeyError) -> str:
    return DUPLICATE_MESSAGES.get(duplicate_field(error) or "", GENERIC_DUPLICATE_MESSAGE)


class RegistrationService:

    # ── Reads ─────────────────────────────────────────────────────────────

    async def search(
        self,
        gateway: Gateway,
        search: str = "",
        prefix: str = "",
    ) -> List[Dict[str, Any]]:
        """
        Prefix match on Profile ID, else substring match on ID, name, phone
        and WhatsApp. At most 30 rows, ordered by Profile ID.
        """
        query = f"SELECT {REGISTRATION_COLUMNS} FROM registrations WHERE 1=1"
        params: List[Any] = []
        if prefix:
            query += " AND registration_id LIKE ?"
            params.append(f"{prefix}%")
        elif search:
            query += (
                " AND (registration_id LIKE ? OR name LIKE ? OR phone LIKE ? OR whatsapp_number LIKE ?)"
            )
            term = f"%{search}%"
            params.extend([term, term, term, term])
        query += f" ORDER BY registration_id ASC LIMIT {SEARCH_LIMIT}"
        return await gateway.fetch_all(query, params)

    async def get_by_registration_id(self, gateway: Gateway, registration_id: str) -> Dict[str, Any]:
        row = await gateway.fetch_one(
            f"SELECT {REGISTRATION_COLUMNS} FROM registrations WHERE registration_id = ?",
            [registration_id],
        )
        if row is None:
            raise NotFoundError(resource="registration", resource_id=registration_id)
        return row

    async def get_by_id(self, gateway: Gateway, row_id: int) -> Dict[str, Any]:
        row = await gateway.fetch_one(
            f"SELECT {REGISTRATION_COLUMNS} FROM registrations WHERE id = ?",
            [row_id],
        )
        if row is None:
            raise NotFoundError(resource="registration", resource_id=str(row_id))
        return row

    # ── Writes ────────────────────────────────────────────────────────────

    async def create(self, gateway: Gateway, data: Dict[str, Any]) -> int:
        """
        Insert a profile and return its row id.

        Raises:
            ValidationError:   Profile ID, name or gender missing / invalid
            DuplicateKeyError: Profile ID, phone or WhatsApp already used
        """
        registration_id = str(data.get("registration_id") or "").strip()
        name = data.get("name")
        role = data.get("role")
        if not registration_id or not name or not role:
            raise ValidationError("Profile ID, name and gender are required")
        if role not in GENDERS:
            raise ValidationError("Gender must be 'male' or 'female'", field="role")

        phone = clean_text(data.get("phone"))
        whatsapp = normalize_whatsapp(data.get("whatsapp_number"))

        await self._ensure_unique(gateway, "registration_id", registration_id)
        if phone:
            await self._ensure_unique(gateway, "phone", phone)
        if whatsapp:
            await self._ensure_unique(gateway, "whatsapp_number", whatsapp)

        try:
            result, _ = await gateway.execute(
                "INSERT INTO registrations (registration_id, name, role, phone, whatsapp_number, notes, address) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                [
                    registration_id,
                    name,
                    role,
                    phone,
                    whatsapp,
                    data.get("notes") or None,
                    clean_text(data.get("address")),
                ],
            )
        except DuplicateKeyError as exc:
            raise self._friendly_duplicate(exc) from exc

        logger.info("Registration %s created (row %s)", registration_id, result.inserted_id)
        return result.inserted_id

    async def update(self, gateway: Gateway, row_id: int, changes: Dict[str, Any]) -> None:
        """
        Partially update a profile. `changes` holds only the fields the
        client sent; an explicit None / "" clears phone, WhatsApp and address.
        """
        changes = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
        if not changes:
            raise ValidationError("Nothing to update")

        for column, label in (("registration_id", "Profile ID"), ("name", "Name")):
            if column in changes:
                value = str(changes[column] or "").strip()
                if not value:
                    raise ValidationError(f"{label} cannot be empty", field=column)
                changes[column] = value
        if "role" in changes and changes["role"] not in GENDERS:
            raise ValidationError("Gender must be 'male' or 'female'", field="role")

        if "registration_id" in changes:
            await self._ensure_unique(gateway, "registration_id", changes["registration_id"], exclude_id=row_id)
        if "phone" in changes:
            changes["phone"] = clean_text(changes["phone"])
            if changes["phone"]:
                await self._ensure_unique(gateway, "phone", changes["phone"], exclude_id=row_id)
        if "whatsapp_number" in changes:
            changes["whatsapp_number"] = normalize_whatsapp(changes["whatsapp_number"])
            if changes["whatsapp_number"]:
                await self._ensure_unique(gateway, "whatsapp_number", changes["whatsapp_number"], exclude_id=row_id)
        if "address" in changes:
            changes["address"] = clean_text(changes["address"])

        assignments = ", ".join(f"{column} = ?" for column in changes)
        values = list(changes.values()) + [row_id]
        try:
            result, _ = await gateway.execute(
                f"UPDATE registrations SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                values,
            )
        except DuplicateKeyError as exc:
            raise self._friendly_duplicate(exc) from exc

        if result.affected_row_count == 0:
            raise NotFoundError(resource="registration", resource_id=str(row_id))
        logger.info("Registration row %s updated (%s)", row_id, ", ".join(changes))

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _ensure_unique(
        self,
        gateway: Gateway,
        column: str,
        value: str,
        exclude_id: Optional[int] = None,
    ) -> None:
        sql = f"SELECT id FROM registrations WHERE {column} = ?"
        params: List[Any] = [value]
        if exclude_id is not None:
            sql += " AND id != ?"
            params.append(exclude_id)
        if await gateway.fetch_one(sql, params) is not None:
            raise DuplicateKeyError(message=DUPLICATE_MESSAGES[column], context={"field": column})

    @staticmethod
    def _friendly_duplicate(exc: DuplicateKeyError) -> DuplicateKeyError:
        field = duplicate_field(exc)
        return DuplicateKeyError(
            message=duplicate_message(exc),
            backend=exc.backend,
            native_message=exc.native_message,
            context={"field": field} if field else None,
        )


registration_service = RegistrationService()
