"""
Horoscope Desk Backend: Role Menu Settings
===========================================

What:  Key-value settings stored in `app_settings`, currently one key:
       which dashboard routes the viewer role may see.
How:   The value is a JSON array of route paths, upserted by key.

Read vs write failure policy:
    get_allowed_menus()  missing table / row / bad JSON → DEFAULT_VIEWER_MENUS
    set_allowed_menus()  missing table                  → SettingsUnavailableError

    A missing migration must never lock viewers out, but an admin whose
    change did not stick must be told.
"""

import json
import logging
from typing import List, Sequence

from sqlalchemy.exc import SQLAlchemyError

from horoscope_desk.database import Gateway
from horoscope_desk.exceptions import SettingsUnavailableError

logger = logging.getLogger(__name__)

KEY_VIEWER_MENUS = "viewer_allowed_menus"

DEFAULT_VIEWER_MENUS: List[str] = [
    "/dashboard",
    "/dashboard/lookup",
    "/dashboard/registrations",
    "/dashboard/record-share",
    "/dashboard/follow-ups",
    "/dashboard/upload",
    "/dashboard/send-profile-details",
]


class SettingsService:

    async def get_allowed_menus(self, gateway: Gateway) -> List[str]:
        try:
            row = await gateway.fetch_one(
                "SELECT value FROM app_settings WHERE `key` = ?",
                [KEY_VIEWER_MENUS],
            )
        except SQLAlchemyError as exc:
            logger.warning("Settings unavailable, using default viewer menus: %s", exc)
            return list(DEFAULT_VIEWER_MENUS)

        if not row or not row.get("value"):
            return list(DEFAULT_VIEWER_MENUS)
        try:
            menus = json.loads(row["value"])
        except (TypeError, ValueError):
            logger.warning("Stored %s is not valid JSON; using defaults", KEY_VIEWER_MENUS)
            return list(DEFAULT_VIEWER_MENUS)
        if not isinstance(menus, list) or not all(isinstance(m, str) for m in menus):
            return list(DEFAULT_VIEWER_MENUS)
        return menus

    async def set_allowed_menus(self, gateway: Gateway, menus: Sequence[str]) -> None:
        """
        Store the viewer menu list. Admin role is checked by the caller.

        Raises:
            SettingsUnavailableError: the settings table could not be written
        """
        value = json.dumps([str(m) for m in menus])
        try:
            await gateway.execute(
                "INSERT INTO app_settings (`key`, value) VALUES (?, ?) "
                "ON DUPLICATE KEY UPDATE value = VALUES(value)",
                [KEY_VIEWER_MENUS, value],
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to write %s: %s", KEY_VIEWER_MENUS, exc)
            raise SettingsUnavailableError(context={"key": KEY_VIEWER_MENUS}) from exc
        logger.info("Viewer menus updated (%d entries)", len(menus))


settings_service = SettingsService()
