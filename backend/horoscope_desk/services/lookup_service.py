"""
Horoscope Desk Backend: Profile Lookup Service
===============================================

What:  "Who has already received this profile?" for one Profile ID.
How:   Reads the send logs (`horoscope_sends`, `profile_detail_sends`) and
       matches each recipient number back to a registration. Numbers are
       logged with the 91 country prefix; registrations may store them
       without it, so each match also tries SUBSTRING(number, 3).
"""

import logging
from typing import Any, Dict

from horoscope_desk.database import Gateway

logger = logging.getLogger(__name__)


def _match_subquery(alias: str, column: str, output: str) -> str:
    number = f"{alias}.recipient_whatsapp"
    return (
        f"(SELECT r2.{column} FROM registrations r2 "
        f"WHERE r2.whatsapp_number = {number} OR r2.phone = {number} "
        f"OR r2.whatsapp_number = SUBSTRING({number}, 3) OR r2.phone = SUBSTRING({number}, 3) "
        f"LIMIT 1) AS {output}"
    )


def _match_columns(alias: str) -> str:
    return ",\n              ".join(
        [
            _match_subquery(alias, "registration_id", "match_registration_id"),
            _match_subquery(alias, "name", "match_name"),
            _match_subquery(alias, "role", "match_role"),
        ]
    )


HOROSCOPE_SENT_SQL = f"""SELECT h.recipient_whatsapp, h.sent_at,
              {_match_columns("h")}
       FROM horoscope_sends h
       WHERE h.registration_id = ?
       ORDER BY h.sent_at DESC"""

DETAILS_SENT_SQL = f"""SELECT p.recipient_whatsapp, p.fields_sent, p.sent_at,
              {_match_columns("p")}
       FROM profile_detail_sends p
       WHERE p.registration_id = ?
       ORDER BY p.sent_at DESC"""


class LookupService:

    async def lookup(self, gateway: Gateway, registration_id: str) -> Dict[str, Any]:
        profile = await gateway.fetch_one(
            "SELECT registration_id, name, role, phone, whatsapp_number, horoscope_path "
            "FROM registrations WHERE registration_id = ?",
            [registration_id],
        )
        horoscope_sent_to = await gateway.fetch_all(HOROSCOPE_SENT_SQL, [registration_id])
        details_sent_to = await gateway.fetch_all(DETAILS_SENT_SQL, [registration_id])
        return {
            "registrationId": registration_id,
            "profile": profile,
            "horoscopeSentTo": horoscope_sent_to,
            "profileDetailsSentTo": details_sent_to,
        }


lookup_service = LookupService()
