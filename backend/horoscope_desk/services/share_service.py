"""
Horoscope Desk Backend: Share Recording Service
================================================

What:  Records that profile S's horoscope was shared with profile R.
How:   One upsert keyed on (sender, recipient). Re-submitting the same pair
       refreshes `shared_at` and only overwrites `shared_via` / `notes`
       when the new value is present:

           ON DUPLICATE KEY UPDATE
               shared_at  = CURRENT_TIMESTAMP,
               shared_via = COALESCE(VALUES(shared_via), shared_via),
               notes      = COALESCE(VALUES(notes), notes)

       The statement is safe to retry; on SQLite the gateway rewrites it to
       INSERT ... ON CONFLICT(...) DO UPDATE SET ... excluded.x.
"""

import logging
from typing import Optional

from horoscope_desk.database import Gateway
from horoscope_desk.exceptions import ReferenceNotFoundError, ValidationError

logger = logging.getLogger(__name__)

SHARE_CHANNELS = ("whatsapp", "manual", "other")

RECORD_SHARE_SQL = (
    "INSERT INTO horoscope_shares (sender_registration_id, recipient_registration_id, shared_via, notes)\n"
    "       VALUES (?, ?, ?, ?)\n"
    "       ON DUPLICATE KEY UPDATE shared_at = CURRENT_TIMESTAMP, "
    "shared_via = COALESCE(VALUES(shared_via), shared_via), "
    "notes = COALESCE(VALUES(notes), notes)"
)


class ShareService:

    async def record_share(
        self,
        gateway: Gateway,
        sender_registration_id: Optional[str],
        recipient_registration_id: Optional[str],
        shared_via: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> None:
        """
        Upsert one share.

        Raises:
            ValidationError:        ids missing, identical, or unknown channel
            ReferenceNotFoundError: either profile does not exist
        """
        sender = (sender_registration_id or "").strip()
        recipient = (recipient_registration_id or "").strip()
        if not sender or not recipient:
            raise ValidationError("From profile ID and To profile ID are required")
        if sender == recipient:
            raise ValidationError("Sender and recipient must be different")
        shared_via = shared_via or None
        if shared_via is not None and shared_via not in SHARE_CHANNELS:
            raise ValidationError(
                f"shared_via must be one of: {', '.join(SHARE_CHANNELS)}",
                field="shared_via",
            )

        try:
            await gateway.execute(RECORD_SHARE_SQL, [sender, recipient, shared_via, notes or None])
        except ReferenceNotFoundError as exc:
            raise ReferenceNotFoundError(
                message="Profile ID not found. Add the profile first.",
                backend=exc.backend,
                native_message=exc.native_message,
            ) from exc
        logger.info("Share recorded: %s → %s (via=%s)", sender, recipient, shared_via)


share_service = ShareService()
