"""
Horoscope Desk Backend: Share Recording Tests
==============================================

What:  The (sender, recipient) upsert: re-submission merges instead of
       failing, and an absent shared_via / notes never erases the stored
       value.
"""

import pytest

from horoscope_desk.exceptions import ReferenceNotFoundError, ValidationError
from horoscope_desk.services.registration_service import registration_service
from horoscope_desk.services.share_service import ShareService


async def seed_pair(gateway):
    await registration_service.create(gateway, {"registration_id": "M1", "name": "Arun", "role": "male"})
    await registration_service.create(gateway, {"registration_id": "F1", "name": "Meena", "role": "female"})


async def share_rows(gateway):
    return await gateway.fetch_all(
        "SELECT sender_registration_id, recipient_registration_id, shared_via, notes FROM horoscope_shares"
    )


class TestRecordShare:

    def setup_method(self):
        self.service = ShareService()

    @pytest.mark.asyncio
    async def test_first_record(self, gateway):
        await seed_pair(gateway)
        await self.service.record_share(gateway, "M1", "F1", "whatsapp", "sent PDF")
        assert await share_rows(gateway) == [
            {"sender_registration_id": "M1", "recipient_registration_id": "F1", "shared_via": "whatsapp", "notes": "sent PDF"}
        ]

    @pytest.mark.asyncio
    async def test_resubmit_without_channel_keeps_previous_channel(self, gateway):
        await seed_pair(gateway)
        await self.service.record_share(gateway, "M1", "F1", "whatsapp", "sent PDF")
        await self.service.record_share(gateway, "M1", "F1")

        rows = await share_rows(gateway)
        assert len(rows) == 1
        assert rows[0]["shared_via"] == "whatsapp"
        assert rows[0]["notes"] == "sent PDF"

    @pytest.mark.asyncio
    async def test_resubmit_with_new_values_overwrites(self, gateway):
        await seed_pair(gateway)
        await self.service.record_share(gateway, "M1", "F1", "whatsapp")
        await self.service.record_share(gateway, "M1", "F1", "manual", "handed over")

        rows = await share_rows(gateway)
        assert rows[0]["shared_via"] == "manual"
        assert rows[0]["notes"] == "handed over"

    @pytest.mark.asyncio
    async def test_reverse_direction_is_a_separate_share(self, gateway):
        await seed_pair(gateway)
        await self.service.record_share(gateway, "M1", "F1")
        await self.service.record_share(gateway, "F1", "M1")
        assert len(await share_rows(gateway)) == 2

    @pytest.mark.asyncio
    async def test_unknown_profile(self, gateway):
        await seed_pair(gateway)
        with pytest.raises(ReferenceNotFoundError, match="Add the profile first"):
            await self.service.record_share(gateway, "M1", "NOPE")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sender, recipient, via", [
        ("", "F1", None),
        ("M1", None, None),
        ("M1", "M1", None),
        ("M1", "F1", "carrier-pigeon"),
    ])
    async def test_invalid_input(self, gateway, sender, recipient, via):
        with pytest.raises(ValidationError):
            await self.service.record_share(gateway, sender, recipient, via)
