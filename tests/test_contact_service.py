"""Tests for kindred.core.contact_service — lifecycle against a real SQLite store."""

from datetime import timezone

import pytest

from kindred.core.cadence import UnknownCadenceError
from kindred.core.clock import DAY_MS
from kindred.core.contact_service import ContactNotFoundError, ContactService, NewContact
from kindred.core.distribution import ImportCandidate
from kindred.data.models import NotificationSettings

from conftest import ms

NOW = ms("2026-02-10T12:00:00")
PREFS = NotificationSettings(frequency=1, reminder_times=["09:00"])


@pytest.fixture
def service(contact_db, notifier):
    return ContactService(contact_db, notifier, preferences=PREFS, tz=timezone.utc)


async def _add(service, **kw):
    fields = {"id": "ada", "name": "Ada", "cadence": "weekly"}
    fields.update(kw)
    return await service.add_contact(NewContact(**fields), now_ms=NOW)


class TestAddContact:
    @pytest.mark.asyncio
    async def test_default_anchor_is_now(self, service, notifier):
        contact = await _add(service)
        assert contact.next_reminder_at == NOW
        # 09:00 today has passed, so the first slot is tomorrow
        assert notifier.for_contact("ada")[0].trigger_at == ms("2026-02-11T09:00:00")

    @pytest.mark.asyncio
    async def test_explicit_anchor_wins(self, service):
        contact = await _add(service, next_reminder_at=NOW + 3 * DAY_MS)
        assert contact.next_reminder_at == NOW + 3 * DAY_MS

    @pytest.mark.asyncio
    async def test_anchor_from_last_contacted(self, service):
        last = NOW - 2 * DAY_MS
        contact = await _add(service, last_contacted_at=last)
        assert contact.next_reminder_at == last + 7 * DAY_MS

    @pytest.mark.asyncio
    async def test_name_is_trimmed(self, service):
        contact = await _add(service, name="  Ada  ")
        assert contact.name == "Ada"

    @pytest.mark.asyncio
    async def test_unknown_cadence_raises(self, service, contact_db):
        with pytest.raises(UnknownCadenceError):
            await _add(service, cadence="fortnightly-ish")
        assert contact_db.select_all() == []

    @pytest.mark.asyncio
    async def test_interval_dropped_for_named_cadence(self, service):
        contact = await _add(service, custom_interval_days=5)
        assert contact.custom_interval_days is None


class TestImportContacts:
    @pytest.mark.asyncio
    async def test_spreads_and_schedules(self, service, notifier):
        candidates = [
            ImportCandidate(id=f"c{i}", name=f"Friend {i}", cadence="weekly")
            for i in range(7)
        ]
        added = await service.import_contacts(candidates, now_ms=NOW)

        assert [c.next_reminder_at for c in added] == [NOW + i * DAY_MS for i in range(7)]
        assert all(notifier.for_contact(f"c{i}") for i in range(7))


class TestLogInteraction:
    @pytest.mark.asyncio
    async def test_restarts_cadence(self, service, contact_db):
        await _add(service, next_reminder_at=NOW - DAY_MS)
        updated = await service.log_interaction("ada", "call", notes="caught up", now_ms=NOW)

        assert updated.last_contacted_at == NOW
        assert updated.next_reminder_at == NOW + 7 * DAY_MS
        [interaction] = service.interaction_history("ada")
        assert interaction.kind == "call"
        assert interaction.notes == "caught up"

    @pytest.mark.asyncio
    async def test_unknown_contact(self, service):
        with pytest.raises(ContactNotFoundError):
            await service.log_interaction("ghost", "text", now_ms=NOW)


class TestUpdateCadence:
    @pytest.mark.asyncio
    async def test_changed_cadence_restarts_from_now(self, service):
        await _add(service, next_reminder_at=NOW + 5 * DAY_MS)
        updated = await service.update_cadence("ada", "monthly", now_ms=NOW)
        assert updated.cadence == "monthly"
        assert updated.next_reminder_at == NOW

    @pytest.mark.asyncio
    async def test_explicit_anchor_wins(self, service):
        await _add(service)
        anchor = NOW + 12 * DAY_MS
        updated = await service.update_cadence("ada", "monthly", anchor_ms=anchor, now_ms=NOW)
        assert updated.next_reminder_at == anchor

    @pytest.mark.asyncio
    async def test_unchanged_cadence_recomputes_from_last_contact(self, service):
        last = NOW - 3 * DAY_MS
        await _add(service, last_contacted_at=last, next_reminder_at=NOW + 20 * DAY_MS)
        updated = await service.update_cadence("ada", "weekly", now_ms=NOW)
        assert updated.next_reminder_at == last + 7 * DAY_MS

    @pytest.mark.asyncio
    async def test_custom_interval_change(self, service):
        await _add(service, cadence="custom", custom_interval_days=3)
        updated = await service.update_cadence("ada", "custom", custom_interval_days=10, now_ms=NOW)
        assert updated.custom_interval_days == 10
        assert updated.next_reminder_at == NOW

    @pytest.mark.asyncio
    async def test_unknown_cadence_raises(self, service):
        await _add(service)
        with pytest.raises(UnknownCadenceError):
            await service.update_cadence("ada", "sometimes", now_ms=NOW)


class TestSnoozeContact:
    @pytest.mark.asyncio
    async def test_snaps_to_cadence_boundary(self, service):
        anchor = ms("2026-02-10T09:00:00")
        await _add(service, next_reminder_at=anchor)
        updated = await service.snooze_contact("ada", anchor + 6 * DAY_MS, now_ms=NOW)
        assert updated.next_reminder_at == anchor + 7 * DAY_MS

    @pytest.mark.asyncio
    async def test_birthday_keeps_later_anchor(self, service):
        existing = NOW + 10 * DAY_MS
        await _add(service, birthday="02-10", next_reminder_at=existing)
        updated = await service.snooze_contact("ada", NOW + DAY_MS, now_ms=NOW)
        assert updated.next_reminder_at == existing

    @pytest.mark.asyncio
    async def test_reschedules_after_snooze(self, service, notifier):
        await _add(service, next_reminder_at=NOW)
        await service.snooze_contact("ada", NOW + 3 * DAY_MS, now_ms=NOW)
        [request] = notifier.for_contact("ada")
        assert request.trigger_at == ms("2026-02-13T09:00:00")


class TestArchive:
    @pytest.mark.asyncio
    async def test_archive_cancels_and_hides(self, service, notifier):
        await _add(service, next_reminder_at=NOW + DAY_MS)
        archived = await service.archive_contact("ada")

        assert archived.is_archived is True
        assert archived.next_reminder_at == NOW + DAY_MS
        assert notifier.for_contact("ada") == []
        assert service.list_contacts() == []
        assert len(service.list_contacts(include_archived=True)) == 1

    @pytest.mark.asyncio
    async def test_unarchive_reschedules(self, service, notifier):
        await _add(service, next_reminder_at=NOW + DAY_MS)
        await service.archive_contact("ada")
        restored = await service.unarchive_contact("ada", now_ms=NOW)

        assert restored.is_archived is False
        assert len(notifier.for_contact("ada")) == 1

    @pytest.mark.asyncio
    async def test_archive_unknown(self, service):
        with pytest.raises(ContactNotFoundError):
            await service.archive_contact("ghost")


class TestPreferencesAndReset:
    @pytest.mark.asyncio
    async def test_apply_preferences_reschedules_everyone(self, service, notifier):
        await _add(service, id="a", next_reminder_at=NOW + DAY_MS)
        await _add(service, id="b", next_reminder_at=NOW + 2 * DAY_MS)

        prefs = NotificationSettings(frequency=3, reminder_times=["08:00", "13:00", "18:00"])
        results = await service.apply_preferences(prefs, now_ms=NOW)

        assert set(results) == {"a", "b"}
        assert service.preferences is prefs
        assert len(notifier.for_contact("a")) == 3
        assert len(notifier.for_contact("b")) == 3

    @pytest.mark.asyncio
    async def test_reset_clears_everything(self, service, notifier, contact_db):
        await _add(service, next_reminder_at=NOW + DAY_MS)
        await service.reset()
        assert notifier.pending == {}
        assert contact_db.select_all(include_archived=True) == []


class TestQueries:
    @pytest.mark.asyncio
    async def test_due_contacts(self, service):
        await _add(service, id="never", name="Never", next_reminder_at=NOW + 9 * DAY_MS)
        await _add(service, id="due", name="Due", last_contacted_at=NOW - 10 * DAY_MS)
        await _add(service, id="later", name="Later", last_contacted_at=NOW - DAY_MS)

        due = {c.id for c in service.get_due_contacts(NOW)}
        assert due == {"never", "due"}

    @pytest.mark.asyncio
    async def test_find_by_name_is_case_insensitive(self, service):
        await _add(service, name="Grace Hopper")
        assert service.find_by_name("grace hopper").id == "ada"
        assert service.find_by_name("Linus") is None


class TestBirthdayRefresh:
    @pytest.mark.asyncio
    async def test_refresh_on_birthday_moves_trigger_to_today(self, service, notifier):
        await _add(
            service, birthday="02-15",
            next_reminder_at=ms("2026-02-20T09:00:00"),
        )
        assert notifier.for_contact("ada")[0].trigger_at == ms("2026-02-20T09:00:00")

        await service.apply_preferences(service.preferences, now_ms=ms("2026-02-15T00:05:00"))

        [request] = notifier.for_contact("ada")
        assert request.trigger_at == ms("2026-02-15T09:00:00")
