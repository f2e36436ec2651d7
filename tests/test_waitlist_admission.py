"""
Tests for WaitlistAdmission: check ordering, limits, and the insert race.
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from marketing_api.core.config import AdmissionLimits
from marketing_api.core.errors import AdmissionError, AdmissionFailure
from marketing_api.db.base import utc_now
from marketing_api.models.waitlist import WaitlistEntry, WaitlistStatus
from marketing_api.services.waitlist_service import WaitlistAdmission


async def row_count(db_session) -> int:
    return (await db_session.execute(select(func.count(WaitlistEntry.id)))).scalar_one()


async def expect_failure(admission, failure, *args):
    with pytest.raises(AdmissionError) as exc_info:
        await admission.admit(*args)
    assert exc_info.value.failure == failure


@pytest.mark.asyncio
async def test_admit_first_entry(gateway, limits, db_session):
    """First signup gets position 1 and is stored normalized."""
    admission = WaitlistAdmission(gateway, limits)

    result = await admission.admit("  Jane Doe ", "  Jane@X.com ", "1.2.3.4", "UA")

    assert result.position == 1
    assert result.entry.name == "Jane Doe"
    assert result.entry.email == "jane@x.com"
    assert result.entry.status == WaitlistStatus.PENDING.value
    stored = await gateway.find_waitlist_entry_by_email("JANE@x.com")
    assert stored is not None
    assert stored.position == 1


@pytest.mark.asyncio
async def test_position_is_prior_count_plus_one(gateway, limits, db_session, make_entry):
    for _ in range(4):
        db_session.add(make_entry(ip_address="9.9.9.9"))
    await db_session.flush()

    result = await WaitlistAdmission(gateway, limits).admit("Jane Doe", "jane@x.com", "1.2.3.4", "UA")

    assert result.position == 5
    assert result.entry.position == 5


@pytest.mark.asyncio
async def test_invalid_name_inserts_nothing(gateway, limits, db_session):
    await expect_failure(WaitlistAdmission(gateway, limits), AdmissionFailure.INVALID_NAME, " J ", "j@x.com")
    assert await row_count(db_session) == 0


@pytest.mark.asyncio
async def test_invalid_email_inserts_nothing(gateway, limits, db_session):
    await expect_failure(WaitlistAdmission(gateway, limits), AdmissionFailure.INVALID_EMAIL, "Jane", "not-an-email")
    assert await row_count(db_session) == 0


@pytest.mark.asyncio
async def test_name_checked_before_email(gateway, limits):
    await expect_failure(WaitlistAdmission(gateway, limits), AdmissionFailure.INVALID_NAME, "", "")


@pytest.mark.asyncio
async def test_duplicate_email_rejected_every_time(gateway, limits, db_session):
    admission = WaitlistAdmission(gateway, limits)
    await admission.admit("Jane Doe", "jane@x.com", "1.2.3.4", "UA")

    await expect_failure(admission, AdmissionFailure.DUPLICATE_EMAIL, "Jane Doe", "JANE@X.COM", "5.5.5.5", "UA")
    await expect_failure(admission, AdmissionFailure.DUPLICATE_EMAIL, "Jane Doe", "jane@x.com", "6.6.6.6", "UA")
    assert await row_count(db_session) == 1


@pytest.mark.asyncio
async def test_capacity_reached(gateway, db_session, make_entry):
    db_session.add(make_entry())
    await db_session.flush()
    admission = WaitlistAdmission(gateway, AdmissionLimits(max_waitlist_entries=1))

    await expect_failure(admission, AdmissionFailure.WAITLIST_FULL, "Jane Doe", "jane@x.com", "1.2.3.4", "UA")
    assert await row_count(db_session) == 1


@pytest.mark.asyncio
async def test_capacity_checked_before_duplicate(gateway, db_session, make_entry):
    db_session.add(make_entry(email="jane@x.com"))
    await db_session.flush()
    admission = WaitlistAdmission(gateway, AdmissionLimits(max_waitlist_entries=1))

    await expect_failure(admission, AdmissionFailure.WAITLIST_FULL, "Jane Doe", "jane@x.com")


@pytest.mark.asyncio
async def test_duplicate_checked_before_ip_limit(gateway, limits, db_session):
    admission = WaitlistAdmission(gateway, limits)
    for i in range(3):
        await admission.admit("Jane Doe", f"jane{i}@x.com", "1.2.3.4", "UA")

    await expect_failure(admission, AdmissionFailure.DUPLICATE_EMAIL, "Jane Doe", "jane0@x.com", "1.2.3.4", "UA")


@pytest.mark.asyncio
async def test_ip_limit_blocks_fourth_signup_only_for_that_ip(gateway, limits, db_session):
    admission = WaitlistAdmission(gateway, limits)
    for i in range(3):
        await admission.admit("Jane Doe", f"jane{i}@x.com", "1.2.3.4", "UA")

    await expect_failure(admission, AdmissionFailure.IP_RATE_LIMITED, "Jane Doe", "jane3@x.com", "1.2.3.4", "UA")

    result = await admission.admit("Jane Doe", "jane3@x.com", "5.6.7.8", "UA")
    assert result.position == 4


@pytest.mark.asyncio
async def test_ip_limit_ignores_signups_older_than_24h(gateway, limits, db_session, make_entry):
    for _ in range(3):
        db_session.add(make_entry(ip_address="1.2.3.4", hours_ago=25))
    await db_session.flush()

    result = await WaitlistAdmission(gateway, limits).admit("Jane Doe", "jane@x.com", "1.2.3.4", "UA")

    assert result.position == 4


@pytest.mark.asyncio
async def test_ip_window_rolls_forward_with_clock(gateway, limits, db_session):
    admission = WaitlistAdmission(gateway, limits)
    for i in range(3):
        await admission.admit("Jane Doe", f"jane{i}@x.com", "1.2.3.4", "UA")

    later = WaitlistAdmission(gateway, limits, clock=lambda: utc_now() + timedelta(hours=25))
    result = await later.admit("Jane Doe", "jane3@x.com", "1.2.3.4", "UA")
    assert result.position == 4


@pytest.mark.asyncio
async def test_missing_ip_and_user_agent_default_to_unknown(gateway, limits):
    result = await WaitlistAdmission(gateway, limits).admit("Jane Doe", "jane@x.com", None, None)
    assert result.entry.ip_address == "unknown"
    assert result.entry.user_agent == "unknown"


@pytest.mark.asyncio
async def test_long_user_agent_truncated(gateway, limits):
    result = await WaitlistAdmission(gateway, limits).admit("Jane Doe", "jane@x.com", "1.2.3.4", "U" * 800)
    assert len(result.entry.user_agent) == 500


@pytest.mark.asyncio
async def test_insert_race_reported_as_duplicate(gateway, limits, db_session, monkeypatch):
    """A concurrent signup that slips past the lookup is caught by the unique index."""
    admission = WaitlistAdmission(gateway, limits)
    await admission.admit("Jane Doe", "jane@x.com", "1.2.3.4", "UA")
    await db_session.commit()

    async def lookup_misses(email):
        return None

    monkeypatch.setattr(gateway, "find_waitlist_entry_by_email", lookup_misses)

    await expect_failure(admission, AdmissionFailure.DUPLICATE_EMAIL, "Jane Twin", "jane@x.com", "5.5.5.5", "UA")
    assert await row_count(db_session) == 1


@pytest.mark.asyncio
async def test_store_failure_propagates_unchanged(gateway, limits, monkeypatch):
    async def unreachable():
        raise ConnectionError("database unreachable")

    monkeypatch.setattr(gateway, "count_waitlist_entries", unreachable)

    with pytest.raises(ConnectionError):
        await WaitlistAdmission(gateway, limits).admit("Jane Doe", "jane@x.com", "1.2.3.4", "UA")


@pytest.mark.asyncio
async def test_lookup_position(gateway, limits):
    admission = WaitlistAdmission(gateway, limits)
    await admission.admit("Jane Doe", "jane@x.com", "1.2.3.4", "UA")

    entry = await admission.lookup_position(" JANE@x.com ")
    assert entry.position == 1

    with pytest.raises(AdmissionError) as exc_info:
        await admission.lookup_position("nobody@x.com")
    assert exc_info.value.failure == AdmissionFailure.NOT_FOUND


@pytest.mark.asyncio
async def test_source_referral_and_client_metadata_stored(gateway, limits):
    iphone = (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) "
        "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
    )
    result = await WaitlistAdmission(gateway, limits).admit(
        "Jane Doe", "jane@x.com", "1.2.3.4", iphone, source="Social", referral_code="FRIEND42",
    )

    entry = await gateway.find_waitlist_entry_by_email("jane@x.com")
    assert entry.id == result.entry.id
    assert entry.source == "social"
    assert entry.referral_code == "FRIEND42"
    assert (entry.browser, entry.os, entry.device) == ("Safari", "iOS", "mobile")


@pytest.mark.asyncio
async def test_source_defaults_to_website(gateway, limits):
    result = await WaitlistAdmission(gateway, limits).admit("Jane Doe", "jane@x.com", "1.2.3.4", None)
    assert result.entry.source == "website"
    assert result.entry.referral_code is None
    assert result.entry.device == "desktop"


@pytest.mark.asyncio
async def test_invalid_source_checked_before_capacity(gateway, db_session, make_entry):
    db_session.add(make_entry())
    await db_session.flush()
    admission = WaitlistAdmission(gateway, AdmissionLimits(max_waitlist_entries=1))

    with pytest.raises(AdmissionError) as exc_info:
        await admission.admit("Jane Doe", "jane@x.com", "1.2.3.4", "UA", source="billboard")
    assert exc_info.value.failure == AdmissionFailure.INVALID_SOURCE

    with pytest.raises(AdmissionError) as exc_info:
        await admission.admit("Jane Doe", "jane@x.com", "1.2.3.4", "UA", referral_code="no spaces!")
    assert exc_info.value.failure == AdmissionFailure.INVALID_REFERRAL_CODE


@pytest.mark.asyncio
async def test_overlong_ip_stored_at_column_width_and_still_limited(gateway, limits, db_session):
    long_ip = "2001:db8:85a3:0:0:8a2e:370:7334%" + "e" * 40
    admission = WaitlistAdmission(gateway, limits)
    for i in range(3):
        result = await admission.admit("Jane Doe", f"jane{i}@x.com", long_ip, "UA")
        assert len(result.entry.ip_address) == 45

    await expect_failure(admission, AdmissionFailure.IP_RATE_LIMITED, "Jane Doe", "jane3@x.com", long_ip, "UA")
