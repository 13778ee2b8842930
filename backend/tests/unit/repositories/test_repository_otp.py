"""Unit tests for OTPRepository."""

from __future__ import annotations

from datetime import timedelta

import pytest
from authcore.models.base import utcnow
from authcore.repositories.otp import OTPRepository
from tests.factories.user import OTPRecordFactory


class TestOTPRepository:
    @pytest.fixture()
    def repo(self, session):
        return OTPRepository(session=session)

    def test_find_live_matches_id_and_type(self, repo):
        record = OTPRecordFactory(otp_type="EMAIL")
        now = utcnow()
        assert repo.find_live(record.id, "EMAIL", now) is record
        assert repo.find_live(record.id, "AUTHENTICATOR", now) is None

    def test_find_live_hides_expired(self, repo):
        record = OTPRecordFactory()
        later = utcnow() + timedelta(minutes=11)
        assert repo.find_live(record.id, "EMAIL", later) is None

    def test_consume_wins_once(self, repo):
        record = OTPRecordFactory()
        now = utcnow()
        assert repo.consume(record, now) is True
        assert record.is_used is True
        assert repo.consume(record, now) is False

    def test_mark_verified_refuses_used_record(self, repo):
        record = OTPRecordFactory(is_used=True)
        assert repo.mark_verified(record, utcnow(), "new-hash") is False
        assert record.is_verified is False

    def test_mark_verified_repeatable_until_used(self, repo):
        record = OTPRecordFactory()
        now = utcnow()
        assert repo.mark_verified(record, now, "first-hash") is True
        assert repo.mark_verified(record, now, "second-hash") is True
        assert record.is_verified is True
        assert record.hashed_verification_token == "second-hash"

    def test_record_failure_stops_at_budget(self, repo):
        record = OTPRecordFactory()
        now = utcnow()
        for _ in range(3):
            repo.record_failure(record, now, max_attempts=2)
        assert record.failed_attempts == 2

    def test_reap_deletes_only_expired(self, repo):
        fresh = OTPRecordFactory()
        OTPRecordFactory(expires_at=utcnow() - timedelta(seconds=1))
        OTPRecordFactory(expires_at=utcnow() - timedelta(days=1))

        assert repo.reap(utcnow()) == 2
        assert repo.get(fresh.id) is not None
