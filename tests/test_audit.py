"""
Audit recorder: append-only, newest first, and never fatal.
"""
import logging
from datetime import date

import pytest

from securevet.core.errors import AuthorizationError
from securevet.core.store import APPOINTMENTS, AUDIT_LOGS
from securevet.models.appointment import AppointmentRequestIn
from securevet.models.audit import AuditAction


class TestAuditRecorder:
    def test_record_accepts_actor_or_email(self, store, audit, staff_1):
        assert audit.record(staff_1, AuditAction.APPT_ASSIGN, "x") is True
        assert audit.record("someone@securevet.app", AuditAction.LOGIN_FAILED) is True
        emails = sorted(e["user_email"] for e in store.all(AUDIT_LOGS))
        assert emails == ["someone@securevet.app", "staff-1@securevet.app"]

    def test_recent_is_newest_first_and_limited(self, store, audit, admin):
        for i in range(5):
            store.put(
                AUDIT_LOGS,
                f"log-{i}",
                {"user_email": "a@securevet.app", "action": "LOGIN_SUCCESS", "details": str(i),
                 "timestamp": f"2025-03-0{i + 1}T10:00:00+00:00"},
            )
        entries = audit.recent(admin, limit=3)
        assert [e.details for e in entries] == ["4", "3", "2"]

    def test_only_admin_reads_the_log(self, audit, staff_1):
        with pytest.raises(AuthorizationError):
            audit.recent(staff_1)

    def test_failed_write_is_logged_not_raised(self, store, audit, staff_1, caplog):
        store.fail_on.add(AUDIT_LOGS)
        with caplog.at_level(logging.ERROR, logger="securevet.audit"):
            assert audit.record(staff_1, AuditAction.APPT_ASSIGN, "appt #1") is False
        assert "Audit write failed" in caplog.text
        assert "APPT_ASSIGN" in caplog.text

    def test_failed_audit_does_not_undo_the_operation(self, store, appointments, client_c, staff_1):
        appt = appointments.request(
            client_c, AppointmentRequestIn(pet_id="p1", date=date(2025, 3, 10), time="09:00", reason="Vaccination")
        )
        store.fail_on.add(AUDIT_LOGS)

        claimed = appointments.claim(staff_1, appt.id).appointment

        assert claimed.assigned_to == staff_1.uid
        assert store.get(APPOINTMENTS, appt.id)["status"] == "Confirmed"
