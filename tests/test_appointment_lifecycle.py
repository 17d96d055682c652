"""
Appointment lifecycle: request, claim, complete, and staff booking.
"""
import threading
from datetime import date

import pytest

from securevet.core.errors import (
    AuthorizationError,
    ConflictError,
    DownstreamError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from securevet.core.store import APPOINTMENTS, AUDIT_LOGS, MEDICAL_RECORDS
from securevet.models.appointment import AppointmentRequestIn, AppointmentStatus, BookForClientIn
from tests.conftest import TODAY


def _request(pet_id="p1", day=date(2025, 3, 10), time="09:00", reason="Vaccination"):
    return AppointmentRequestIn(pet_id=pet_id, date=day, time=time, reason=reason)


def _booking(client_id="client-c", pet_id="p1", day=date(2025, 3, 12), time="10:30", reason="Check-up"):
    return BookForClientIn(client_id=client_id, pet_id=pet_id, date=day, time=time, reason=reason)


def _audit_actions(store):
    return [e["action"] for e in store.all(AUDIT_LOGS)]


def _assert_status_matches_assignment(store):
    for appt in store.all(APPOINTMENTS):
        if appt["status"] == AppointmentStatus.PENDING.value:
            assert appt["assigned_to"] is None
        else:
            assert appt["assigned_to"] is not None


class TestClinicScenario:
    """Request -> claim -> competing claim -> complete, end to end."""

    def test_full_visit(self, store, appointments, client_c, staff_1, staff_2, cipher):
        appt = appointments.request(client_c, _request())
        assert appt.status == AppointmentStatus.PENDING
        assert appt.assigned_to is None
        assert appt.owner_id == client_c.uid

        outcome = appointments.claim(staff_1, appt.id)
        assert outcome.changed is True
        claimed = outcome.appointment
        assert claimed.status == AppointmentStatus.CONFIRMED
        assert claimed.assigned_to == staff_1.uid
        assert _audit_actions(store).count("APPT_ASSIGN") == 1

        with pytest.raises(ConflictError):
            appointments.claim(staff_2, appt.id)
        assert store.get(APPOINTMENTS, appt.id)["assigned_to"] == staff_1.uid
        assert _audit_actions(store).count("APPT_ASSIGN") == 1

        result = appointments.complete(staff_1, appt.id)
        assert result.appointment.status == AppointmentStatus.DONE

        stored_records = store.all(MEDICAL_RECORDS)
        assert len(stored_records) == 1
        record = stored_records[0]
        assert record["pet_id"] == "p1"
        assert record["treatment"] == "Vaccination"
        assert record["diagnosis"] == "Routine Visit"
        assert record["appointment_id"] == appt.id
        assert "notes" not in record
        assert cipher.decrypt_fields(record) == "Completed appointment for Vaccination."
        assert result.record.notes == "Completed appointment for Vaccination."
        assert _audit_actions(store).count("RECORD_CREATE_AUTO") == 1

        _assert_status_matches_assignment(store)


class TestRequest:
    def test_request_for_someone_elses_pet_is_refused(self, store, appointments, client_c):
        with pytest.raises(AuthorizationError):
            appointments.request(client_c, _request(pet_id="p2"))
        assert store.all(APPOINTMENTS) == []

    def test_request_for_missing_pet_is_refused(self, store, appointments, client_c):
        with pytest.raises(AuthorizationError):
            appointments.request(client_c, _request(pet_id="nope"))
        assert store.all(APPOINTMENTS) == []

    def test_staff_cannot_use_client_request(self, appointments, staff_1):
        with pytest.raises(AuthorizationError):
            appointments.request(staff_1, _request())

    def test_request_writes_audit_entry(self, store, appointments, client_c):
        appointments.request(client_c, _request())
        assert _audit_actions(store) == ["APPT_REQUEST"]


class TestClaim:
    def test_client_cannot_claim(self, appointments, client_c):
        appt = appointments.request(client_c, _request())
        with pytest.raises(AuthorizationError):
            appointments.claim(client_c, appt.id)

    def test_claim_missing_appointment(self, appointments, staff_1):
        with pytest.raises(NotFoundError):
            appointments.claim(staff_1, "missing")

    def test_reclaim_by_holder_is_a_no_op(self, store, appointments, client_c, staff_1):
        appt = appointments.request(client_c, _request())
        appointments.claim(staff_1, appt.id)
        again = appointments.claim(staff_1, appt.id)
        assert again.changed is False
        assert again.appointment.assigned_to == staff_1.uid
        assert _audit_actions(store).count("APPT_ASSIGN") == 1

    def test_admin_can_take_over(self, store, appointments, client_c, staff_1, admin):
        appt = appointments.request(client_c, _request())
        appointments.claim(staff_1, appt.id)
        taken = appointments.claim(admin, appt.id).appointment
        assert taken.assigned_to == admin.uid
        assert taken.status == AppointmentStatus.CONFIRMED
        assert _audit_actions(store).count("APPT_ASSIGN") == 2

    def test_done_appointment_cannot_be_claimed(self, store, appointments, client_c, staff_1, admin):
        appt = appointments.request(client_c, _request())
        appointments.claim(staff_1, appt.id)
        appointments.complete(staff_1, appt.id)

        with pytest.raises(InvalidTransitionError):
            appointments.claim(admin, appt.id)
        assert store.get(APPOINTMENTS, appt.id)["status"] == "Done"

    def test_concurrent_claims_have_exactly_one_winner(self, store, appointments, client_c, staff_1, staff_2):
        appt = appointments.request(client_c, _request())
        barrier = threading.Barrier(2)
        outcomes = {}

        def attempt(actor):
            barrier.wait()
            try:
                appointments.claim(actor, appt.id)
                outcomes[actor.uid] = "won"
            except ConflictError:
                outcomes[actor.uid] = "conflict"

        threads = [threading.Thread(target=attempt, args=(a,)) for a in (staff_1, staff_2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes.values()) == ["conflict", "won"]
        winner = next(uid for uid, o in outcomes.items() if o == "won")
        assert store.get(APPOINTMENTS, appt.id)["assigned_to"] == winner
        assert _audit_actions(store).count("APPT_ASSIGN") == 1


class TestComplete:
    def test_pending_cannot_be_completed(self, store, appointments, client_c, admin):
        appt = appointments.request(client_c, _request())
        with pytest.raises(InvalidTransitionError):
            appointments.complete(admin, appt.id)
        assert store.all(MEDICAL_RECORDS) == []

    def test_only_assignee_staff_can_complete(self, store, appointments, client_c, staff_1, staff_2):
        appt = appointments.request(client_c, _request())
        appointments.claim(staff_1, appt.id)
        with pytest.raises(AuthorizationError):
            appointments.complete(staff_2, appt.id)
        assert store.get(APPOINTMENTS, appt.id)["status"] == "Confirmed"
        assert store.all(MEDICAL_RECORDS) == []

    def test_admin_can_complete_any_confirmed(self, store, appointments, client_c, staff_1, admin):
        appt = appointments.request(client_c, _request())
        appointments.claim(staff_1, appt.id)
        appointments.complete(admin, appt.id)
        assert store.get(APPOINTMENTS, appt.id)["status"] == "Done"

    def test_completion_never_repeats(self, store, appointments, client_c, staff_1):
        appt = appointments.request(client_c, _request())
        appointments.claim(staff_1, appt.id)
        appointments.complete(staff_1, appt.id)
        with pytest.raises(InvalidTransitionError):
            appointments.complete(staff_1, appt.id)
        assert len(store.all(MEDICAL_RECORDS)) == 1
        assert store.get(APPOINTMENTS, appt.id)["status"] == "Done"

    def test_record_write_failure_leaves_appointment_confirmed(self, store, appointments, client_c, staff_1):
        appt = appointments.request(client_c, _request())
        appointments.claim(staff_1, appt.id)
        store.fail_on.add(MEDICAL_RECORDS)

        with pytest.raises(DownstreamError):
            appointments.complete(staff_1, appt.id)
        assert store.get(APPOINTMENTS, appt.id)["status"] == "Confirmed"


class TestBookForClient:
    def test_booking_starts_confirmed_and_assigned(self, store, appointments, staff_1):
        appt = appointments.book_for_client(staff_1, _booking())
        assert appt.status == AppointmentStatus.CONFIRMED
        assert appt.assigned_to == staff_1.uid
        assert appt.owner_id == "client-c"
        assert _audit_actions(store) == ["APPT_CREATE_AUTO"]
        _assert_status_matches_assignment(store)

    def test_booking_today_is_allowed(self, appointments, staff_1):
        appt = appointments.book_for_client(staff_1, _booking(day=TODAY))
        assert appt.date == TODAY.isoformat()

    def test_past_date_is_refused_without_writes(self, store, appointments, staff_1):
        with pytest.raises(ValidationError):
            appointments.book_for_client(staff_1, _booking(day=date(2020, 1, 1)))
        assert store.all(APPOINTMENTS) == []
        assert store.all(AUDIT_LOGS) == []

    def test_client_without_pets_is_refused(self, store, appointments, staff_1):
        store.put("users", "client-e", {"name": "Nopets", "email": "e@securevet.app", "role": "client"})
        with pytest.raises(ValidationError):
            appointments.book_for_client(staff_1, _booking(client_id="client-e"))
        assert store.all(APPOINTMENTS) == []

    def test_pet_must_belong_to_client(self, store, appointments, staff_1):
        with pytest.raises(ValidationError):
            appointments.book_for_client(staff_1, _booking(pet_id="p2"))
        assert store.all(APPOINTMENTS) == []

    def test_unknown_client_is_refused(self, store, appointments, staff_1):
        with pytest.raises(ValidationError):
            appointments.book_for_client(staff_1, _booking(client_id="ghost"))
        assert store.all(APPOINTMENTS) == []

    def test_clients_cannot_book_for_others(self, appointments, client_c):
        with pytest.raises(AuthorizationError):
            appointments.book_for_client(client_c, _booking())
