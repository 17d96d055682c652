"""Appointment routes.

Clients request, staff claim and complete, staff may also book directly
for a client. Listing is role-scoped by the access filter.
"""
from fastapi import APIRouter, BackgroundTasks, Body, Depends

from securevet.api.deps import (
    get_access_filter,
    get_appointment_service,
    get_current_user,
    get_notifier,
    get_store,
    require_role,
)
from securevet.models.appointment import AppointmentRequestIn, BookForClientIn
from securevet.services.policy import Operation

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("/")
def list_appointments(user=Depends(get_current_user), access=Depends(get_access_filter)):
    """List the appointments the caller may see.

    - clients: their own
    - staff: unclaimed plus assigned to them
    - admins: all
    """
    return {"items": access.appointments_for(user)}


@router.post("/", status_code=201)
def request_appointment(
    payload: AppointmentRequestIn = Body(...),
    user=Depends(require_role(Operation.APPOINTMENT_REQUEST)),
    service=Depends(get_appointment_service),
):
    appt = service.request(user, payload)
    return {"message": "Requested", "id": appt.id, "appointment": appt}


@router.post("/book", status_code=201)
def book_for_client(
    background_tasks: BackgroundTasks,
    payload: BookForClientIn = Body(...),
    user=Depends(require_role(Operation.APPOINTMENT_BOOK)),
    service=Depends(get_appointment_service),
    store=Depends(get_store),
    notifier=Depends(get_notifier),
):
    appt = service.book_for_client(user, payload)
    background_tasks.add_task(notifier.appointment_confirmed, store, appt)
    return {"message": "Appointment booked and confirmed", "id": appt.id, "appointment": appt}


@router.get("/{appointment_id}")
def get_appointment(
    appointment_id: str,
    user=Depends(get_current_user),
    access=Depends(get_access_filter),
):
    return access.appointment_for(user, appointment_id)


@router.put("/{appointment_id}/assign")
def claim_appointment(
    appointment_id: str,
    background_tasks: BackgroundTasks,
    user=Depends(require_role(Operation.APPOINTMENT_CLAIM)),
    service=Depends(get_appointment_service),
    store=Depends(get_store),
    notifier=Depends(get_notifier),
):
    result = service.claim(user, appointment_id)
    if result.changed:
        background_tasks.add_task(notifier.appointment_confirmed, store, result.appointment)
    return {"message": "Assigned successfully", "staff_name": user.name, "appointment": result.appointment}


@router.put("/{appointment_id}/complete")
def complete_appointment(
    appointment_id: str,
    user=Depends(require_role(Operation.APPOINTMENT_COMPLETE)),
    service=Depends(get_appointment_service),
):
    result = service.complete(user, appointment_id)
    return {
        "message": "Appointment completed and record saved",
        "appointment": result.appointment,
        "record": result.record,
    }
