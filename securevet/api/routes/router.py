from fastapi import APIRouter

from securevet.api.routes import admin, appointments, auth, pets, records, staff

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(appointments.router)
api_router.include_router(pets.router)
api_router.include_router(records.router)
api_router.include_router(staff.router)
api_router.include_router(admin.router)
