"""
Shared fixtures.

A small clinic is seeded into an in-memory store:

    client C (uid "client-c") owns pet "p1" (Rex)
    client D (uid "client-d") owns pet "p2" (Milo)
    staff S1, staff S2, admin A
"""
import base64
from datetime import date

import pytest
from fastapi.testclient import TestClient

from securevet.api import deps
from securevet.core import security
from securevet.core.crypto import FieldCipher
from securevet.core.rate_limit import limiter
from securevet.core.store import PETS, USERS
from securevet.main import app
from securevet.models.user import Actor, Role
from securevet.services.access_filter import AccessFilter
from securevet.services.account_service import AccountService, AdminService
from securevet.services.appointment_service import AppointmentService
from securevet.services.audit import AuditRecorder
from securevet.services.pet_service import PetService
from securevet.services.record_service import RecordService
from tests.fakes import MemoryStore, RecordingNotifier

TEST_KEY = base64.urlsafe_b64encode(b"t" * 32).decode()
OLD_KEY = base64.urlsafe_b64encode(b"o" * 32).decode()

# "today" for service-level tests
TODAY = date(2025, 3, 1)


def _actor(uid, role, name):
    return Actor(uid=uid, email=f"{uid}@securevet.app", name=name, role=role)


@pytest.fixture
def client_c():
    return _actor("client-c", Role.CLIENT, "Siti")


@pytest.fixture
def client_d():
    return _actor("client-d", Role.CLIENT, "Adam")


@pytest.fixture
def staff_1():
    return _actor("staff-1", Role.STAFF, "Staff 1")


@pytest.fixture
def staff_2():
    return _actor("staff-2", Role.STAFF, "Staff 2")


@pytest.fixture
def admin():
    return _actor("admin-a", Role.ADMIN, "Admin")


@pytest.fixture
def store(client_c, client_d, staff_1, staff_2, admin):
    s = MemoryStore()
    for actor in (client_c, client_d, staff_1, staff_2, admin):
        s.put(
            USERS,
            actor.uid,
            {
                "name": actor.name,
                "email": actor.email,
                "phone": "",
                "role": actor.role.value,
                "two_factor_enabled": False,
                "two_factor_secret": None,
            },
        )
    s.put(PETS, "p1", {"owner_id": client_c.uid, "name": "Rex", "type": "Dog", "breed": "Beagle", "age": 3, "weight": 12.5})
    s.put(PETS, "p2", {"owner_id": client_d.uid, "name": "Milo", "type": "Cat", "breed": None, "age": 1, "weight": 4.0})
    return s


@pytest.fixture
def cipher():
    return FieldCipher("k-test", {"k-test": base64.urlsafe_b64decode(TEST_KEY)})


@pytest.fixture
def audit(store):
    return AuditRecorder(store)


@pytest.fixture
def appointments(store, audit, cipher):
    return AppointmentService(store, audit, cipher, today=lambda: TODAY)


@pytest.fixture
def access(store):
    return AccessFilter(store)


@pytest.fixture
def records(store, audit, cipher):
    return RecordService(store, audit, cipher)


@pytest.fixture
def pets(store):
    return PetService(store)


@pytest.fixture
def accounts(store, audit):
    return AccountService(store, audit, local_credentials=True)


@pytest.fixture
def admin_service(store, audit, accounts):
    return AdminService(store, audit, accounts)


# -------------------------
# HTTP layer
# -------------------------
@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def api(store, cipher, notifier):
    app.dependency_overrides[deps.get_store] = lambda: store
    app.dependency_overrides[deps.get_cipher] = lambda: cipher
    app.dependency_overrides[deps.get_notifier] = lambda: notifier
    # counters are process-wide; each test starts with a full budget
    limiter.reset()
    # no context manager: startup (Firebase init) is not run
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_header():
    def _make(actor):
        token = security.create_access_token(
            {"sub": actor.uid, "email": actor.email, "name": actor.name, "role": actor.role.value}
        )
        return {"Authorization": f"Bearer {token}"}

    return _make
