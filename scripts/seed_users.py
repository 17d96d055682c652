"""Seed demo accounts for a fresh clinic project.

Idempotent: accounts that already exist (by email) are left alone.

    python scripts/seed_users.py --password 'Demo-pass-123'

With AUTH_PROVIDER=firebase the accounts are created in Firebase
Authentication and given a ``role`` custom claim; otherwise they are local
accounts with bcrypt password hashes.
"""
import argparse

from firebase_admin import auth

from securevet.core.config import settings
from securevet.core.firebase import get_db
from securevet.core.store import USERS, FirestoreStore
from securevet.core.errors import ValidationError
from securevet.models.user import Role
from securevet.services.account_service import AccountService
from securevet.services.audit import AuditRecorder

USERS_TO_SEED = [
    {"name": "Admin", "email": "admin@securevet.app", "role": Role.ADMIN},
    {"name": "Staff 1", "email": "staff1@securevet.app", "role": Role.STAFF},
    {"name": "Staff 2", "email": "staff2@securevet.app", "role": Role.STAFF},
    {"name": "Siti", "email": "siti@securevet.app", "role": Role.CLIENT},
    {"name": "Adam", "email": "adam@securevet.app", "role": Role.CLIENT},
]


def seed_firebase(db, password):
    for u in USERS_TO_SEED:
        try:
            record = auth.create_user(email=u["email"], password=password, display_name=u["name"])
            print(f"Created auth user for {u['email']} (uid={record.uid})")
        except auth.EmailAlreadyExistsError:
            record = auth.get_user_by_email(u["email"])
            print(f"Auth user already exists for {u['email']} (uid={record.uid}), reusing.")

        auth.set_custom_user_claims(record.uid, {"role": u["role"].value})
        db.collection(USERS).document(record.uid).set(
            {"id": record.uid, "name": u["name"], "email": u["email"], "phone": "", "role": u["role"].value},
            merge=True,
        )


def seed_local(db, password):
    store = FirestoreStore(db)
    accounts = AccountService(store, AuditRecorder(store), local_credentials=True)
    for u in USERS_TO_SEED:
        try:
            uid = accounts.create_account(u["name"], u["email"], "", password, u["role"])
            print(f"Created {u['role'].value} account {u['email']} (id={uid})")
        except ValidationError:
            print(f"Skipped {u['email']} (Exists)")


def main():
    parser = argparse.ArgumentParser(description="Seed demo SecureVet accounts")
    parser.add_argument("--password", required=True, help="Password for every seeded account")
    args = parser.parse_args()

    db = get_db()
    if settings.AUTH_PROVIDER == "firebase":
        seed_firebase(db, args.password)
    else:
        seed_local(db, args.password)
    print("Seeding complete.")


if __name__ == "__main__":
    main()
