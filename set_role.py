"""Grant a clinic role to an existing Firebase user.

Sets the ``role`` custom claim (read by the API when AUTH_PROVIDER=firebase)
and mirrors it on the Firestore profile.

Usage:
    python set_role.py <uid-or-email> <client|staff|admin>
"""
import argparse

from firebase_admin import auth

from securevet.core.firebase import get_db
from securevet.core.store import USERS
from securevet.models.user import Role


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("user", help="Firebase UID or email address")
    parser.add_argument("role", choices=[r.value for r in Role])
    args = parser.parse_args()

    db = get_db()
    if "@" in args.user:
        record = auth.get_user_by_email(args.user)
    else:
        record = auth.get_user(args.user)

    auth.set_custom_user_claims(record.uid, {"role": args.role})
    db.collection(USERS).document(record.uid).set(
        {"id": record.uid, "email": record.email, "role": args.role},
        merge=True,
    )

    print(f"Role '{args.role}' set for {record.email} (uid={record.uid})")
    print("The user must sign out and in again (or refresh the ID token) to pick it up.")


if __name__ == "__main__":
    main()
