from securevet.core import store
from securevet.core.firebase import get_db

CLINIC_COLLECTIONS = [
    store.USERS,
    store.PETS,
    store.APPOINTMENTS,
    store.MEDICAL_RECORDS,
    store.AUDIT_LOGS,
    store.PASSWORD_REQUESTS,
]

# Never printed: credential material and ciphertext
HIDDEN_FIELDS = {"password_hash", "two_factor_secret", "notes_encrypted", "iv"}


def list_all_collections():
    db = get_db()
    print("\n========= CLINIC COLLECTIONS =========")

    for name in CLINIC_COLLECTIONS:
        print(f"\nCollection: {name}")
        docs = list(db.collection(name).limit(5).stream())
        if not docs:
            print("   (Empty)")
            continue

        print(f"   Sample Documents ({len(docs)} shown):")
        for doc in docs:
            data = doc.to_dict() or {}
            keys = [k for k in data if k not in HIDDEN_FIELDS][:4]
            preview = {k: data[k] for k in keys}
            print(f"   - {doc.id}: {preview}...")

    print("\n======================================")


if __name__ == "__main__":
    list_all_collections()
