"""Document store used by every service.

``DocumentStore`` is the contract the services are written against;
``FirestoreStore`` is the production implementation backed by the
Firestore client from ``securevet.core.firebase``.

Documents are plain dicts. Every stored document carries its own ``id``
field, and reads always return that id.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from google.api_core.exceptions import AlreadyExists, GoogleAPICallError, RetryError
from google.cloud import firestore
from google.cloud.firestore import FieldFilter

from securevet.core.errors import DownstreamError, NotFoundError

# Collection names
USERS = "users"
PETS = "pets"
APPOINTMENTS = "appointments"
MEDICAL_RECORDS = "medical_records"
AUDIT_LOGS = "audit_logs"
PASSWORD_REQUESTS = "password_requests"


@dataclass
class WritePlan:
    """Changes to commit together once a conditional check has passed."""

    updates: Dict[str, Any]
    inserts: List[Tuple[str, Dict[str, Any]]] = field(default_factory=list)


@dataclass
class ConditionalWrite:
    document: Dict[str, Any]
    applied: bool
    inserted_ids: List[str] = field(default_factory=list)


# Receives the current document. Returns a plan to commit, None for a
# no-op, or raises to abort without writing.
PlanFn = Callable[[Dict[str, Any]], Optional[WritePlan]]


class DocumentStore:
    def insert(self, collection: str, data: Dict[str, Any]) -> str:
        raise NotImplementedError

    def create(self, collection: str, doc_id: str, data: Dict[str, Any]) -> bool:
        """Write a document under a chosen id only if none exists yet.

        Returns False, without writing, when the id is already taken.
        """
        raise NotImplementedError

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def update(self, collection: str, doc_id: str, updates: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError

    def update_if(self, collection: str, doc_id: str, plan: PlanFn) -> ConditionalWrite:
        """Atomically read a document, decide, and write.

        ``plan`` sees the document as it is at commit time. The updates and
        any inserts it returns are committed as one unit, so two callers
        racing on the same document can never both act on the same state.
        """
        raise NotImplementedError

    def get_many(self, collection: str, doc_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        out = {}
        for doc_id in set(doc_ids):
            if not doc_id:
                continue
            doc = self.get(collection, doc_id)
            if doc is not None:
                out[doc_id] = doc
        return out


@contextmanager
def _downstream(action: str):
    try:
        yield
    except (GoogleAPICallError, RetryError) as exc:
        raise DownstreamError(f"Firestore {action} failed") from exc


def _as_dict(snapshot) -> Dict[str, Any]:
    return {**(snapshot.to_dict() or {}), "id": snapshot.id}


class FirestoreStore(DocumentStore):
    def __init__(self, db):
        self.db = db

    def insert(self, collection, data):
        with _downstream("insert"):
            ref = self.db.collection(collection).document()
            ref.set({**data, "id": ref.id})
        return ref.id

    def create(self, collection, doc_id, data):
        ref = self.db.collection(collection).document(doc_id)
        try:
            ref.create({**data, "id": doc_id})
        except AlreadyExists:
            return False
        except (GoogleAPICallError, RetryError) as exc:
            raise DownstreamError("Firestore create failed") from exc
        return True

    def get(self, collection, doc_id):
        with _downstream("read"):
            snapshot = self.db.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return _as_dict(snapshot)

    def query(self, collection, filters=None, order_by=None, descending=False, limit=None):
        q = self.db.collection(collection)
        for key, value in (filters or {}).items():
            q = q.where(filter=FieldFilter(key, "==", value))
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            q = q.order_by(order_by, direction=direction)
        if limit:
            q = q.limit(limit)

        with _downstream("query"):
            return [_as_dict(d) for d in q.stream()]

    def update(self, collection, doc_id, updates):
        ref = self.db.collection(collection).document(doc_id)
        with _downstream("update"):
            if not ref.get().exists:
                raise NotFoundError(f"{collection} document not found")
            ref.update(updates)

    def delete(self, collection, doc_id):
        with _downstream("delete"):
            self.db.collection(collection).document(doc_id).delete()

    def update_if(self, collection, doc_id, plan):
        ref = self.db.collection(collection).document(doc_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def _apply(transaction):
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError(f"{collection} document not found")

            current = _as_dict(snapshot)
            write = plan(current)
            if write is None:
                return ConditionalWrite(document=current, applied=False)

            transaction.update(ref, write.updates)
            inserted_ids = []
            for target, data in write.inserts:
                new_ref = self.db.collection(target).document()
                transaction.set(new_ref, {**data, "id": new_ref.id})
                inserted_ids.append(new_ref.id)

            return ConditionalWrite(
                document={**current, **write.updates},
                applied=True,
                inserted_ids=inserted_ids,
            )

        with _downstream("transaction"):
            return _apply(transaction)
