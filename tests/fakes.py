"""In-memory DocumentStore for tests.

Behaves like FirestoreStore for everything the services use; ``update_if``
holds a lock across read-check-write just as a Firestore transaction would
serialize competing writers.
"""
import copy
import itertools
import threading

from securevet.core.errors import DownstreamError, NotFoundError
from securevet.core.store import ConditionalWrite, DocumentStore


class MemoryStore(DocumentStore):
    def __init__(self):
        self.collections = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()
        self.fail_on = set()  # collection names whose writes should fail

    def _coll(self, name):
        return self.collections.setdefault(name, {})

    def insert(self, collection, data):
        if collection in self.fail_on:
            raise DownstreamError(f"Firestore insert failed ({collection})")
        with self._lock:
            doc_id = f"{collection[:4]}-{next(self._ids)}"
            self._coll(collection)[doc_id] = {**copy.deepcopy(data), "id": doc_id}
        return doc_id

    def create(self, collection, doc_id, data):
        if collection in self.fail_on:
            raise DownstreamError(f"Firestore create failed ({collection})")
        with self._lock:
            if doc_id in self._coll(collection):
                return False
            self._coll(collection)[doc_id] = {**copy.deepcopy(data), "id": doc_id}
        return True

    def get(self, collection, doc_id):
        doc = self._coll(collection).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def query(self, collection, filters=None, order_by=None, descending=False, limit=None):
        docs = [
            copy.deepcopy(d)
            for d in self._coll(collection).values()
            if all(d.get(k) == v for k, v in (filters or {}).items())
        ]
        if order_by:
            docs.sort(key=lambda d: d.get(order_by) or "", reverse=descending)
        if limit:
            docs = docs[:limit]
        return docs

    def update(self, collection, doc_id, updates):
        with self._lock:
            doc = self._coll(collection).get(doc_id)
            if doc is None:
                raise NotFoundError(f"{collection} document not found")
            doc.update(copy.deepcopy(updates))

    def delete(self, collection, doc_id):
        self._coll(collection).pop(doc_id, None)

    def update_if(self, collection, doc_id, plan):
        with self._lock:
            doc = self._coll(collection).get(doc_id)
            if doc is None:
                raise NotFoundError(f"{collection} document not found")

            write = plan(copy.deepcopy(doc))
            if write is None:
                return ConditionalWrite(document=copy.deepcopy(doc), applied=False)

            for target, _ in write.inserts:
                if target in self.fail_on:
                    raise DownstreamError(f"Firestore transaction failed ({target})")

            doc.update(copy.deepcopy(write.updates))
            inserted = [self.insert(target, data) for target, data in write.inserts]
            return ConditionalWrite(document=copy.deepcopy(doc), applied=True, inserted_ids=inserted)

    def all(self, collection):
        return list(copy.deepcopy(self._coll(collection)).values())

    def put(self, collection, doc_id, data):
        """Seed a document under a fixed id."""
        self._coll(collection)[doc_id] = {**copy.deepcopy(data), "id": doc_id}
        return doc_id


class RecordingNotifier:
    """Stands in for EmailNotifier; remembers what would have been sent."""

    def __init__(self):
        self.sent = []

    def appointment_confirmed(self, store, appointment):
        self.sent.append(("appointment_confirmed", appointment.id))
        return True

    def password_reset_requested(self, email):
        self.sent.append(("password_reset_requested", email))
        return True
