# Record storage for encode/decode events
#
# Handlers only see the RecordStore interface. SQLRecordStore backs it with the
# Message table; MemoryRecordStore keeps records in a dict for handler tests.

import itertools
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional


def _utcnow():
    return datetime.now(timezone.utc)


def _as_utc(value):
    # SQLite hands DateTime columns back without tzinfo; stored values are UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class MessageRecord:
    """One encode event, optionally annotated by later decodes."""

    owner_id: int
    plaintext: str
    ciphertext: str
    id: Optional[int] = None
    last_decoded: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'ownerId': self.owner_id,
            'plaintext': self.plaintext,
            'ciphertext': self.ciphertext,
            'lastDecoded': self.last_decoded,
            'createdAt': _as_utc(self.created_at).isoformat(),
            'updatedAt': _as_utc(self.updated_at).isoformat(),
        }


class RecordStore(ABC):
    @abstractmethod
    def create(self, record):
        """Persist a new record and return it with its id assigned."""

    @abstractmethod
    def get_by_id(self, record_id):
        ...

    @abstractmethod
    def list_by_owner(self, owner_id, limit):
        """Newest first, at most limit records."""

    @abstractmethod
    def update(self, record):
        """Persist the mutable fields (last_decoded) of an existing record."""


class SQLRecordStore(RecordStore):
    """RecordStore over the Flask-SQLAlchemy Message model."""

    def __init__(self, db):
        self.db = db

    @staticmethod
    def _to_record(row):
        return MessageRecord(
            id=row.id,
            owner_id=row.owner_id,
            plaintext=row.plaintext,
            ciphertext=row.ciphertext,
            last_decoded=row.last_decoded,
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at),
        )

    def create(self, record):
        from .models import Message

        row = Message(
            owner_id=record.owner_id,
            plaintext=record.plaintext,
            ciphertext=record.ciphertext,
            last_decoded=record.last_decoded,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
        self.db.session.add(row)
        self.db.session.commit()
        return self._to_record(row)

    def get_by_id(self, record_id):
        from .models import Message

        row = self.db.session.get(Message, record_id)
        return self._to_record(row) if row is not None else None

    def list_by_owner(self, owner_id, limit):
        from .models import Message

        rows = self.db.session.execute(
            self.db.select(Message)
            .filter_by(owner_id=owner_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
        ).scalars()
        return [self._to_record(row) for row in rows]

    def update(self, record):
        from .models import Message

        row = self.db.session.get(Message, record.id)
        if row is None:
            raise KeyError(record.id)
        row.last_decoded = record.last_decoded
        self.db.session.commit()
        return self._to_record(row)


class MemoryRecordStore(RecordStore):
    """In-process RecordStore. Hands out copies so callers cannot mutate it."""

    def __init__(self):
        self._records = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create(self, record):
        with self._lock:
            stored = replace(record, id=next(self._ids))
            self._records[stored.id] = stored
            return replace(stored)

    def get_by_id(self, record_id):
        with self._lock:
            stored = self._records.get(record_id)
            return replace(stored) if stored is not None else None

    def list_by_owner(self, owner_id, limit):
        with self._lock:
            owned = [r for r in self._records.values() if r.owner_id == owner_id]
        owned.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        return [replace(r) for r in owned[:limit]]

    def update(self, record):
        with self._lock:
            stored = self._records.get(record.id)
            if stored is None:
                raise KeyError(record.id)
            stored = replace(stored, last_decoded=record.last_decoded, updated_at=_utcnow())
            self._records[stored.id] = stored
            return replace(stored)
