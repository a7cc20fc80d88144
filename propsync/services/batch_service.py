# propsync/services/batch_service.py

import logging

from google.api_core.exceptions import GoogleAPICallError
from google.cloud import firestore

from propsync.constants import MAX_BATCH_SIZE
from propsync.exceptions import StoreError

log = logging.getLogger(__name__)


class BatchWriter:
    """
    Accumulates writes into Firestore write batches of at most `max_size`
    operations. A full batch is committed before the next write is staged and
    the last partial batch is committed by `flush()` (or on leaving a `with`
    block). A failed commit loses only that batch's writes; earlier commits stand.
    Updates are stamped with a server-side `updatedAt`.
    """

    def __init__(self, db, max_size: int = MAX_BATCH_SIZE):
        self.db = db
        self.max_size = max_size
        self.committed = []
        self.failed = []
        self.errors = []
        self.commit_count = 0
        self._batch = None
        self._staged = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.flush()
        return False

    def _current(self):
        if self._batch is None:
            self._batch = self.db.batch()
        return self._batch

    def _staged_one(self, record_id):
        self._staged.append(record_id)
        if len(self._staged) >= self.max_size:
            self.flush()

    def update(self, ref, data: dict, record_id=None):
        stamped = dict(data)
        stamped['updatedAt'] = firestore.SERVER_TIMESTAMP
        self._current().update(ref, stamped)
        self._staged_one(record_id or ref.id)

    def set(self, ref, data: dict, merge: bool = False, record_id=None):
        self._current().set(ref, data, merge=merge)
        self._staged_one(record_id or ref.id)

    def delete(self, ref, record_id=None):
        self._current().delete(ref)
        self._staged_one(record_id or ref.id)

    @property
    def pending(self) -> int:
        return len(self._staged)

    def flush(self):
        """Commits the staged writes, if any."""
        if not self.pending:
            return
        staged, batch = self._staged, self._batch
        self._staged, self._batch = [], None

        log.info(f"Committing batch of {len(staged)} writes...")
        try:
            batch.commit()
        except GoogleAPICallError as e:
            error = StoreError('batch commit', cause=e)
            log.error(f"{error.message}; {len(staged)} writes were not applied")
            self.failed.extend(staged)
            self.errors.append(error)
            return
        self.commit_count += 1
        self.committed.extend(staged)
