import unittest
from unittest.mock import MagicMock
import sys
import os

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore

# Add the project root directory to the Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from propsync.exceptions import StoreError
from propsync.services.batch_service import BatchWriter


def _ref(doc_id):
    ref = MagicMock()
    ref.id = doc_id
    return ref


class TestBatchWriter(unittest.TestCase):

    def setUp(self):
        self.batches = []

        def new_batch():
            batch = MagicMock()
            self.batches.append(batch)
            return batch

        self.db = MagicMock()
        self.db.batch.side_effect = new_batch

    def test_commits_every_500_writes(self):
        with BatchWriter(self.db) as writer:
            for i in range(1203):
                writer.update(_ref(f"rent-{i}"), {"monthlyRent": i})

        self.assertEqual(len(self.batches), 3)
        self.assertEqual([b.update.call_count for b in self.batches], [500, 500, 203])
        for batch in self.batches:
            batch.commit.assert_called_once()
        self.assertEqual(writer.commit_count, 3)
        self.assertEqual(len(writer.committed), 1203)
        self.assertEqual(writer.pending, 0)

    def test_update_stamps_updated_at(self):
        ref = _ref("rent-1")
        with BatchWriter(self.db) as writer:
            writer.update(ref, {"monthlyRent": 500000})
        _, data = self.batches[0].update.call_args[0]
        self.assertEqual(data["monthlyRent"], 500000)
        self.assertIs(data["updatedAt"], firestore.SERVER_TIMESTAMP)

    def test_nothing_staged_means_no_commit(self):
        with BatchWriter(self.db):
            pass
        self.db.batch.assert_not_called()

    def test_failed_commit_loses_only_that_batch(self):
        writer = BatchWriter(self.db, max_size=2)
        writer.delete(_ref("p1"))
        writer.delete(_ref("p2"))
        self.batches[0].commit.assert_called_once()

        writer.delete(_ref("p3"))
        self.batches[1].commit.side_effect = gcp_exceptions.ServiceUnavailable("backend unavailable")
        writer.delete(_ref("p4"))
        writer.delete(_ref("p5"))
        writer.flush()

        self.assertEqual(writer.committed, ["p1", "p2", "p5"])
        self.assertEqual(writer.failed, ["p3", "p4"])
        self.assertEqual(len(writer.errors), 1)
        self.assertIsInstance(writer.errors[0], StoreError)

    def test_exception_inside_block_skips_flush(self):
        with self.assertRaises(RuntimeError):
            with BatchWriter(self.db) as writer:
                writer.set(_ref("org-1"), {"name": "x"}, merge=True)
                raise RuntimeError("boom")
        self.batches[0].commit.assert_not_called()


if __name__ == '__main__':
    unittest.main()
