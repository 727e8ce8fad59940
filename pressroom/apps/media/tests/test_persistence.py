"""Tests for writing a primary object and its derivative together."""

import logging
from pathlib import Path
from unittest.mock import patch

from django.test import TestCase, tag

from pressroom.apps.media.cleanup import best_effort
from pressroom.apps.media.errors import StorageWriteFailure
from pressroom.apps.media.persistence import write_pair
from pressroom.apps.media.storage import LocalStorageDriver, ObjectStorageDriver
from pressroom.apps.media.test_utils import (
    OBJECT_STORAGE_CONFIG,
    FakeObjectStorageClient,
    TemporaryPublicRootMixin,
)
from pressroom.apps.media.types import PendingObject

MAIN = PendingObject("1-x.webp", b"main", "image/webp")
THUMB = PendingObject("1-x-thumb.webp", b"thumb", "image/webp")


@tag("unit")
class WritePairLocalTests(TemporaryPublicRootMixin, TestCase):
    """write_pair against the local driver."""

    def setUp(self):
        super().setUp()
        logging.disable(logging.CRITICAL)
        self.addCleanup(logging.disable, logging.NOTSET)

    def test_both_objects_written(self):
        stored_main, stored_thumb = write_pair(LocalStorageDriver(), "uploads", MAIN, THUMB)

        self.assertEqual(stored_main.key, "uploads/1-x.webp")
        self.assertEqual(stored_thumb.key, "uploads/1-x-thumb.webp")
        self.assertEqual(self.stored_files(), {"uploads/1-x.webp", "uploads/1-x-thumb.webp"})

    def test_derivative_failure_rolls_back_main(self):
        driver = LocalStorageDriver()
        real_put = driver.put

        def put(directory, file_name, data, content_type):
            if file_name == THUMB.file_name:
                raise StorageWriteFailure("disk full")
            return real_put(directory, file_name, data, content_type)

        with patch.object(driver, "put", side_effect=put):
            with self.assertRaises(StorageWriteFailure):
                write_pair(driver, "uploads", MAIN, THUMB)

        self.assertEqual(self.stored_files(), set())

    def test_partial_derivative_write_leaves_nothing_behind(self):
        real_write_bytes = Path.write_bytes

        def write_bytes(path, data):
            if path.name == THUMB.file_name:
                with path.open("wb") as fh:
                    fh.write(data[:2])
                raise OSError(28, "No space left on device")
            return real_write_bytes(path, data)

        with patch.object(Path, "write_bytes", autospec=True, side_effect=write_bytes):
            with self.assertRaises(StorageWriteFailure):
                write_pair(LocalStorageDriver(), "uploads", MAIN, THUMB)

        self.assertEqual(self.stored_files(), set())

    def test_unexpected_error_is_wrapped(self):
        driver = LocalStorageDriver()

        with patch.object(driver, "put", side_effect=RuntimeError("surprise")):
            with self.assertRaises(StorageWriteFailure) as ctx:
                write_pair(driver, "uploads", MAIN, THUMB)

        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

    def test_main_failure_writes_nothing(self):
        driver = LocalStorageDriver()

        with patch.object(driver, "put", side_effect=StorageWriteFailure("nope")) as mock_put:
            with self.assertRaises(StorageWriteFailure):
                write_pair(driver, "uploads", MAIN, THUMB)

        mock_put.assert_called_once()


@tag("unit")
class WritePairObjectStorageTests(TestCase):
    """write_pair against object storage."""

    def setUp(self):
        logging.disable(logging.CRITICAL)
        self.addCleanup(logging.disable, logging.NOTSET)

    def test_derivative_failure_rolls_back_main(self):
        client = FakeObjectStorageClient(fail_put_when=lambda key: key.endswith("-thumb.webp"))
        driver = ObjectStorageDriver(OBJECT_STORAGE_CONFIG, client=client)

        with self.assertRaises(StorageWriteFailure):
            write_pair(driver, "uploads", MAIN, THUMB)

        self.assertEqual(client.keys(), set())
        self.assertEqual(client.deleted, ["uploads/1-x.webp"])

    def test_failed_rollback_still_raises_write_failure(self):
        client = FakeObjectStorageClient(
            fail_put_when=lambda key: key.endswith("-thumb.webp"), fail_deletes=True
        )
        driver = ObjectStorageDriver(OBJECT_STORAGE_CONFIG, client=client)

        with self.assertRaises(StorageWriteFailure):
            write_pair(driver, "uploads", MAIN, THUMB)

        # The orphaned main object stays behind; the caller still sees the write error.
        self.assertEqual(client.keys(), {"uploads/1-x.webp"})


@tag("unit")
class BestEffortTests(TestCase):
    """Tests for best_effort."""

    def test_returns_true_on_success(self):
        calls = []

        self.assertTrue(best_effort(calls.append, 1, description="append"))
        self.assertEqual(calls, [1])

    def test_swallows_and_logs_failure(self):
        def explode():
            raise OSError("gone")

        with self.assertLogs("pressroom.apps.media.cleanup", level="WARNING") as logs:
            self.assertFalse(best_effort(explode, description="cleanup of x"))

        self.assertIn("cleanup of x", logs.output[0])
