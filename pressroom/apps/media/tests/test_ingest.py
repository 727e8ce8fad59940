"""Tests for the ingest entry point."""

import logging
from unittest.mock import MagicMock, patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings, tag

from pressroom.apps.media.errors import (
    PosterExtractionFailure,
    ProbeFailure,
    ProcessingFailure,
    StorageConfigurationError,
    StorageWriteFailure,
    UnsupportedMediaType,
)
from pressroom.apps.media.ingest import classify_mime_type, ingest_media
from pressroom.apps.media.naming import derive_thumbnail_url, thumbnail_url_for
from pressroom.apps.media.test_utils import (
    OBJECT_STORAGE_SETTINGS,
    FakeObjectStorageClient,
    TemporaryPublicRootMixin,
    fake_extract_frame,
    fake_probe,
    uploaded_image,
    uploaded_video,
)
from pressroom.apps.media.types import MediaKind, StorageBackend

STORED_NAME_PATTERN = r"^uploads/\d+-[0-9a-f-]{36}\.webp$"


@tag("unit")
class ClassifyMimeTypeTests(TestCase):
    """Tests for classify_mime_type."""

    def test_images_and_videos(self):
        self.assertEqual(classify_mime_type("image/heic"), MediaKind.IMAGE)
        self.assertEqual(classify_mime_type("VIDEO/MP4"), MediaKind.VIDEO)
        self.assertEqual(classify_mime_type("video/webm; codecs=vp9"), MediaKind.VIDEO)

    def test_everything_else_is_unsupported(self):
        for mime_type in ("application/pdf", "text/plain", "", None, "imagery/png"):
            with self.subTest(mime_type=mime_type):
                with self.assertRaises(UnsupportedMediaType):
                    classify_mime_type(mime_type)


@tag("unit")
class IngestImageTests(TemporaryPublicRootMixin, TestCase):
    """Image ingestion through the local driver."""

    def setUp(self):
        super().setUp()
        logging.disable(logging.CRITICAL)
        self.addCleanup(logging.disable, logging.NOTSET)

    def test_descriptor_describes_both_variants(self):
        asset = ingest_media(uploaded_image(size=(4000, 3000)))

        self.assertRegex(asset.stored_name, STORED_NAME_PATTERN)
        self.assertEqual(asset.kind, MediaKind.IMAGE)
        self.assertEqual(asset.storage_backend, StorageBackend.LOCAL)
        self.assertEqual(asset.mime_type, "image/webp")
        self.assertEqual(asset.primary_url, f"/{asset.stored_name}")
        self.assertEqual((asset.width, asset.height), (1440, 1080))
        self.assertEqual((asset.derivative_width, asset.derivative_height), (480, 360))
        self.assertIsNone(asset.duration_seconds)

    def test_files_are_written_with_reported_sizes(self):
        asset = ingest_media(uploaded_image())

        main = self.public_root / asset.stored_name
        thumb = self.public_root / asset.derivative_name
        self.assertEqual(main.stat().st_size, asset.byte_size)
        self.assertEqual(thumb.stat().st_size, asset.derivative_byte_size)
        self.assertEqual(self.stored_files(), {asset.stored_name, asset.derivative_name})

    def test_derived_thumbnail_url_matches_descriptor(self):
        asset = ingest_media(uploaded_image())

        self.assertEqual(derive_thumbnail_url(asset.primary_url), asset.derivative_url)
        self.assertEqual(asset.thumbnail_url, asset.derivative_url)

    def test_custom_directory(self):
        asset = ingest_media(uploaded_image(), directory="/posts/2024/")

        self.assertTrue(asset.stored_name.startswith("posts/2024/"))
        self.assertTrue(asset.primary_url.startswith("/posts/2024/"))

    def test_consecutive_ingests_get_distinct_names(self):
        first = ingest_media(uploaded_image())
        second = ingest_media(uploaded_image())

        self.assertNotEqual(first.stored_name, second.stored_name)

    def test_upload_read_after_partial_read(self):
        upload = uploaded_image()
        upload.read(10)

        asset = ingest_media(upload)

        self.assertGreater(asset.byte_size, 0)

    def test_undecodable_image_writes_nothing(self):
        upload = SimpleUploadedFile("bad.png", b"not an image at all", content_type="image/png")

        with self.assertRaises(ProcessingFailure):
            ingest_media(upload)

        self.assertEqual(self.stored_files(), set())


@tag("unit")
class IngestVideoTests(TemporaryPublicRootMixin, TestCase):
    """Video ingestion with ffprobe and ffmpeg replaced."""

    def setUp(self):
        super().setUp()
        logging.disable(logging.CRITICAL)
        self.addCleanup(logging.disable, logging.NOTSET)

    def test_video_stored_unchanged_with_poster(self):
        upload = uploaded_video(name="clip.mov", content_type="video/quicktime")
        original = upload.read()

        asset = ingest_media(
            upload, probe=fake_probe(1280, 720, 4.2), extract_frame=fake_extract_frame()
        )

        self.assertEqual(asset.kind, MediaKind.VIDEO)
        self.assertEqual(asset.mime_type, "video/quicktime")
        self.assertTrue(asset.stored_name.endswith(".mov"))
        self.assertEqual((self.public_root / asset.stored_name).read_bytes(), original)
        self.assertEqual(asset.byte_size, len(original))
        self.assertEqual((asset.width, asset.height, asset.duration_seconds), (1280, 720, 4.2))

    def test_poster_follows_naming_convention(self):
        asset = ingest_media(
            uploaded_video(), probe=fake_probe(), extract_frame=fake_extract_frame()
        )

        stem = asset.stored_name.rsplit(".", 1)[0]
        self.assertEqual(asset.derivative_name, f"{stem}-thumb.webp")
        self.assertEqual(asset.derivative_url, f"/{asset.derivative_name}")
        self.assertTrue((self.public_root / asset.derivative_name).is_file())

    def test_thumbnail_url_comes_from_descriptor_not_convention(self):
        asset = ingest_media(
            uploaded_video(), probe=fake_probe(), extract_frame=fake_extract_frame()
        )

        self.assertIsNone(derive_thumbnail_url(asset.primary_url))
        self.assertEqual(
            thumbnail_url_for(asset.primary_url, asset.derivative_url), asset.derivative_url
        )

    def test_probe_failure_gives_null_metadata(self):
        def failing_probe(path):
            raise ProbeFailure("no ffprobe here")

        asset = ingest_media(
            uploaded_video(), probe=failing_probe, extract_frame=fake_extract_frame()
        )

        self.assertIsNone(asset.width)
        self.assertIsNone(asset.height)
        self.assertIsNone(asset.duration_seconds)
        self.assertIsNotNone(asset.derivative_url)

    def test_poster_failure_writes_nothing(self):
        def failing_extract(source, output):
            raise PosterExtractionFailure("no frames")

        with self.assertRaises(PosterExtractionFailure):
            ingest_media(uploaded_video(), probe=fake_probe(), extract_frame=failing_extract)

        self.assertEqual(self.stored_files(), set())


@tag("unit")
class IngestValidationTests(TemporaryPublicRootMixin, TestCase):
    """Failures that must happen before the upload is read."""

    def test_unsupported_type_is_rejected_without_reading(self):
        upload = MagicMock(content_type="application/pdf")

        with self.assertRaises(UnsupportedMediaType) as ctx:
            ingest_media(upload)

        self.assertIn("application/pdf", str(ctx.exception))
        upload.read.assert_not_called()
        self.assertEqual(self.stored_files(), set())

    @override_settings(
        MEDIA_IMAGE_STORAGE_DRIVER="object-storage",
        OBJECT_STORAGE_BUCKET="",
        OBJECT_STORAGE_ENDPOINT="",
        OBJECT_STORAGE_ACCOUNT_ID="",
    )
    def test_storage_misconfiguration_is_rejected_without_reading(self):
        upload = MagicMock(content_type="image/png")

        with self.assertRaises(StorageConfigurationError):
            ingest_media(upload)

        upload.read.assert_not_called()

    def test_parent_directory_is_rejected(self):
        with self.assertRaises(ValueError):
            ingest_media(uploaded_image(), directory="../outside")


@tag("unit")
class IngestObjectStorageTests(TemporaryPublicRootMixin, TestCase):
    """Ingestion routed to object storage."""

    def setUp(self):
        super().setUp()
        logging.disable(logging.CRITICAL)
        self.addCleanup(logging.disable, logging.NOTSET)

    def install_client(self, client: FakeObjectStorageClient):
        patcher = patch("pressroom.apps.media.storage.boto3.client", return_value=client)
        patcher.start()
        self.addCleanup(patcher.stop)
        return client

    @override_settings(
        MEDIA_STORAGE_DRIVER="object-storage",
        MEDIA_IMAGE_STORAGE_DRIVER="",
        **OBJECT_STORAGE_SETTINGS,
    )
    def test_image_uploaded_with_public_urls(self):
        client = self.install_client(FakeObjectStorageClient())

        asset = ingest_media(uploaded_image())

        self.assertEqual(asset.storage_backend, StorageBackend.OBJECT_STORAGE)
        self.assertEqual(client.keys(), {asset.stored_name, asset.derivative_name})
        self.assertEqual(
            asset.primary_url, f"https://cdn.example.com/media/{asset.stored_name}"
        )
        self.assertEqual(derive_thumbnail_url(asset.primary_url), asset.derivative_url)
        self.assertEqual(self.stored_files(), set())

    @override_settings(
        MEDIA_STORAGE_DRIVER="local",
        MEDIA_IMAGE_STORAGE_DRIVER="object-storage",
        MEDIA_VIDEO_STORAGE_DRIVER="",
        **OBJECT_STORAGE_SETTINGS,
    )
    def test_image_only_override_leaves_videos_local(self):
        client = self.install_client(FakeObjectStorageClient())

        image = ingest_media(uploaded_image())
        video = ingest_media(
            uploaded_video(), probe=fake_probe(), extract_frame=fake_extract_frame()
        )

        self.assertEqual(image.storage_backend, StorageBackend.OBJECT_STORAGE)
        self.assertEqual(video.storage_backend, StorageBackend.LOCAL)
        self.assertEqual(client.keys(), {image.stored_name, image.derivative_name})
        self.assertEqual(self.stored_files(), {video.stored_name, video.derivative_name})

    @override_settings(MEDIA_STORAGE_DRIVER="object-storage", **OBJECT_STORAGE_SETTINGS)
    def test_derivative_failure_rolls_back_and_raises(self):
        client = self.install_client(
            FakeObjectStorageClient(fail_put_when=lambda key: key.endswith("-thumb.webp"))
        )

        with self.assertRaises(StorageWriteFailure):
            ingest_media(uploaded_image())

        self.assertEqual(client.keys(), set())
        self.assertEqual(len(client.deleted), 1)

    @override_settings(MEDIA_STORAGE_DRIVER="object-storage", **OBJECT_STORAGE_SETTINGS)
    def test_video_poster_failure_rolls_back_video(self):
        client = self.install_client(
            FakeObjectStorageClient(fail_put_when=lambda key: key.endswith("-thumb.webp"))
        )

        with self.assertRaises(StorageWriteFailure):
            ingest_media(
                uploaded_video(), probe=fake_probe(), extract_frame=fake_extract_frame()
            )

        self.assertEqual(client.keys(), set())
