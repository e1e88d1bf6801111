"""
Tests for data URL decoding and sequential asset uploads.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import base64

import pytest

from adapters.memory import InMemoryBackend
from core.asset_uploader import AssetUpload, AssetUploader, decode_data_url
from core.errors import InvalidAssetFormat
from models import AssetKind


class RecordingSleep:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


class TestDecodeDataUrl:
    def test_png(self, png_data_url):
        data, mime = decode_data_url(png_data_url)
        assert mime == "image/png"
        assert data.startswith(b"\x89PNG")

    def test_jpeg(self, jpeg_data_url):
        _, mime = decode_data_url(jpeg_data_url)
        assert mime == "image/jpeg"

    @pytest.mark.parametrize(
        "payload",
        [
            "",
            "not a data url",
            "data:image/png,abc",
            "data:image/png;base64,@@@not-base64@@@",
        ],
    )
    def test_malformed(self, payload):
        with pytest.raises(InvalidAssetFormat):
            decode_data_url(payload)

    def test_non_image_mime(self):
        payload = "data:text/plain;base64," + base64.b64encode(b"hello").decode()
        with pytest.raises(InvalidAssetFormat) as exc:
            decode_data_url(payload)
        assert "text/plain" in str(exc.value)

    def test_bytes_not_an_image(self):
        """Valid base64 under an image MIME type that is not actually an image."""
        payload = "data:image/png;base64," + base64.b64encode(b"definitely not png").decode()
        with pytest.raises(InvalidAssetFormat):
            decode_data_url(payload)


class TestAssetUploader:
    def test_sketch_naming_and_folder(self, png_data_url):
        store = InMemoryBackend()
        uploader = AssetUploader(store, delay_s=0)
        result = uploader.upload(AssetUpload(AssetKind.SKETCH, png_data_url, name="sketch"), "1042")

        assert result.ok
        assert result.file_name == "FloorPlan_1042.png"
        stored = store.files[0]
        assert stored.folder_path == ("Turnovers_Sketches", "1042")
        assert stored.mime_type == "image/png"
        assert result.url == stored.url

    def test_photo_naming(self, jpeg_data_url):
        store = InMemoryBackend()
        uploader = AssetUploader(store, delay_s=0)
        result = uploader.upload(
            AssetUpload(AssetKind.PHOTO, jpeg_data_url, name="kitchen.jpeg", caption="Sink"),
            "1042",
            position=3,
        )
        assert result.file_name == "1042_03_kitchen.jpeg"
        assert store.files[0].folder_path == ("Turnovers_Photos", "1042")
        assert store.files[0].description == "Sink"

    def test_batch_continues_past_failures(self, png_data_url):
        """Photo #3 fails; the result still has one entry per input, in order."""
        store = InMemoryBackend(fail_uploads={"_03_"})
        sleep = RecordingSleep()
        uploader = AssetUploader(store, delay_s=0.5, sleep=sleep)
        assets = [AssetUpload(AssetKind.PHOTO, png_data_url, name=f"p{i}.png") for i in range(1, 6)]

        results = uploader.upload_batch(assets, "1042")

        assert [r.name for r in results] == ["p1.png", "p2.png", "p3.png", "p4.png", "p5.png"]
        assert [r.ok for r in results] == [True, True, False, True, True]
        assert "Forced upload failure" in results[2].error
        assert results[2].url is None
        assert len(store.files) == 4
        # paced: one pause between each pair of uploads
        assert sleep.calls == [0.5] * 4

    def test_bad_payload_recorded_not_raised(self):
        uploader = AssetUploader(InMemoryBackend(), delay_s=0)
        results = uploader.upload_batch([AssetUpload(AssetKind.PHOTO, "garbage", name="x.png")], "1042")
        assert not results[0].ok
        assert "Invalid data URL" in results[0].error

    def test_unexpected_error_recorded(self, png_data_url):
        class Exploding:
            def upload_file(self, **kwargs):
                raise RuntimeError("socket closed")

        uploader = AssetUploader(Exploding(), delay_s=0)
        results = uploader.upload_batch([AssetUpload(AssetKind.PHOTO, png_data_url, name="x.png")], "1042")
        assert "socket closed" in results[0].error

    def test_upload_optional(self, png_data_url):
        uploader = AssetUploader(InMemoryBackend(), delay_s=0)
        assert uploader.upload_optional(None, "1042") is None
        result = uploader.upload_optional(AssetUpload(AssetKind.SKETCH, png_data_url, name="sketch"), "1042")
        assert result.ok

    def test_from_settings(self, settings):
        settings.gdrive_photo_folder_name = "Photos_Test"
        uploader = AssetUploader.from_settings(InMemoryBackend(), settings)
        assert uploader.photo_folder == "Photos_Test"
        assert uploader.delay_s == 0
