"""
Shared fixtures for gallery sync tests.
"""

import io
from unittest.mock import MagicMock

import pytest
from PIL import Image

from gallerysync.config import SyncConfig
from gallerysync.models import PhotoRecord


@pytest.fixture
def config(tmp_path):
    return SyncConfig(api_token="test-token", project_root=tmp_path)


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (32, 24), (200, 120, 40)).save(buf, "PNG")
    return buf.getvalue()


@pytest.fixture
def make_response():
    def _make(status_code=200, content=b"", json_data=None, text=""):
        resp = MagicMock()
        resp.status_code = status_code
        resp.content = content
        resp.text = text
        resp.json.return_value = json_data
        return resp
    return _make


@pytest.fixture
def make_record():
    def _make(record_name, capture_date=100, location_name="Paris",
              thumbnail_url="https://cdn.example/thumb", image_url="https://cdn.example/full",
              status="approved"):
        return PhotoRecord(
            record_name=record_name,
            status=status,
            thumbnail_url=thumbnail_url,
            image_url=image_url,
            location_name=location_name,
            capture_date=capture_date,
        )
    return _make


@pytest.fixture
def raw_record():
    """CloudKit-shaped record dict; asset fields are given as plain URLs."""
    def _make(record_name, **fields):
        out = {}
        for name, value in fields.items():
            if name in ("thumbnail", "image"):
                out[name] = {"value": {"downloadURL": value}, "type": "ASSETID"}
            else:
                out[name] = {"value": value}
        return {"recordName": record_name, "fields": out}
    return _make
