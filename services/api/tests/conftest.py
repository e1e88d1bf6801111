"""
Shared fixtures: tiny real images as data URLs, settings without a .env.
"""
import base64
import os
import sys
from io import BytesIO

import pytest
from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from settings import Settings


def make_data_url(color=(200, 30, 30), size=(4, 4), fmt="PNG", mime="image/png") -> str:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return f"data:{mime};base64," + base64.b64encode(buf.getvalue()).decode("ascii")


@pytest.fixture
def png_data_url():
    return make_data_url()


@pytest.fixture
def jpeg_data_url():
    return make_data_url(color=(10, 120, 200), fmt="JPEG", mime="image/jpeg")


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        assessment_backend="memory",
        upload_delay_s=0,
        sheets_spreadsheet_id="sheet-123",
    )
