import io
import os

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from api.app.main import app
from api.app.model_client import get_text_model


class StubModel:
    """Records every call; returns `reply` or raises `error`."""

    def __init__(self, reply="<mocked transcription>", error=None, watch_dir=None):
        self.reply = reply
        self.error = error
        self.watch_dir = watch_dir
        self.calls = []
        self.files_during_call = []

    async def generate(self, prompt, image_png=None):
        self.calls.append((prompt, image_png))
        if self.watch_dir is not None:
            self.files_during_call.append(sorted(os.listdir(self.watch_dir)))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    path.mkdir()
    monkeypatch.setenv("UPLOAD_TMP_DIR", str(path))
    return path


@pytest.fixture
def stub_model(upload_dir):
    model = StubModel(watch_dir=upload_dir)
    app.dependency_overrides[get_text_model] = lambda: model
    try:
        yield model
    finally:
        app.dependency_overrides.pop(get_text_model, None)


@pytest.fixture
def client():
    return TestClient(app)


def make_image(mode="RGB", fmt="JPEG", size=(32, 24), color=None) -> bytes:
    if color is None:
        color = {"RGB": (120, 60, 200), "RGBA": (120, 60, 200, 128), "L": 128,
                 "LA": (128, 255), "P": 3, "CMYK": (10, 20, 30, 40), "1": 1,
                 "I": 30000}[mode]
    img = Image.new(mode, size, color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def jpeg_bytes():
    return make_image("RGB", "JPEG")
