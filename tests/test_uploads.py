import logging
from pathlib import Path

import pytest
from starlette.datastructures import FormData, Headers, UploadFile

from api.app.uploads import pick_upload, temporary_upload


def _upload(name):
    return UploadFile(file=None, filename=name, headers=Headers({}))


def test_known_field_names_are_tried_in_order():
    image = _upload("image.png")
    document = _upload("document.png")
    form = FormData([("document", document), ("image", image)])
    assert pick_upload(form) is image


def test_file_field_wins():
    first = _upload("a.png")
    form = FormData([("image", _upload("b.png")), ("file", first)])
    assert pick_upload(form) is first


def test_falls_back_to_first_file_under_any_name():
    other = _upload("scan.jpg")
    form = FormData([("language", "hi"), ("scan", other)])
    assert pick_upload(form) is other


def test_text_value_under_file_field_is_ignored():
    scan = _upload("scan.jpg")
    form = FormData([("file", "not a file"), ("scan", scan)])
    assert pick_upload(form) is scan


def test_no_file_returns_none():
    assert pick_upload(FormData([("language", "en")])) is None


def test_temp_file_removed_after_success(upload_dir):
    with temporary_upload(b"abc", suffix=".png") as path:
        assert path.parent == upload_dir
        assert path.read_bytes() == b"abc"
        assert path.suffix == ".png"
    assert not path.exists()


def test_temp_file_removed_after_error(upload_dir):
    with pytest.raises(RuntimeError):
        with temporary_upload(b"abc") as path:
            raise RuntimeError("upstream failed")
    assert not path.exists()
    assert list(upload_dir.iterdir()) == []


def test_cleanup_failure_is_only_logged(upload_dir, monkeypatch, caplog):
    original_unlink = Path.unlink

    def broken_unlink(self, missing_ok=False):
        raise PermissionError("read-only")

    monkeypatch.setattr(Path, "unlink", broken_unlink)
    with caplog.at_level(logging.WARNING):
        with temporary_upload(b"abc") as path:
            pass

    assert "Failed to remove temp file" in caplog.text
    assert path.exists()
    monkeypatch.setattr(Path, "unlink", original_unlink)
    path.unlink()
