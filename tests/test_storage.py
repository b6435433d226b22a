"""Upload storage paths and URLs."""

import os

from gestion_proyectos.services import storage


def test_save_upload_layout() -> None:
    relative = storage.save_upload(b"contenido", "evidencias", ".png")
    parts = relative.split("/")
    assert parts[0] == "evidencias"
    assert len(parts[1]) == 4 and len(parts[2]) == 2
    assert parts[3].endswith(".png")
    with open(storage.absolute_path(relative), "rb") as fh:
        assert fh.read() == b"contenido"
    assert storage.remove_file(relative) is True
    assert storage.remove_file(relative) is False


def test_public_url_for_relative_and_absolute_paths() -> None:
    assert storage.public_url("evidencias/2025/01/a.png") == "/uploads/evidencias/2025/01/a.png"
    absolute = os.path.join(storage.uploads_root(), "evidencias", "b.png")
    assert storage.public_url(absolute) == "/uploads/evidencias/b.png"


def test_sha256_hex() -> None:
    assert storage.sha256_hex(b"") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def test_remove_nothing() -> None:
    assert storage.remove_file(None) is False
