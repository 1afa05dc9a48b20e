import os
from datetime import datetime

import pytest
from PIL import Image

TAKEN = datetime(2023, 12, 31, 17, 32, 54)
LATER = datetime(2024, 1, 1, 9, 0, 0)


def make_image(path, taken=None, modified=None, fmt=None):
    """Vytvoří malý obrázek, volitelně s EXIF DateTime a časem změny."""
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", (8, 8), color=(200, 120, 40))
    kwargs = {}
    if taken is not None:
        exif = Image.Exif()
        exif[0x0132] = taken.strftime("%Y:%m:%d %H:%M:%S")
        kwargs["exif"] = exif.tobytes()
    img.save(path, format=fmt or "JPEG", **kwargs)
    if modified is not None:
        stamp = modified.timestamp()
        os.utime(path, (stamp, stamp))
    return path


@pytest.fixture
def image_factory(tmp_path):
    def factory(name, **kwargs):
        return make_image(tmp_path / name, **kwargs)
    return factory


@pytest.fixture
def deny_directory(monkeypatch):
    """Složka, kterou nejde přečíst (jako bez práv), bez chmod - testy běží i pod rootem."""
    real_scandir = os.scandir

    def deny(directory):
        def scandir(path="."):
            if os.fspath(path) == os.fspath(directory):
                raise PermissionError(13, "Permission denied", os.fspath(path))
            return real_scandir(path)
        monkeypatch.setattr(os, "scandir", scandir)
    return deny
