import threading
from datetime import date
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from moonwidget.models.image_model import RasterImage
from moonwidget.services.cache_service import DayCache
from moonwidget.services.errors import NetworkFetchError
from moonwidget.services.pipeline_service import MoonImagePipeline

DAY = date(2026, 10, 18)


def disk_array(size=300, diameter=200, background=255, disk=40):
    """White square with a dark disk whose bounding box is exactly `diameter` pixels."""
    arr = np.full((size, size, 3), background, dtype=np.uint8)
    c = (size - 1) / 2
    ys, xs = np.ogrid[:size, :size]
    inside = (xs - c) ** 2 + (ys - c) ** 2 <= (diameter / 2) ** 2
    arr[inside] = disk
    return arr


def save_png(arr, path):
    Image.fromarray(arr).save(path, "PNG")
    return Path(path)


class FakeFetcher:
    """Writes a prepared image instead of hitting the network."""

    def __init__(self, arr=None, error=None, gate=None):
        self.arr = disk_array() if arr is None else arr
        self.error = error
        self.gate = gate
        self.calls = []
        self.closed = False

    def fetch(self, day, out_path):
        self.calls.append(day)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return save_png(self.arr, out_path)

    def close(self):
        self.closed = True


@pytest.fixture
def day():
    return DAY


@pytest.fixture
def cache(tmp_path):
    return DayCache(tmp_path / "cache")


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def failing_fetcher():
    return FakeFetcher(error=NetworkFetchError("unreachable"))


@pytest.fixture
def blocking_fetcher():
    return FakeFetcher(gate=threading.Event())


@pytest.fixture
def pipeline(cache, fetcher):
    p = MoonImagePipeline(cache=cache, fetcher=fetcher)
    yield p
    p.shutdown()


@pytest.fixture
def raster_from():
    return RasterImage.from_array
