import threading

import numpy as np
from PIL import Image

from conftest import FakeFetcher, disk_array, save_png
from moonwidget.models.image_model import PipelineState
from moonwidget.services.cache_service import CacheKey, CacheStage
from moonwidget.services.pipeline_service import MoonImagePipeline


def _open(path):
    with Image.open(path) as img:
        return np.asarray(img.convert("RGBA"))


def test_uncached_day_is_fetched_cropped_and_rendered(pipeline, cache, fetcher, day):
    result = pipeline.run(day, "Full Moon")

    assert result.state is PipelineState.HAS_RENDERED
    assert result.rendered_path == cache.path(CacheKey(day), CacheStage.RENDERED)
    assert fetcher.calls == [day]

    out = _open(result.rendered_path)
    assert out.shape == (206, 206, 4)
    assert (out[..., 0] == out[..., 1]).all() and (out[..., 1] == out[..., 2]).all()

    # ring sits near radius 100 around the centre
    c = 102.5
    ring_px = out[int(c), int(c + 100.5)]
    assert tuple(ring_px) == (0, 0, 0, 128)
    assert out[int(c), int(c), 3] == 255

    key = CacheKey(day)
    assert not cache.has(key, CacheStage.RAW)
    assert not cache.has(key, CacheStage.CROPPED)
    assert cache.mirror_path.is_file()
    assert _open(cache.mirror_path).shape == (206, 206, 4)


def test_cached_day_makes_no_fetch(pipeline, fetcher, day):
    first = pipeline.run(day, "Full Moon")
    second = pipeline.run(day, "Full Moon")

    assert second.rendered_path == first.rendered_path
    assert fetcher.calls == [day]


def test_existing_raw_skips_fetch(pipeline, cache, fetcher, day):
    cache.ensure_dir()
    save_png(disk_array(), cache.path(CacheKey(day), CacheStage.RAW))

    result = pipeline.run(day, "Full Moon")

    assert not result.is_fallback
    assert fetcher.calls == []


def test_existing_cropped_is_rendered_directly(pipeline, cache, fetcher, day):
    cache.ensure_dir()
    cropped = disk_array(size=206, diameter=200)
    save_png(cropped, cache.path(CacheKey(day), CacheStage.CROPPED))

    result = pipeline.run(day, "Full Moon")

    assert fetcher.calls == []
    assert _open(result.rendered_path).shape == (206, 206, 4)
    assert not cache.has(CacheKey(day), CacheStage.CROPPED)


def test_fetch_failure_uses_phase_icon_and_leaves_no_files(cache, failing_fetcher, day):
    pipeline = MoonImagePipeline(cache=cache, fetcher=failing_fetcher)

    result = pipeline.run(day, "Waning Gibbous")

    assert result.state is PipelineState.FAILED
    assert result.fallback_icon == "Waning-gibbous-symbolic"
    assert result.rendered_path is None
    assert cache.list_days() == []


def test_unknown_phase_name_gets_generic_icon(cache, failing_fetcher, day):
    result = MoonImagePipeline(cache=cache, fetcher=failing_fetcher).run(day, "Between A and B")
    assert result.fallback_icon == "weather-clear-night-symbolic"


def test_corrupt_raw_is_discarded_and_refetched_next_time(cache, fetcher, day):
    cache.ensure_dir()
    raw = cache.path(CacheKey(day), CacheStage.RAW)
    raw.write_bytes(b"not a png")
    pipeline = MoonImagePipeline(cache=cache, fetcher=fetcher)

    first = pipeline.run(day, "Full Moon")
    assert first.is_fallback
    assert not raw.exists()
    assert fetcher.calls == []

    second = pipeline.run(day, "Full Moon")
    assert not second.is_fallback
    assert fetcher.calls == [day]


def test_unexpected_error_falls_back(cache, day):
    class Broken(FakeFetcher):
        def fetch(self, day, out_path):
            raise RuntimeError("boom")

    result = MoonImagePipeline(cache=cache, fetcher=Broken()).run(day, "New Moon")
    assert result.fallback_icon == "New-moon-symbolic"


def test_blank_image_uses_fallback_bounds(cache, day):
    blank = np.full((100, 100, 3), 255, dtype=np.uint8)
    result = MoonImagePipeline(cache=cache, fetcher=FakeFetcher(arr=blank)).run(day, "Full Moon")

    # 80% of 100 plus the margin on each side
    assert _open(result.rendered_path).shape == (86, 86, 4)


def test_inverted_variant(pipeline, cache, day):
    normal = pipeline.run(day, "Full Moon")
    inverted = pipeline.run(day, "Full Moon", inverted=True)

    assert inverted.rendered_path == cache.inverted_path(CacheKey(day))
    a = _open(normal.rendered_path)
    b = _open(inverted.rendered_path)
    np.testing.assert_array_equal(255 - a[..., :3], b[..., :3])
    np.testing.assert_array_equal(a[..., 3], b[..., 3])


def test_submit_joins_in_flight_run(cache, blocking_fetcher, day):
    pipeline = MoonImagePipeline(cache=cache, fetcher=blocking_fetcher)
    seen = []
    both_called = threading.Event()

    def callback(result):
        seen.append(result)
        if len(seen) == 2:
            both_called.set()

    try:
        first = pipeline.submit(day, "Full Moon", callback=callback)
        second = pipeline.submit(day, "Full Moon", callback=callback)
        assert first is second
        assert pipeline.in_flight() == 1

        blocking_fetcher.gate.set()
        result = first.result(timeout=10)
        # done-callbacks run after waiters are released
        assert both_called.wait(timeout=10)
    finally:
        blocking_fetcher.gate.set()
        pipeline.shutdown()

    assert not result.is_fallback
    assert blocking_fetcher.calls == [day]
    assert seen == [result, result]
    assert pipeline.in_flight() == 0


def test_shutdown_closes_fetcher(cache, fetcher):
    MoonImagePipeline(cache=cache, fetcher=fetcher).shutdown()
    assert fetcher.closed
