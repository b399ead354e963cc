from datetime import date, datetime

from moonwidget.models.image_model import PipelineState
from moonwidget.services.cache_service import CacheKey, CacheStage, DayCache


def test_key_is_truncated_to_day():
    morning = CacheKey.for_moment(datetime(2026, 3, 7, 0, 5))
    evening = CacheKey.for_moment(datetime(2026, 3, 7, 23, 55))
    assert morning == evening == CacheKey(date(2026, 3, 7))


def test_file_names_are_zero_padded(tmp_path):
    cache = DayCache(tmp_path)
    key = CacheKey(date(2026, 3, 7))

    assert cache.path(key, CacheStage.RAW).name == "moon-phase-raw-20260307.png"
    assert cache.path(key, CacheStage.CROPPED).name == "moon-phase-cropped-20260307.png"
    assert cache.path(key, CacheStage.RENDERED).name == "moon-phase-rendered-20260307.png"
    assert cache.inverted_path(key).name == "moon-phase-rendered-20260307-inverted.png"
    assert cache.mirror_path == tmp_path / "moonphase.png"


def test_state_reports_latest_stage(tmp_path):
    cache = DayCache(tmp_path)
    key = CacheKey(date(2026, 10, 18))
    assert cache.state(key) is PipelineState.NO_ARTIFACT

    cache.path(key, CacheStage.RAW).write_bytes(b"x")
    assert cache.state(key) is PipelineState.HAS_RAW

    cache.path(key, CacheStage.CROPPED).write_bytes(b"x")
    assert cache.state(key) is PipelineState.HAS_CROPPED

    cache.path(key, CacheStage.RENDERED).write_bytes(b"x")
    assert cache.state(key) is PipelineState.HAS_RENDERED


def test_remove_intermediates_keeps_rendered(tmp_path):
    cache = DayCache(tmp_path)
    key = CacheKey(date(2026, 10, 18))
    for stage in CacheStage:
        cache.path(key, stage).write_bytes(b"x")

    cache.remove_intermediates(key)

    assert not cache.has(key, CacheStage.RAW)
    assert not cache.has(key, CacheStage.CROPPED)
    assert cache.has(key, CacheStage.RENDERED)


def test_discard_missing_file_is_fine(tmp_path):
    assert DayCache(tmp_path).discard(tmp_path / "nope.png")


def test_purge_stale_keeps_today_and_foreign_files(tmp_path):
    cache = DayCache(tmp_path)
    today = CacheKey(date(2026, 10, 18))
    old = CacheKey(date(2026, 10, 1))
    cache.path(today, CacheStage.RENDERED).write_bytes(b"x")
    cache.path(old, CacheStage.RENDERED).write_bytes(b"x")
    cache.inverted_path(old).write_bytes(b"x")
    (tmp_path / "unrelated.png").write_bytes(b"x")

    assert cache.list_days() == [old.day, today.day]
    assert cache.purge_stale(today) == 2
    assert cache.list_days() == [today.day]
    assert (tmp_path / "unrelated.png").exists()
