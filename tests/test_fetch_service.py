from datetime import date
from unittest.mock import MagicMock

import pytest
import requests

from moonwidget.services.errors import NetworkFetchError
from moonwidget.services.fetch_service import RemoteImageFetcher, build_url

TEMPLATE = "https://example.test/moon-{year}-{month}-{day}.png"


def _session(content=b"\x89PNG fake", status_error=None, get_error=None):
    session = MagicMock()
    resp = MagicMock()
    resp.content = content
    if status_error is not None:
        resp.raise_for_status.side_effect = status_error
    session.get.return_value = resp
    if get_error is not None:
        session.get.side_effect = get_error
    return session


def test_build_url_pads_month_and_day():
    assert build_url(TEMPLATE, date(2026, 3, 7)) == "https://example.test/moon-2026-03-07.png"


def test_fetch_writes_file(tmp_path):
    session = _session()
    fetcher = RemoteImageFetcher(TEMPLATE, timeout=5, session=session)
    out = tmp_path / "raw.png"

    assert fetcher.fetch(date(2026, 10, 18), out) == out

    session.get.assert_called_once_with("https://example.test/moon-2026-10-18.png", timeout=5)
    assert out.read_bytes() == b"\x89PNG fake"
    assert list(tmp_path.iterdir()) == [out]


@pytest.mark.parametrize(
    "session",
    [
        _session(get_error=requests.ConnectionError("down")),
        _session(status_error=requests.HTTPError("404")),
        _session(content=b""),
    ],
)
def test_fetch_failure_leaves_no_file(tmp_path, session):
    fetcher = RemoteImageFetcher(TEMPLATE, session=session)

    with pytest.raises(NetworkFetchError):
        fetcher.fetch(date(2026, 10, 18), tmp_path / "raw.png")

    assert list(tmp_path.iterdir()) == []


def test_fetch_into_missing_directory_is_a_fetch_error(tmp_path):
    fetcher = RemoteImageFetcher(TEMPLATE, session=_session())
    with pytest.raises(NetworkFetchError):
        fetcher.fetch(date(2026, 10, 18), tmp_path / "missing" / "raw.png")
