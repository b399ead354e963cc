"""Загрузка дневного снимка луны по шаблону URL."""
from __future__ import annotations

import logging
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Optional

import requests

from moonwidget.config import FETCH_TIMEOUT_SECONDS, STARWALK_URL_TEMPLATE
from moonwidget.services.errors import NetworkFetchError

logger = logging.getLogger(__name__)

USER_AGENT = "moonwidget/1.0 (+desktop moon phase widget)"


def build_url(template: str, day: date) -> str:
    """Подставляет {year}, {month}, {day} (месяц и день с ведущим нулём)."""
    return (
        template.replace("{year}", f"{day.year:04d}")
        .replace("{month}", f"{day.month:02d}")
        .replace("{day}", f"{day.day:02d}")
    )


class RemoteImageFetcher:
    def __init__(
        self,
        url_template: str = STARWALK_URL_TEMPLATE,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url_template = url_template
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    def fetch(self, day: date, out_path: Path) -> Path:
        """Скачивает снимок за `day` в `out_path`.

        Файл появляется целиком или не появляется вовсе: данные пишутся во временный
        файл рядом и переименовываются.

        Raises:
            NetworkFetchError: источник недоступен, ответ не 2xx, пустое тело или ошибка записи.
        """
        url = build_url(self.url_template, day)
        logger.info("Fetching moon image %s", url)
        try:
            resp = self._session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise NetworkFetchError(f"Не удалось загрузить {url}: {exc}") from exc

        content = resp.content
        if not content:
            raise NetworkFetchError(f"Пустой ответ от {url}")

        out_path = Path(out_path)
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=out_path.stem + "-", suffix=".part", dir=out_path.parent)
        except OSError as exc:
            raise NetworkFetchError(f"Не удалось создать файл в {out_path.parent}: {exc}") from exc
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            os.replace(tmp_name, out_path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise NetworkFetchError(f"Не удалось записать {out_path}: {exc}") from exc

        logger.debug("Saved %d bytes to %s", len(content), out_path)
        return out_path

    def close(self) -> None:
        self._session.close()
