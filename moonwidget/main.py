"""Точка входа в приложение."""
import logging

from moonwidget.app import MoonWidgetApp
from moonwidget.config import load_config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def main() -> None:
    """Настраивает логирование, создаёт и запускает окно виджета."""
    config = load_config()
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO), format=LOG_FORMAT)
    app = MoonWidgetApp(config)
    app.mainloop()


if __name__ == "__main__":
    main()
