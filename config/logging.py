import logging
import logging.handlers
from pathlib import Path

from pulse.config.settings import settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT = 5

# Логгеры пайплайна генерации дополнительно пишутся в отдельный файл
GENERATION_LOGGERS = ("pulse.services", "pulse.requests")

NOISY_LOGGERS = ("aiogram", "sqlalchemy.engine", "openai", "httpx", "redis")


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(level: str | None = None, logs_dir: Path = Path("logs")):
    """
    Консоль + logs/pulse.log для всего приложения и logs/generation.log
    только для сервисов генерации (сбои модели, пропущенные упражнения).
    """
    logs_dir.mkdir(exist_ok=True)
    level = getattr(logging, (level or settings.LOG_LEVEL).upper())
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(_rotating_handler(logs_dir / "pulse.log", logging.INFO, formatter))

    generation_handler = _rotating_handler(logs_dir / "generation.log", level, formatter)
    for name in GENERATION_LOGGERS:
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.addHandler(generation_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info("📝 Система логирования настроена")
