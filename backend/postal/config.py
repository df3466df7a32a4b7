import logging
import sys
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./postal.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 4000
    FRONTEND_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    RESET_DB: bool = False
    DEFAULT_PAGE_LIMIT: int = 10
    CASCADE_MAX_ATTEMPTS: int = 3
    RENAME_LOCK_TIMEOUT_SECONDS: int = 10
    RECONCILE_INTERVAL_SECONDS: int = 300  # 0 disables the background sweep
    DELIVERED_IS_TERMINAL: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach a single stdout handler to the `postal` logger tree.
    Safe to call more than once (app factory runs per test).
    """
    log = logging.getLogger("postal")
    log.setLevel(level.upper())
    if not log.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        log.addHandler(h)
    return log
