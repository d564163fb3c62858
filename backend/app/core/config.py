from datetime import date
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


# .env ищем в backend/, относительно расположения config.py (backend/app/core/)
_CONFIG_DIR = Path(__file__).parent.parent.parent
_ENV_FILE = _CONFIG_DIR / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Игнорировать дополнительные поля из переменных окружения
    )

    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    # В prod можно переопределить через LOG_LEVEL=info|warning|error.
    log_level: str = "INFO"
    log_dir: str = ".data/logs"

    db_host: str = "db"
    db_port: int = 5432
    db_name: str = "studyflow"
    db_user: str = "studyflow"
    db_password: str = "studyflow"
    # Полный URL перекрывает db_* (например, для sqlite+aiosqlite в локальной разработке)
    database_url: str | None = None

    # Предел суммарной загрузки сотрудника в любой момент времени, %
    effort_capacity_percent: int = 100
    # Дата, которой заменяется отсутствующая дата окончания назначения
    open_end_sentinel: date = date(9999, 12, 31)

    @property
    def async_database_url(self) -> str:
        """Формирует async URL для SQLAlchemy с psycopg 3.x (async по умолчанию)."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


settings = Settings()
