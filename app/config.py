from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    db_path: Path = Path(__file__).resolve().parent.parent / "movies.db"
    log_level: str = "INFO"
    default_page_size: int = 5
    max_page_size: int = 100
    event_bus_url: str | None = None
    event_timeout: float = 5.0
    event_retries: int = 3
    event_retry_backoff: float = 0.5
    cors_origins: list[str] = ["*"]

    model_config = {"env_prefix": "MOVIE_API_"}


settings = Settings()
