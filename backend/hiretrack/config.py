from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".hiretrack"
    # Sliding inactivity timeout for bearer sessions.
    session_ttl_seconds: int = 8 * 60 * 60
    api_prefix: str = "/api"
    default_report_period: str = "30d"
    time_to_hire_period: str = "90d"
    top_jobs_limit: int = 5
    cors_origins: list[str] = [
        "http://127.0.0.1:5173",
        "http://localhost:5173",
    ]
    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def db_path(self) -> Path:
        return self.data_dir / "hiretrack.sqlite"

    model_config = {"env_prefix": "HIRETRACK_"}


settings = Settings()
