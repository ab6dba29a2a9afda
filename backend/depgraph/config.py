from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Schema Dependency API"
    DEBUG: bool = True
    SCHEMA_FILE_PATH: str = str(Path(__file__).parent.parent / "data" / "application.json")
    PATHS_MAX_DEPTH: int = 6
    STATS_TOP_N: int = 10

    class Config:
        env_file = ".env"


settings = Settings()
