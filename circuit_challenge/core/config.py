from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent.parent

class Settings(BaseSettings): # load all key=value pairs from .env
    """ Engine and storage settings"""
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'data' / 'circuit.db'}"
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "app_errors.log"
    GENERATOR_LOG_LEVEL: str = "INFO"  # DEBUG lists every rejected attempt

    # generation
    MAX_GENERATION_ATTEMPTS: int = 50
    MAX_WALK_ATTEMPTS: int = 200

    # game economy
    MAX_LIVES: int = 5
    CORRECT_REWARD: int = 10
    MISTAKE_PENALTY: int = 30

    # running sessions kept before finished ones are dropped
    MAX_SESSIONS: int = 1000

    model_config = SettingsConfigDict(
        env_file = BASE_DIR/".env",
        env_file_encoding = "utf-8",
        extra = "ignore",
    )

settings = Settings()
