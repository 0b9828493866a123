from pathlib import Path
from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    database_url: str = f"sqlite:///{BASE_DIR / 'conjuga.db'}"
    log_dir: Path = BASE_DIR / "data" / "logs"

    default_level: str = "A1"
    default_region: str = "la_general"
    enable_futuro_subj_prod: bool = False
    enable_c2_conmutacion: bool = True
    regular_ratio: float = 0.3
    clitics_percent: int = 0

    cache_max_size: int = 500
    cache_ttl_seconds: float = 600.0

    model_config = {"env_file": [BASE_DIR / ".env", BASE_DIR.parent / ".env"], "extra": "ignore"}


settings = Settings()
