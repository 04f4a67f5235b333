import os
from typing import List, Optional


class Settings:
    def __init__(self, **overrides) -> None:
        env = os.environ.get
        self.db_file: str = env("LINKSAVER_DB_FILE", "db.json")
        self.jwt_secret: Optional[str] = env("LINKSAVER_JWT_SECRET")
        self.token_ttl_minutes: int = int(env("LINKSAVER_TOKEN_TTL_MINUTES", "60"))
        self.page_fetch_timeout: float = float(env("LINKSAVER_PAGE_FETCH_TIMEOUT", "5"))
        self.summary_timeout: float = float(env("LINKSAVER_SUMMARY_TIMEOUT", "60"))
        self.summary_endpoint: str = env(
            "LINKSAVER_SUMMARY_ENDPOINT", "https://r.jina.ai/http://"
        )
        self.summary_max_chars: int = int(env("LINKSAVER_SUMMARY_MAX_CHARS", "500"))
        self.cors_origins: List[str] = [
            o.strip() for o in env("LINKSAVER_CORS_ORIGINS", "*").split(",") if o.strip()
        ]
        self.frontend_dir: str = env("LINKSAVER_FRONTEND_DIR", "frontend")
        self.log_level: str = env("LINKSAVER_LOG_LEVEL", "INFO").upper()

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise TypeError(f"Unknown setting: {key}")
            setattr(self, key, value)
