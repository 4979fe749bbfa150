from __future__ import annotations

import os
from pathlib import Path
from typing import List


class Settings:
    """Centralized configuration for the diet planner backend."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        data_root_default = repo_root / "data"

        self.data_root: Path = Path(
            os.environ.get("DIETPLANNER_DATA_ROOT") or data_root_default
        ).expanduser()
        self.db_path: Path = Path(
            os.environ.get("DIETPLANNER_DB_PATH") or (self.data_root / "dietplanner.db")
        ).expanduser()

        # ---- Metrics ----
        self.store_timeout: float = float(os.environ.get("DIETPLANNER_STORE_TIMEOUT") or "5")
        self.growth_months: int = int(os.environ.get("DIETPLANNER_GROWTH_MONTHS") or "6")

        # ---- Auth ----
        # In production you MUST set DIETPLANNER_JWT_SECRET.
        self.jwt_secret: str = os.environ.get("DIETPLANNER_JWT_SECRET") or "dev-secret-change-me"
        self.token_ttl_days: int = int(os.environ.get("DIETPLANNER_TOKEN_TTL_DAYS") or "7")
        self.cookie_secure: bool = (os.environ.get("DIETPLANNER_COOKIE_SECURE") or "").strip() in {"1", "true", "True"}

        # ---- Server ----
        self.log_level: str = (os.environ.get("DIETPLANNER_LOG_LEVEL") or "INFO").upper()
        self.host: str = os.environ.get("DIETPLANNER_HOST") or "127.0.0.1"
        self.port_raw: str = os.environ.get("DIETPLANNER_PORT") or "5000"

        cors = os.environ.get("DIETPLANNER_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()
