"""First Bank of Pig server configuration."""

import secrets
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    server_name: str = "First Bank of Pig"
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False

    # Paths
    data_dir: Path = Path.home() / "fbop" / "data"

    # Database
    db_path: Path = Path.home() / "fbop" / "data" / "fbop.db"

    # Device-local config (parent/kid mode)
    local_config_path: Path = Path.home() / "fbop" / "data" / "config.json"

    # JWT session tokens
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 30  # 30 days

    # Federated sign-in (ID tokens issued by the identity provider)
    federated_token_secret: str = ""
    federated_token_audience: str = "first-bank-of-pig"

    # Codes
    code_alphabet: str = "ABCDEFGHJKMNPQRSTWXYZ23456789"
    invite_code_length: int = 8
    lookup_code_length: int = 8
    invite_expire_seconds: int = 24 * 60 * 60  # 24 hours
    lookup_expire_seconds: int = 60 * 60  # 1 hour

    # Expired code cleanup
    cleanup_enabled: bool = True
    cleanup_limit: int = 500
    cleanup_day_of_week: str = "sun"
    cleanup_hour: int = 3
    cleanup_minute: int = 0

    model_config = {"env_prefix": "FBOP_"}

    def ensure_dirs(self) -> None:
        """Create all required directories."""
        for d in [self.data_dir, self.db_path.parent, self.local_config_path.parent]:
            d.mkdir(parents=True, exist_ok=True)

    def ensure_secrets(self) -> None:
        """Generate secrets if not set, persist to file so they survive restarts."""
        secrets_file = self.data_dir / ".secrets"
        saved = {}
        if secrets_file.exists():
            for line in secrets_file.read_text().strip().splitlines():
                if "=" in line:
                    k, v = line.split("=", 1)
                    saved[k.strip()] = v.strip()

        if not self.jwt_secret:
            self.jwt_secret = saved.get("jwt_secret", "") or secrets.token_urlsafe(32)
        if not self.federated_token_secret:
            self.federated_token_secret = (
                saved.get("federated_token_secret", "") or secrets.token_urlsafe(32)
            )

        # Persist for next restart
        secrets_file.write_text(
            f"jwt_secret={self.jwt_secret}\n"
            f"federated_token_secret={self.federated_token_secret}\n"
        )


settings = Settings()
settings.ensure_dirs()
settings.ensure_secrets()
