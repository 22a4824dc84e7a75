from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "PackVault"
    debug: bool = False

    # postgresql+asyncpg or sqlite+aiosqlite; ensure_user rejects other dialects
    database_url: str = "postgresql+asyncpg://localhost:5432/packvault"

    bot_token: str = ""
    telegram_api_url: str = "https://api.telegram.org"
    # Checked against X-Telegram-Bot-Api-Secret-Token when set
    webhook_secret: str = ""

    # Comma-separated Telegram ids, e.g. "1001,1002"
    admin_ids: str = ""

    cooldown_minutes: int = 30
    free_pack_size: int = 5

    income_interval_minutes: int = 60
    enable_scheduler: bool = True

    @property
    def admin_id_set(self) -> frozenset[int]:
        """Parsed administrator ids. Blank or non-numeric entries are skipped."""
        ids = set()
        for part in self.admin_ids.split(","):
            part = part.strip()
            if part.lstrip("-").isdigit():
                ids.add(int(part))
        return frozenset(ids)


settings = Settings()
