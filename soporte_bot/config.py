from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    port: int = 3008
    log_level: str = "INFO"

    # Meta WhatsApp Cloud API
    jwt_token: str | None = None
    number_id: str | None = None
    verify_token: str | None = None
    provider_version: str = "v22.0"
    graph_api_url: str = "https://graph.facebook.com"
    http_timeout_seconds: float = 30.0

    # 0 keeps abandoned conversations forever
    session_idle_timeout_minutes: int = 0

    sample_media_urls: str = ""
    agent_number: str | None = None
    cors_allow_origins: str = "*"

    class Config:
        env_file = ".env"
        extra = "ignore"

    def sample_media(self) -> list[str]:
        return [url.strip() for url in self.sample_media_urls.split(",") if url.strip()]

    def cors_origins(self) -> list[str]:
        origins = [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]
        return origins or ["*"]


settings = Settings()
