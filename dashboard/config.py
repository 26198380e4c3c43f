from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    mixpanel_api_secret: str = ""
    mixpanel_export_url: str = "https://data.mixpanel.com/api/2.0/export"
    mixpanel_timeout_seconds: float = 60.0

    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379

    cache_ttl_seconds: int = 300

    email_stats_url: str = ""
    email_stats_token: str = ""
    email_stats_timeout_seconds: float = 25.0

    rate_limit_per_minute: int = 1000

    class Config:
        env_file = ".env"


settings = Settings()
