from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    pulse_db_url: str = "sqlite+aiosqlite:///data/pulse.db"

    # Logging
    pulse_log_level: str = "info"

    # HTTP server
    pulse_host: str = "0.0.0.0"
    pulse_port: int = 8000

    # Scheduling trigger
    pulse_cron_secret: str | None = None  # None = trigger is unauthenticated
    pulse_batch_size: int = 10
    pulse_default_interval_seconds: int = 60
    pulse_default_timeout_seconds: int = 10

    # Probe defaults
    pulse_default_dns_server: str = "1.1.1.1"
    pulse_docker_host: str = "tcp://localhost:2375"
    pulse_ping_command: str = "ping"
    pulse_http_user_agent: str = "PulseMonitor/0.1"
    pulse_ssl_expiry_warning_days: int = 30

    # Alert channels
    pulse_alert_timeout_seconds: float = 10.0
    pulse_resend_api_key: str | None = None
    pulse_resend_api_url: str = "https://api.resend.com/emails"
    pulse_email_from: str = "Pulse <alerts@pulse.local>"

    model_config = {"env_prefix": "", "case_sensitive": False, "env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
