from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import computed_field

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    # Application
    app_env: str = "development"
    app_port: int = 8080
    log_level: str = "INFO"

    # Filename sequencing
    match_expression: str = "[0-9]+"

    # Storage backend
    storage_type: str = "s3"  # "s3" or "local", resolved by get_storage_backend()
    local_storage_path: str = "./data"

    # Object Storage (S3-compatible)
    object_store_endpoint: str = ""
    object_store_access_key: str = ""
    object_store_secret_key: str = ""
    object_store_bucket: str = "source-proxy"
    object_store_region: str = "us-east-1"
    object_store_use_ssl: bool = False

    # Access control
    policy_file: str = "policy.json"

    # Uploads above this size spill from memory to disk while spooling
    spool_max_memory: int = 8 * 1024 * 1024

    # Observability
    otel_exporter: str = "console"
    otel_service_name: str = "source-proxy"
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"

    @computed_field
    @property
    def is_production(self) -> bool:
        """True when running with APP_ENV=production."""
        return self.app_env.lower() == "production"

settings = Settings()
