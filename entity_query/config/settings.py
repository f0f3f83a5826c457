"""
Service settings, read once from the environment (or ``.env``).

Engine modules never read these directly; ``wiring.bootstrap`` passes the
relevant values in as plain arguments.
"""
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Entity query service configuration."""

    # Document store
    database_url: str = "sqlite:///./entity_query.db"
    sql_echo: bool = False  # Log every SQL statement

    # HTTP
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: str = "http://localhost:5173,http://localhost:3000"
    log_level: str = "INFO"

    # Pagination (entities may narrow these in their FilterConfig)
    default_page_limit: int = 20
    max_page_limit: int = 100

    # Request limits for client-supplied filters
    max_filters: int = 50
    max_filter_value_length: int = 1000

    # Deadline for the store calls of one use case
    query_timeout_seconds: float = 30.0

    @property
    def cors_origins_list(self) -> List[str]:
        """Comma-separated ``cors_origins`` as a list, blanks dropped."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
