from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RENDEZVOUS_", env_file=".env", extra="ignore", populate_by_name=True
    )

    # Coordination service
    coordination_backend: str = "zookeeper"  # zookeeper or memory
    zk_hosts: str = Field(default="127.0.0.1:2181", validation_alias="ZK_HOSTS")
    zk_session_timeout: float = Field(default=10.0, validation_alias="ZK_SESSION_TIMEOUT")
    zk_connect_timeout: float = Field(default=15.0, validation_alias="ZK_CONNECT_TIMEOUT")

    # Barrier
    barrier_path: str = "/barrier"
    participant_count: int = Field(default=50, ge=1)
    participant_value: float | None = None
    node_prefix: str = "participant-"

    # Seconds to wait after passing before the session is closed
    exit_delay: float = Field(default=2.0, ge=0)

    # Origin identifier embedded in every payload
    repository: str | None = Field(default=None, validation_alias="GITHUB_REPOSITORY")

    # Observability
    log_level: str = "INFO"
    log_json: bool = False


settings = Settings()
