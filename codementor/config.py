from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # REST API
    api_base_url: str = "http://localhost:4000/api"
    api_timeout: float = 15.0
    api_retry_count: int = 3

    # Persistent store: "sqlite" (default) or "memory"
    storage_backend: str = "sqlite"
    storage_path: str = "./data/codementor.db"

    # Cache
    cache_coalesce_requests: bool = False

    # Expiration policy (milliseconds)
    cache_expiry_user_data: int = 5 * 60 * 1000
    cache_expiry_user_progress: int = 10 * 60 * 1000
    cache_expiry_course_data: int = 30 * 60 * 1000
    cache_expiry_lesson_data: int = 60 * 60 * 1000
    cache_expiry_chat_history: int = 24 * 60 * 60 * 1000

    # Connectivity: "probe" (HTTP reachability check) or "static"
    connectivity_mode: str = "probe"
    connectivity_probe_url: str = "https://clients3.google.com/generate_204"
    connectivity_probe_timeout: float = 5.0
    connectivity_poll_interval: float = 30.0

    # Auth storage keys (outside the cache namespace)
    auth_token_key: str = "token"
    auth_user_key: str = "user"

    # Logging
    log_level: str = "info"

    model_config = {"env_prefix": "CODEMENTOR_", "env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
