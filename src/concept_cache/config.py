import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv
from redis.asyncio import Redis

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis (durable tier)
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")
    redis_timeout: float = float(os.getenv("REDIS_TIMEOUT", "5"))

    # Cache
    cache_key_prefix: str = os.getenv("CACHE_KEY_PREFIX", "concept_cache")
    cache_capacity: int = int(os.getenv("CACHE_CAPACITY", "10000"))
    fast_tier_max_entries: int = int(os.getenv("FAST_TIER_MAX_ENTRIES", "1000"))
    fast_tier_ttl: int = int(os.getenv("FAST_TIER_TTL", "3600"))  # 1 hour default
    circuit_breaker_threshold: int = int(os.getenv("CIRCUIT_BREAKER_THRESHOLD", "5"))
    circuit_breaker_timeout: int = int(os.getenv("CIRCUIT_BREAKER_TIMEOUT", "60"))

    # Generation (Ollama)
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    generation_model_low: str = os.getenv("GENERATION_MODEL_LOW", "llama3.2:3b")
    generation_model_high: str = os.getenv("GENERATION_MODEL_HIGH", "llama3.1:8b")
    generation_timeout: float = float(os.getenv("GENERATION_TIMEOUT", "30"))
    retry_max_attempts: int = int(os.getenv("RETRY_MAX_ATTEMPTS", "3"))
    retry_base_delay: float = float(os.getenv("RETRY_BASE_DELAY", "1.0"))
    prompt_token_budget: int = int(os.getenv("PROMPT_TOKEN_BUDGET", "1024"))
    short_query_threshold: int = int(os.getenv("SHORT_QUERY_THRESHOLD", "40"))

    # Query limits
    query_min_length: int = int(os.getenv("QUERY_MIN_LENGTH", "10"))
    query_max_length: int = int(os.getenv("QUERY_MAX_LENGTH", "500"))

    # Simulation whitelist
    simulation_whitelist_path: str | None = os.getenv("SIMULATION_WHITELIST_PATH")
    # Seconds between liveness probes of whitelisted URLs (0 disables the probe)
    whitelist_probe_interval: int = int(os.getenv("WHITELIST_PROBE_INTERVAL", "0"))

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.cache_capacity < 1:
            raise ValueError("CACHE_CAPACITY must be at least 1")

        if self.retry_max_attempts < 1:
            raise ValueError("RETRY_MAX_ATTEMPTS must be at least 1")

        if self.retry_base_delay < 0:
            raise ValueError("RETRY_BASE_DELAY must not be negative")

        if not 0 < self.query_min_length <= self.query_max_length:
            raise ValueError(
                f"Query length bounds are inconsistent: "
                f"QUERY_MIN_LENGTH={self.query_min_length}, QUERY_MAX_LENGTH={self.query_max_length}"
            )

        if self.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError(f"LOG_LEVEL must be a standard logging level, got {self.log_level}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> Redis:
    """Create an async Redis client instance."""
    return Redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        socket_timeout=settings.redis_timeout,
        socket_connect_timeout=settings.redis_timeout,
        decode_responses=True,
    )
