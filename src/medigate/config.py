import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()


def _split_keys(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated credential list, dropping blanks."""
    if not raw:
        return ()
    return tuple(key.strip() for key in raw.split(",") if key.strip())


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Cache
    cache_backend: str = os.getenv("CACHE_BACKEND", "memory")  # memory | redis | none
    cache_ttl: int = int(os.getenv("CACHE_TTL", "3600"))
    cache_max_entries: int = int(os.getenv("CACHE_MAX_ENTRIES", "100"))
    cache_sweep_interval: int = int(os.getenv("CACHE_SWEEP_INTERVAL", "300"))
    clinicaltrials_cache_ttl: int = int(os.getenv("SEARCH_CACHE_TTL_CLINICALTRIALS", "3600"))
    brave_cache_ttl: int = int(os.getenv("SEARCH_CACHE_TTL_BRAVE", "900"))

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # ClinicalTrials.gov
    clinicaltrials_base_url: str = os.getenv(
        "CLINICALTRIALS_BASE_URL", "https://clinicaltrials.gov/api/v2/studies"
    )
    clinicaltrials_mirror_url: str | None = os.getenv("CLINICALTRIALS_MIRROR_URL") or None

    # Brave Search (BRAVE_API_KEYS takes precedence over the single key)
    brave_base_url: str = os.getenv(
        "BRAVE_BASE_URL", "https://api.search.brave.com/res/v1/web/search"
    )
    brave_api_keys: tuple[str, ...] = _split_keys(
        os.getenv("BRAVE_API_KEYS") or os.getenv("BRAVE_API_KEY")
    )

    # ElevenLabs
    elevenlabs_base_url: str = os.getenv(
        "ELEVENLABS_BASE_URL", "https://api.elevenlabs.io/v1/text-to-speech"
    )
    elevenlabs_api_key: str | None = os.getenv("ELEVENLABS_API_KEY")
    elevenlabs_model: str = os.getenv("ELEVENLABS_MODEL", "eleven_multilingual_v2")
    voice_host: str = os.getenv("VOICE_HOST", "wyWA56cQNU2KqUW4eCsI")
    voice_expert: str = os.getenv("VOICE_EXPERT", "uYXf8XasLslADfZ2MB4u")
    voice_fallback: str = os.getenv("VOICE_FALLBACK", "21m00Tcm4TlvDq8ikWAM")
    tts_max_chars: int = int(os.getenv("TTS_MAX_CHARS", "5000"))

    # Timeouts (seconds)
    upstream_timeout: float = float(os.getenv("UPSTREAM_TIMEOUT", "15"))
    tts_timeout: float = float(os.getenv("TTS_TIMEOUT", "60"))

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "false").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def voices(self) -> dict[str, str]:
        """Speaker role to ElevenLabs voice ID."""
        return {"host": self.voice_host, "expert": self.voice_expert}

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.cache_backend not in ("memory", "redis", "none"):
            raise ValueError(
                f"CACHE_BACKEND must be one of memory, redis, none; got {self.cache_backend!r}"
            )

        for name in ("cache_ttl", "clinicaltrials_cache_ttl", "brave_cache_ttl"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be a positive number of seconds")

        if self.cache_max_entries < 1:
            raise ValueError("CACHE_MAX_ENTRIES must be at least 1")

        if self.cache_sweep_interval < 1:
            raise ValueError("CACHE_SWEEP_INTERVAL must be at least 1 second")

        if self.tts_max_chars < 1:
            raise ValueError("TTS_MAX_CHARS must be at least 1")

        if self.upstream_timeout <= 0 or self.tts_timeout <= 0:
            raise ValueError("UPSTREAM_TIMEOUT and TTS_TIMEOUT must be positive")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create a Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=False,
    )
