"""
Shared settings for the ImagePipe service.
Controls fetch resilience, compression limits and deployment flags.
"""
import os

def env_bool(name: str, default: bool=False) -> bool:
    val = os.getenv(name, "").strip().lower()
    if val in ("1","true","yes","on"): return True
    if val in ("0","false","no","off"): return False
    return default

def env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default

class Settings:
    ENV = os.getenv("IMAGEPIPE_ENV", "").lower()  # "production" | "preview" | "development"
    DEBUG = env_bool("IMAGEPIPE_DEBUG", False)

    # Remote image fetching
    FETCH_MAX_RETRIES = env_int("IMAGE_FETCH_MAX_RETRIES", 2)
    FETCH_TIMEOUT_MS = env_int("IMAGE_FETCH_TIMEOUT_MS", 15000)
    FETCH_BACKOFF_MS = env_int("IMAGE_FETCH_BACKOFF_MS", 500)
    FETCH_USER_AGENT = os.getenv(
        "IMAGE_FETCH_USER_AGENT", "Mozilla/5.0 (compatible; ImagePipe/1.0)"
    )

    # Compression
    COMPRESS_SKIP_BELOW_BYTES = env_int("COMPRESS_SKIP_BELOW_BYTES", 50 * 1024)
    COMPRESS_MAX_INPUT_MB = env_int("COMPRESS_MAX_INPUT_MB", 25)

    # PDF embedding cannot read WebP; converted to PNG at this quality
    WEBP_TO_PNG_QUALITY = env_int("WEBP_TO_PNG_QUALITY", 90)

    ALLOWED_ORIGINS = os.getenv("IMAGEPIPE_ALLOWED_ORIGINS", "*").strip()

    @property
    def is_prod(self) -> bool:
        return self.ENV == "production"

    @property
    def allow_origins(self) -> list:
        if self.ALLOWED_ORIGINS in ("", "*"):
            return ["*"]
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

# Singleton instance
settings = Settings()
