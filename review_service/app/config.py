import os
from dataclasses import dataclass, field
from dotenv import load_dotenv
load_dotenv()

# --- Book review constraints ---
TITLE_MAX = 200
FOCUS_MAX = 500
TARGET_CHAR_COUNT = 400
MIN_CHAR_COUNT = 380
MAX_CHAR_COUNT = 420

# --- Gemini generation settings ---
GEMINI_MODEL = "gemini-2.5-flash"
TEMPERATURE = 0.9
TOP_P = 0.95
TOP_K = 40
MAX_OUTPUT_TOKENS = 1024

DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


class ConfigurationError(Exception):
    """Raised at startup when the environment cannot run the service."""

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str
    environment: str = "production"
    port: int = 3000
    allowed_origins: list[str] = field(default_factory=lambda: list(DEFAULT_ORIGINS))
    static_dir: str = "public"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


def origins_from_env(env=None) -> list[str]:
    env = os.environ if env is None else env
    origins_env = env.get("ALLOWED_ORIGINS")
    if origins_env:
        return [o.strip() for o in origins_env.split(",") if o.strip()]
    return list(DEFAULT_ORIGINS)


def static_dir_from_env(env=None) -> str:
    env = os.environ if env is None else env
    return env.get("STATIC_DIR") or "public"


def load_settings(env: dict | None = None) -> Settings:
    """
    Build Settings from the environment (or an explicit mapping).
    Raises ConfigurationError instead of exiting so the host decides what to do.
    """
    env = os.environ if env is None else env

    api_key = (env.get("GEMINI_API_KEY") or "").strip()
    if not api_key:
        raise ConfigurationError(
            "GEMINI_API_KEY is not set in environment variables",
            missing=["GEMINI_API_KEY"],
        )

    raw_port = env.get("PORT") or "3000"
    try:
        port = int(raw_port)
    except ValueError:
        raise ConfigurationError(f"PORT must be an integer, got {raw_port!r}")

    return Settings(
        gemini_api_key=api_key,
        environment=(env.get("APP_ENV") or "production").strip(),
        port=port,
        allowed_origins=origins_from_env(env),
        static_dir=static_dir_from_env(env),
    )
