import os

from dotenv import find_dotenv, load_dotenv

from budget_assistant.logger import get_logger

logger = get_logger(__name__)


CONFIG_FILENAME = "config.yaml"

DEFAULT_SIMULATED_LATENCY = 1.0
DEFAULT_REQUEST_TIMEOUT = 60.0
DEFAULT_CURRENCY_SYMBOL = "₹"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_MAX_SESSIONS = 500
DEFAULT_SESSION_IDLE_TIMEOUT = 1800.0

BACKEND_DETERMINISTIC = "deterministic"
BACKEND_ORCHESTRATED = "orchestrated"
PROVIDER_RELAY = "relay"
PROVIDER_OPENAI = "openai"

_CONFIG_FILE_PATH: str | None = None

_CONFIG_KEYS = (
    "LOG_LEVEL",
    "LOG_DIR",
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "ASSISTANT_BACKEND",
    "COMPLETION_PROVIDER",
    "ASSISTANT_URL",
    "ASSISTANT_TOKEN",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "SIMULATED_LATENCY",
    "CURRENCY_SYMBOL",
    "REQUEST_TIMEOUT",
    "MAX_SESSIONS",
    "SESSION_IDLE_TIMEOUT",
)


def _resolve_dotenv_path() -> str | None:
    config_dir = os.getenv("CONFIG_DIR")
    if config_dir:
        candidate = os.path.join(config_dir, ".env")
        if os.path.exists(candidate):
            return candidate
    return find_dotenv(usecwd=True) or None


def _resolve_config_path() -> str:
    config_dir = os.getenv("CONFIG_DIR") or os.getcwd()
    return os.path.join(config_dir, CONFIG_FILENAME)


def read_config_file(path: str | None) -> dict[str, str]:
    """Read flat ``KEY: value`` lines; comments and blank values are skipped."""
    if not path or not os.path.exists(path):
        return {}

    values: dict[str, str] = {}
    with open(path, encoding="utf-8") as handle:
        for line in handle:
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or ":" not in stripped:
                continue
            key, raw_value = (part.strip() for part in stripped.split(":", 1))
            if " #" in raw_value:
                raw_value = raw_value.split(" #", 1)[0].rstrip()
            if len(raw_value) >= 2 and raw_value[0] == raw_value[-1] and raw_value[0] in "'\"":
                raw_value = raw_value[1:-1]
            if key and raw_value:
                values[key] = raw_value
    return values


def load_environment() -> None:
    global _CONFIG_FILE_PATH

    dotenv_path = _resolve_dotenv_path()
    if dotenv_path:
        load_dotenv(dotenv_path=dotenv_path, override=False)

    _CONFIG_FILE_PATH = _resolve_config_path()
    file_values = read_config_file(_CONFIG_FILE_PATH)
    for key in _CONFIG_KEYS:
        if key not in os.environ and key in file_values:
            os.environ[key] = file_values[key]


def get_config_path() -> str | None:
    return _CONFIG_FILE_PATH


def get_env_str(name: str, default: str | None = None) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def get_env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("[ENV] Invalid %s='%s', using default %s.", name, raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("[ENV] %s='%s' below minimum %s, using default %s.", name, raw, min_value, default)
        return default
    return value


def get_env_float(name: str, default: float, min_value: float | None = None) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("[ENV] Invalid %s='%s', using default %.2f.", name, raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("[ENV] %s='%s' below minimum %s, using default %.2f.", name, raw, min_value, default)
        return default
    return value


_SENSITIVE_MARKERS = ("KEY", "TOKEN", "SECRET", "PASSWORD", "AUTH")


def mask_env_value(name: str, value: str) -> str:
    sanitized = value.replace("\r", "\\r").replace("\n", "\\n")
    sensitive = any(marker in name.upper() for marker in _SENSITIVE_MARKERS)
    sensitive = sensitive or sanitized.startswith(("sk-", "Bearer ", "bearer "))
    sensitive = sensitive or (sanitized.startswith("eyJ") and sanitized.count(".") == 2)
    if not sensitive:
        return sanitized
    if len(sanitized) <= 4:
        return "****"
    return f"{sanitized[:2]}...{sanitized[-2:]}"


def log_environment() -> None:
    logger.info("[ENV] Configured environment (secrets masked).")
    logger.info("[ENV] Config file: %s", get_config_path() or "Not configured")
    for key in _CONFIG_KEYS:
        raw_value = os.getenv(key)
        value = "<unset>" if raw_value is None else mask_env_value(key, raw_value)
        logger.info("[ENV] %s=%s", key, value)


def currency_symbol() -> str:
    return get_env_str("CURRENCY_SYMBOL", DEFAULT_CURRENCY_SYMBOL) or DEFAULT_CURRENCY_SYMBOL


load_environment()

LOG_DIR = os.getenv("LOG_DIR")
if LOG_DIR:
    os.makedirs(LOG_DIR, exist_ok=True)
