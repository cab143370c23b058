# lendtrust/core/config.py
import os
import sys
import logging
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

# --- Load .env from the project root if present ---
project_root = Path(__file__).resolve().parent.parent.parent
dotenv_path = project_root / ".env"
if dotenv_path.is_file():
    logger.info(f"Loading environment variables from: {dotenv_path}")
    load_dotenv(dotenv_path=dotenv_path, override=False)
else:
    logger.debug(f".env file not found at {dotenv_path}. Relying on system environment variables.")


# --- Intercept handler (stdlib logging -> Loguru) ---
class InterceptHandler(logging.Handler):
    """Routes records from the standard logging module into Loguru."""
    def emit(self, record: logging.LogRecord) -> None:
        try: level = logger.level(record.levelname).name
        except ValueError: level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging():
    """Configure Loguru sinks and hijack uvicorn/fastapi loggers."""
    log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )
    log_file_path = Path(os.getenv("LOG_FILE_PATH", "logs/lendtrust_{time:YYYY-MM-DD}.log"))
    log_rotation = os.getenv("LOG_ROTATION", "1 day")
    log_retention = os.getenv("LOG_RETENTION", "7 days")
    log_serialize = os.getenv("LOG_SERIALIZE", "False").lower() == "true"

    logger.remove()
    logger.add(sys.stderr, level=log_level_name, format=log_format, colorize=True)

    try:
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file_path,
            level=log_level_name,
            format=log_format,
            rotation=log_rotation,
            retention=log_retention,
            serialize=log_serialize,
            enqueue=True,
            backtrace=True,
            diagnose=False,
            encoding="utf-8",
        )
        logger.info(f"File logging enabled at: {log_file_path}")
    except Exception as e:
        logger.error(f"Failed to setup file logging at {log_file_path}: {e}")

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in list(logging.root.manager.loggerDict):
        if name.startswith(("uvicorn", "fastapi", "starlette", "apscheduler")):
            std_logger = logging.getLogger(name)
            std_logger.handlers = [InterceptHandler()]
            std_logger.propagate = False

    logger.info(f"Loguru logging setup complete. Level: {log_level_name}")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}. Using default: {default}.")
        return default


# --- JWT Configuration ---
SECRET_KEY: str = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    logger.critical("FATAL: SECRET_KEY environment variable is not set.")
    raise ValueError("SECRET_KEY environment variable is not set.")

ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES: int = _int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60)

# --- Storage Configuration ---
STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "mongo").lower()
if STORAGE_BACKEND not in ("mongo", "memory"):
    logger.critical(f"FATAL: unknown STORAGE_BACKEND '{STORAGE_BACKEND}'.")
    raise ValueError("STORAGE_BACKEND must be 'mongo' or 'memory'.")

MONGODB_URL: str = os.getenv("MONGODB_URL", "")
if STORAGE_BACKEND == "mongo" and not MONGODB_URL:
    logger.critical("FATAL: MONGODB_URL environment variable is not set.")
    raise ValueError("MONGODB_URL environment variable is not set.")

_default_db_name = "lendtrust"
try:
    path_part = MONGODB_URL.split("/")[-1].split("?")[0]
    if path_part and MONGODB_URL.count("/") >= 3: _default_db_name = path_part
except Exception: pass
DATABASE_NAME: str = os.getenv("DATABASE_NAME", _default_db_name)

# --- Lending rules ---
MAX_NEGOTIATION_ROUNDS: int = _int_env("MAX_NEGOTIATION_ROUNDS", 3)
DUE_SOON_DEFAULT_DAYS: int = _int_env("DUE_SOON_DEFAULT_DAYS", 3)
REMINDER_WINDOW_DAYS: int = _int_env("REMINDER_WINDOW_DAYS", 1)
REMINDER_INTERVAL_MINUTES: int = _int_env("REMINDER_INTERVAL_MINUTES", 60)
ACTIVITY_LIMIT_PER_USER: int = _int_env("ACTIVITY_LIMIT_PER_USER", 100)

logger.info(f"JWT Algorithm: {ALGORITHM}")
logger.info(f"Storage backend: {STORAGE_BACKEND}")
if STORAGE_BACKEND == "mongo": logger.info(f"Database Name: {DATABASE_NAME}")
