import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    draw_max_attempts: int
    draw_deadline_seconds: float
    log_level: str
    log_path: str


def _read_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}.") from None


def _read_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}.") from None


def load_settings() -> Settings:
    draw_max_attempts = _read_int("DRAW_MAX_ATTEMPTS", 20)
    draw_deadline_seconds = _read_float("DRAW_DEADLINE_SECONDS", 5.0)
    log_level = os.getenv("LOG_LEVEL", "INFO")
    log_path = os.getenv("LOG_PATH", "logs/santadraw.log")

    if draw_max_attempts < 1:
        raise ValueError("DRAW_MAX_ATTEMPTS must be at least 1.")
    if draw_deadline_seconds <= 0:
        raise ValueError("DRAW_DEADLINE_SECONDS must be positive.")

    return Settings(
        draw_max_attempts=draw_max_attempts,
        draw_deadline_seconds=draw_deadline_seconds,
        log_level=log_level,
        log_path=log_path,
    )
