"""Runtime settings resolved from the environment."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from quiz_room.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_room.constants.storage_constants import DEFAULT_ADMIN_CODE, DEFAULT_DATA_DIR


@dataclass(slots=True)
class AppSettings:
    """Configuration shared by the CLI and the API server."""

    data_dir: Path = Path(DEFAULT_DATA_DIR)
    admin_code: str = DEFAULT_ADMIN_CODE
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppSettings":
        port_raw = (os.getenv("QUIZROOM_PORT") or "").strip()
        try:
            port = int(port_raw) if port_raw else DEFAULT_PORT
        except ValueError as exc:
            raise ValueError(f"QUIZROOM_PORT must be an integer, got {port_raw!r}") from exc
        return cls(
            data_dir=Path((os.getenv("QUIZROOM_DATA_DIR") or DEFAULT_DATA_DIR).strip()),
            admin_code=(os.getenv("QUIZROOM_ADMIN_CODE") or DEFAULT_ADMIN_CODE).strip(),
            host=(os.getenv("QUIZROOM_HOST") or DEFAULT_HOST).strip(),
            port=port,
            log_level=(os.getenv("QUIZROOM_LOG_LEVEL") or "INFO").strip().upper(),
        )
