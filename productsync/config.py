import os
from dataclasses import dataclass, field

DEFAULT_BASE_URL = "http://127.0.0.1:8085"


def _default_session_file() -> str:
    return os.path.join(os.path.expanduser("~"), ".productsync", "session.json")


@dataclass(frozen=True)
class ClientConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 10.0
    session_file: str = field(default_factory=_default_session_file)
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "ClientConfig":
        return cls(
            base_url=os.getenv("PRODUCTSYNC_BASE_URL", DEFAULT_BASE_URL),
            timeout=float(os.getenv("PRODUCTSYNC_TIMEOUT", "10")),
            session_file=os.getenv("PRODUCTSYNC_SESSION_FILE") or _default_session_file(),
            log_level=os.getenv("PRODUCTSYNC_LOG_LEVEL", "WARNING").upper(),
        )
