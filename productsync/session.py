import json
import logging
import os
from typing import Optional

from pydantic import ValidationError

from .models import Session

logger = logging.getLogger(__name__)


class SessionCache:
    """Keeps the signed-in session on disk so it can be read without a network call."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Optional[Session]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                return Session.model_validate(json.load(fh))
        except FileNotFoundError:
            return None
        except (ValueError, ValidationError):
            logger.warning("ignoring unreadable session file %s", self.path)
            return None

    def save(self, session: Session) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(session.model_dump(), fh)

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
