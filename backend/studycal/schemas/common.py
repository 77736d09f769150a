import uuid
from enum import Enum
from typing import Literal

GeneratedBy = Literal["manual", "auto", "recurrence"]


class SessionStatus(str, Enum):
    OPEN = "open"
    DONE = "done"


def new_session_id() -> str:
    """Session ids are minted before a row exists, so they are UUID strings."""
    return str(uuid.uuid4())
