# app/utils/ids.py
import re
import uuid

UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def is_uuid(value: str | None) -> bool:
    """Canonical 36-char form only (8-4-4-4-12 hex groups)."""
    return bool(value) and UUID_RE.fullmatch(value) is not None


def new_id() -> str:
    return str(uuid.uuid4())
