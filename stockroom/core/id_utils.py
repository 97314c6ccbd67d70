import uuid
from datetime import datetime, timezone

import shortuuid


def generate_id() -> str:
    return str(uuid.uuid4())


def generate_short_token(length: int = 12) -> str:
    return shortuuid.ShortUUID().random(length=length)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
