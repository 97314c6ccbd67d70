import time

from stockroom.core.config import settings
from stockroom.core.id_utils import generate_short_token


def current_epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def synthesize_reference(prefix: str, *, suffix_length: int | None = None) -> str:
    """
    ``{PREFIX}-{epoch millis}`` plus an optional random suffix.

    With a zero-length suffix two submissions in the same millisecond produce
    the same reference and the second insert fails the unique constraint.
    """
    length = settings.reference_random_suffix_length if suffix_length is None else suffix_length
    reference = f"{prefix}-{current_epoch_millis()}"
    if length > 0:
        reference = f"{reference}-{generate_short_token(length).upper()}"
    return reference
