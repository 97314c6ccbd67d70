"""
Explicit lifecycle hooks.

Writers call ``hooks.emit(...)`` themselves so the side effects stay visible in
the write path:

- ``row_updated``: emitted by the data gateway before flushing an update.
  The registered stamper refreshes ``updated_at`` on rows that carry it.
- ``identity_created``: emitted by the identity service right after a new
  identity is flushed. The registered provisioner inserts its profile.

Handlers run synchronously inside the caller's transaction. An exception in a
handler propagates, so the caller rolls the whole unit of work back.
"""

import json
import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from sqlalchemy.orm import Session

from stockroom.core.id_utils import utcnow
from stockroom.models.identity import Identity, Profile

logger = logging.getLogger("stockroom.api")

ROW_UPDATED = "row_updated"
IDENTITY_CREATED = "identity_created"

Handler = Callable[[Session, Any], None]


class LifecycleHooks:
    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def register(self, event: str, handler: Handler) -> Handler:
        self._handlers[event].append(handler)
        return handler

    def handlers(self, event: str) -> list[Handler]:
        return list(self._handlers.get(event, ()))

    def emit(self, event: str, db: Session, target: Any) -> None:
        for handler in self.handlers(event):
            handler(db, target)


def stamp_updated_at(db: Session, row: Any) -> None:
    if hasattr(type(row), "updated_at"):
        row.updated_at = utcnow()


def provision_profile(db: Session, identity: Identity) -> Profile:
    # Runs elevated: the new identity cannot pass the profiles policies yet.
    metadata = identity.raw_user_meta_data or {}
    full_name = metadata.get("full_name")
    profile = Profile(
        id=identity.id,
        full_name=str(full_name) if full_name is not None else "",
        email=identity.email,
    )
    db.add(profile)
    db.flush()
    logger.info(json.dumps({"event": "profile_provisioned", "user_id": identity.id}))
    return profile


hooks = LifecycleHooks()
hooks.register(ROW_UPDATED, stamp_updated_at)
hooks.register(IDENTITY_CREATED, provision_profile)
