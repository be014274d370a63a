# app/services/sync/identifiers.py
from __future__ import annotations

import logging
import random
from typing import Any, Optional

logger = logging.getLogger(__name__)

# External ids up to this value mirror a remote user; anything above is pushed.
INBOUND_MIN_EXTERNAL_ID = 0
INBOUND_MAX_EXTERNAL_ID = 100


def parse_external_id(value: Any) -> Optional[int]:
    """Integer value of a stored external id, or None when it isn't one."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def is_inbound(external_id: Optional[int]) -> bool:
    return external_id is not None and external_id <= INBOUND_MAX_EXTERNAL_ID


def is_outbound(external_id: Optional[int]) -> bool:
    return external_id is not None and external_id > INBOUND_MAX_EXTERNAL_ID


def assign_external_id(contact, rng: random.Random | None = None) -> bool:
    """
    Give `contact` a random inbound external id if it has none.
    Returns True when a value was assigned. Never overwrites.
    """
    if contact.external_id is not None:
        return False
    rng = rng or random
    contact.external_id = str(rng.randint(INBOUND_MIN_EXTERNAL_ID, INBOUND_MAX_EXTERNAL_ID))
    logger.debug("[sync] assigned external_id=%s", contact.external_id)
    return True
