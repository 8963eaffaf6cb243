"""Fire-and-forget domain notifications.

Events are pushed as JSON onto a Redis list (``settings.notification_channel``)
for the external delivery worker (push / SMS / email).  Routers schedule
``publish`` with FastAPI ``BackgroundTasks`` so it runs after the response
and after the request's transaction has committed; a failure here is
logged and never reaches the core transaction.

Events:
    inspection.submitted   {"inspection_id", "farm_id", "vendor_id", "estimated_boxes"}
    inspection.approved    {"inspection_id", "batch_id", "batch_code", "vendor_id"}
    inspection.rejected    {"inspection_id", "vendor_id", "reason"}
    gate_pass.created      {"gate_pass_id", "gate_pass_no", "batch_id", "total_boxes"}
    gate_pass.received     {"gate_pass_id", "gate_pass_no", "received_boxes", "shortage"}
"""

import json
import logging
from datetime import datetime

from app.config import settings
from app.utils.cache import get_redis

logger = logging.getLogger("bananatrack.notifications")


async def publish(event: str, payload: dict) -> bool:
    """Queue a notification; returns False (after logging) if it could not be queued."""
    if not settings.notifications_enabled:
        logger.debug("Notifications disabled, dropping %s", event)
        return False

    message = json.dumps(
        {"event": event, "payload": payload, "sent_at": datetime.utcnow().isoformat()},
        default=str,
    )
    try:
        redis_client = await get_redis()
        await redis_client.rpush(settings.notification_channel, message)
    except Exception:
        logger.exception("Failed to publish notification %s", event)
        return False

    logger.info("Published notification %s", event)
    return True
