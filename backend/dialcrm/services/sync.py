import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from dialcrm.services.calls import insert_defaults, map_dialpad_call, upsert_call
from dialcrm.services.dialpad_client import DialpadClient

logger = logging.getLogger(__name__)


def sync_calls(
    db: Session,
    client: DialpadClient,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    limit: int = 100,
) -> Dict[str, Any]:
    """Pull one page of Dialpad calls and upsert them by Dialpad call id.

    A failed fetch raises and nothing is written. A record that fails to map
    or write is logged and skipped; the rest of the page still syncs.
    """
    calls = client.list_calls(start_time=start_time, end_time=end_time, limit=limit)
    logger.info("Syncing %s calls from Dialpad", len(calls))
    processed: List[Dict[str, Any]] = []
    for call in calls:
        try:
            values = map_dialpad_call(call)
            record, action = upsert_call(db, values, defaults=insert_defaults())
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to sync Dialpad call %s", call.get("id") or call.get("call_id"))
            continue
        processed.append(
            {
                "id": record.id,
                "dialpad_call_id": record.dialpad_call_id,
                "direction": record.direction,
                "duration_seconds": record.duration_seconds,
                "status": record.status,
                "action": action,
            }
        )
    return {
        "success": True,
        "synced": len(processed),
        "total": len(calls),
        "calls": processed,
    }
