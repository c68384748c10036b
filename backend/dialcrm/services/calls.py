from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from dialcrm.core.clock import parse_timestamp, utcnow
from dialcrm.core.errors import CallNotFoundError, ConfigurationError
from dialcrm.models import CallRecord

STATUS_MAP = {
    "calling": "initiated",
    "initiated": "initiated",
    "ringing": "ringing",
    "preanswer": "ringing",
    "connected": "in_progress",
    "hold": "in_progress",
    "hangup": "completed",
    "completed": "completed",
    "missed": "missed",
    "abandoned": "missed",
    "voicemail": "voicemail",
    "voicemail_uploaded": "voicemail",
}

INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


PROVIDER_FIELDS = (
    ("caller_number", "from_number"),
    ("callee_number", "to_number"),
    ("recording_url", "recording_url"),
    ("transcript", "transcript"),
)


def normalize_direction(value: Optional[str]) -> str:
    if value and str(value).lower().startswith("in"):
        return "inbound"
    return "outbound"


def normalize_status(value: Optional[str], default: Optional[str] = None) -> Optional[str]:
    if not value:
        return default
    key = str(value).lower()
    return STATUS_MAP.get(key, key)


def derive_outcome(status: Optional[str]) -> str:
    if status == "completed":
        return "answered"
    if status == "voicemail":
        return "voicemail"
    return "no answer"


def outbound_type_for(direction: str) -> str:
    return "cold call" if direction == "outbound" else "inbound"


def extract_call_id(call: Dict[str, Any]) -> Optional[str]:
    value = call.get("id") or call.get("call_id")
    return str(value) if value else None


def map_dialpad_call(call: Dict[str, Any], default_status: Optional[str] = None) -> Dict[str, Any]:
    """Translate a Dialpad call object into ``CallRecord`` column values.

    Only fields the payload actually carries are returned, so an upsert never
    blanks a column another delivery filled in. Dialpad reports durations in
    milliseconds; they are floored to seconds.
    """
    values: Dict[str, Any] = {"dialpad_call_id": extract_call_id(call), "dialpad_metadata": call}
    if call.get("direction") is not None:
        direction = normalize_direction(call["direction"])
        values["direction"] = direction
        values["outbound_type"] = outbound_type_for(direction)
    status = normalize_status(call.get("state"), default_status)
    if status is not None:
        values["status"] = status
        values["outcome"] = derive_outcome(status)
    if call.get("duration") is not None:
        values["duration_seconds"] = int(float(call["duration"]) // 1000)
    for column, key in PROVIDER_FIELDS:
        if call.get(key) is not None:
            values[column] = call[key]
    contact = call.get("contact") if isinstance(call.get("contact"), dict) else {}
    contact_id = call.get("contact_id") or contact.get("id")
    if contact_id:
        values["dialpad_contact_id"] = str(contact_id)
    started = parse_timestamp(call.get("started_at") or call.get("date_started"))
    if started is not None:
        values["call_timestamp"] = started
    return values


def insert_defaults(stamp_now: bool = False) -> Dict[str, Any]:
    """Column values used only when a call is first inserted.

    ``stamp_now`` fills ``call_timestamp`` for webhook deliveries, which
    sometimes omit the start time.
    """
    defaults: Dict[str, Any] = {
        "direction": "outbound",
        "outbound_type": outbound_type_for("outbound"),
        "outcome": derive_outcome(None),
        "duration_seconds": 0,
    }
    if stamp_now:
        defaults["call_timestamp"] = utcnow()
    return defaults


def dialect_insert(db: Session):
    """Return the ``insert`` construct that supports ON CONFLICT for this bind."""
    dialect = db.get_bind().dialect.name
    insert = INSERTS.get(dialect)
    if insert is None:
        raise ConfigurationError(f"Unsupported database dialect for upsert: {dialect}")
    return insert


def upsert_call(
    db: Session,
    values: Dict[str, Any],
    update_keys: Optional[Iterable[str]] = None,
    defaults: Optional[Dict[str, Any]] = None,
) -> Tuple[CallRecord, str]:
    """Insert or update a call keyed on ``dialpad_call_id`` in one statement.

    ``defaults`` fill the inserted row only. On conflict every column in
    ``values`` is overwritten unless ``update_keys`` narrows it. Returns the
    record and ``"created"`` or ``"updated"``. The caller owns the
    transaction.
    """
    row = {**(defaults or {}), **values}
    if not values.get("dialpad_call_id"):
        record = CallRecord(**row)
        db.add(record)
        db.flush()
        return record, "created"
    now = utcnow()
    stmt = dialect_insert(db)(CallRecord).values(**row, revision=1, updated_at=now)
    keys = values.keys() if update_keys is None else update_keys
    changes = {key: stmt.excluded[key] for key in keys if key != "dialpad_call_id"}
    changes["revision"] = CallRecord.revision + 1
    changes["updated_at"] = now
    stmt = stmt.on_conflict_do_update(
        index_elements=[CallRecord.dialpad_call_id],
        set_=changes,
    ).returning(CallRecord.id, CallRecord.revision)
    result = db.execute(stmt).one()
    record = db.get(CallRecord, result.id, populate_existing=True)
    return record, "created" if result.revision == 1 else "updated"


def get_call(db: Session, call_id: int) -> CallRecord:
    record = db.get(CallRecord, call_id)
    if not record:
        raise CallNotFoundError("Call not found", details={"call_id": call_id})
    return record


def record_outbound_call(
    db: Session,
    rep_id: int,
    call: Dict[str, Any],
    to_number: str,
    from_number: str,
    contact_id: Optional[str] = None,
    deal_id: Optional[str] = None,
) -> Optional[CallRecord]:
    """Log a call placed from the CRM so later webhooks land on the same row.

    Only the CRM links are written when the row already exists; the provider
    owns status and duration.
    """
    dialpad_call_id = extract_call_id(call)
    if not dialpad_call_id:
        return None
    values = {
        "dialpad_call_id": dialpad_call_id,
        "direction": "outbound",
        "caller_number": from_number,
        "callee_number": to_number,
        "status": "initiated",
        "outcome": "no answer",
        "outbound_type": outbound_type_for("outbound"),
        "related_contact_id": contact_id,
        "related_deal_id": deal_id,
        "rep_id": rep_id,
        "call_timestamp": utcnow(),
        "dialpad_metadata": call,
    }
    record, _ = upsert_call(db, values, update_keys=("related_contact_id", "related_deal_id", "rep_id"))
    db.commit()
    return record
