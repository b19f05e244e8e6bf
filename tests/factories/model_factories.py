"""
Randomized model factories.

Every factory call generates randomized non-identity fields
(timestamps, incident numbers, browser names) so tests cannot
rely on specific default values.
"""

import random
import uuid
from datetime import datetime, timezone, timedelta


def _random_incident_id() -> str:
    """Incident numbers in the portal are 9 digits."""
    return str(random.randint(100_000_000, 999_999_999))


def _random_timestamp() -> datetime:
    """Generate random timestamp within the last day."""
    offset = random.randint(0, 24 * 3600)
    return datetime.now(timezone.utc) - timedelta(seconds=offset)


def make_run_status(run_id: str = None, state=None, **overrides):
    """
    Build RunStatus field data with randomized non-identity fields.

    Args:
        run_id: Optional fixed run ID (uuid4 if None)
        state: Optional fixed RunState
        **overrides: Any field override (snake_case names)

    Returns:
        dict suitable for RunStatus(**result)
    """
    from core.models.enums import RunState

    created = _random_timestamp()
    base = {
        "run_id": run_id or str(uuid.uuid4()),
        "incident_id": _random_incident_id(),
        "state": state or RunState.QUEUED,
        "created_at": created,
        "enqueued_at": created,
        "updated_at": created,
        "browser_name": random.choice([None, "edge", "chrome"]),
        "timeout_ms": random.choice([None, 60_000, 540_000]),
    }
    base.update(overrides)
    return base


def make_queue_message(run_id: str = None, **overrides):
    """
    Build a run queue payload using the wire (camelCase) keys.

    Returns:
        dict suitable for json.dumps and RunQueueMessage.model_validate
    """
    base = {
        "runId": run_id or str(uuid.uuid4()),
        "incidentId": _random_incident_id(),
        "enqueuedAt": _random_timestamp().isoformat(),
    }
    if random.random() < 0.5:
        base["browserName"] = random.choice(["edge", "chrome"])
    base.update(overrides)
    return base
