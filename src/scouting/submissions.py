# src/scouting/submissions.py
"""
Merges submitted scouting forms into per-team documents.

Match forms land at matchscout/<team>.match<N>.<username>, pit forms at
pitscout/<team>.pitscout.submission<millis>.<username>. Every write is a
path-scoped merge so other scouts' entries on the same team survive, even
when two scouts submit at the same time.
"""
import logging
import threading
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from . import config
from .db_models import PIT_FIELD, SLOT_PREFIX, match_label, slot_millis
from .errors import BadRequest
from .store import check_path_segment

logger = logging.getLogger(__name__)

# Routing keys, plus the timestamp the server always writes itself
RESERVED_FIELDS = ("username", "matchNumber", "submissionTimestamp")


def format_timestamp(moment: datetime) -> str:
    """e.g. '03/08/2025, 02:15:09 PM' in the event's timezone."""
    local = moment.astimezone(ZoneInfo(config.SUBMISSION_TIMEZONE))
    return local.strftime("%m/%d/%Y, %I:%M:%S %p")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _require_text(value, name: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise BadRequest(f"Missing required field: {name}")
    try:
        check_path_segment(text)
    except ValueError:
        raise BadRequest(f"Invalid {name}: {text!r}")
    return text


class SubmissionMerger:
    def __init__(self, store, clock=_utc_now):
        self.store = store
        self.clock = clock
        self._slot_lock = threading.Lock()
        self._last_slot = 0

    def _stamp(self, fields, now):
        payload = {k: v for k, v in fields.items() if k not in RESERVED_FIELDS}
        payload["submissionTimestamp"] = format_timestamp(now)
        return payload

    def submit_match(self, team, match_number, username, fields):
        team = _require_text(team, "teamNumber")
        username = _require_text(username, "username")
        match_number = _require_text(match_number, "matchNumber")

        now = self.clock()
        payload = self._stamp(fields, now)
        label = match_label(match_number)

        existed = self.store.exists(config.MATCHSCOUT_COLLECTION, team)
        self.store.merge(config.MATCHSCOUT_COLLECTION, team, {(label, username): payload})

        action = "Merged into" if existed else "Created"
        logger.info(f"{action} matchscout/{team}: {label} by {username}")
        return label

    def _next_slot(self, newest_stored, now):
        """Time based, but strictly after anything stored or issued before."""
        millis = int(now.timestamp() * 1000)
        with self._slot_lock:
            millis = max(millis, newest_stored + 1, self._last_slot + 1)
            self._last_slot = millis
        return f"{SLOT_PREFIX}{millis}"

    def submit_pit(self, team, username, fields):
        team = _require_text(team, "teamNumber")
        username = _require_text(username, "username")

        now = self.clock()
        payload = self._stamp(fields, now)

        doc = self.store.get(config.PITSCOUT_COLLECTION, team)
        slots = (doc or {}).get(PIT_FIELD) or {}
        newest = max((slot_millis(k) for k in slots), default=0)
        slot = self._next_slot(newest, now)

        self.store.merge(config.PITSCOUT_COLLECTION, team, {(PIT_FIELD, slot, username): payload})

        action = "Appended to" if doc is not None else "Created"
        logger.info(f"{action} pitscout/{team}: {slot} by {username}")
        return slot
