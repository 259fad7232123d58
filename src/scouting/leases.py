# src/scouting/leases.py
"""
Claim buttons: one scout at a time may claim a team/match to scout it.

A claim is either unclaimed (the default when no document exists) or claimed
by a holder. Only the holder can release it. Every transition is written with
a compare-and-set against the state that was read, so two scouts pressing the
button at the same moment can't both end up holding it.
"""
import logging
from datetime import datetime, timezone

from . import config
from .db_models import STATUS_CLAIMED, STATUS_UNCLAIMED, lease_key
from .errors import BadRequest, Conflict, Forbidden
from .submissions import format_timestamp

logger = logging.getLogger(__name__)

# Re-reads allowed when the claim changes between our read and our write
MAX_TOGGLE_ATTEMPTS = 5

_LEASE_FIELDS = ("status", "holder", "claimedAt")


def _utc_now():
    return datetime.now(timezone.utc)


def _require_id(value, name):
    # "_" separates team from match in the claim key, so neither may contain it
    text = str(value).strip() if value is not None else ""
    if not text or "_" in text:
        raise BadRequest(f"Invalid {name}: {text!r}")
    return text


def _status_view(doc):
    if not doc:
        return {"status": STATUS_UNCLAIMED, "holder": None}
    return {"status": doc.get("status", STATUS_UNCLAIMED), "holder": doc.get("holder")}


class LeaseManager:
    def __init__(self, store, clock=_utc_now):
        self.store = store
        self.clock = clock

    def get_status(self, team, match_number):
        team = _require_id(team, "teamNumber")
        match_number = _require_id(match_number, "matchNumber")
        doc = self.store.get(config.BUTTON_COLLECTION, lease_key(team, match_number))
        return _status_view(doc)

    def list_statuses(self, match_number):
        """Claim state of every team that has a claim document for this match."""
        match_number = _require_id(match_number, "matchNumber")
        docs = self.store.find(config.BUTTON_COLLECTION, {"matchNumber": match_number})
        statuses = [{"teamNumber": doc.get("teamNumber", key), **_status_view(doc)} for key, doc in docs]
        statuses.sort(key=lambda s: s["teamNumber"])
        return statuses

    def _next_state(self, team, match_number, current, username):
        base = {"teamNumber": team, "matchNumber": match_number}
        if current is None or current.get("status") != STATUS_CLAIMED:
            return {**base, "status": STATUS_CLAIMED, "holder": username,
                    "claimedAt": format_timestamp(self.clock())}

        holder = current.get("holder")
        if holder != username:
            logger.warning(f"{username} tried to toggle {team}/match{match_number} held by {holder}")
            raise Forbidden(f"Match is already being scouted by {holder}")
        return {**base, "status": STATUS_UNCLAIMED, "holder": None, "claimedAt": None}

    def toggle(self, team, match_number, username):
        username = str(username).strip() if username is not None else ""
        if not username:
            raise BadRequest("Missing required field: username")
        team = _require_id(team, "teamNumber")
        match_number = _require_id(match_number, "matchNumber")
        key = lease_key(team, match_number)

        for attempt in range(1, MAX_TOGGLE_ATTEMPTS + 1):
            current = self.store.get(config.BUTTON_COLLECTION, key)
            new_state = self._next_state(team, match_number, current, username)
            expected = None if current is None else {f: current.get(f) for f in _LEASE_FIELDS}

            if self.store.compare_and_set(config.BUTTON_COLLECTION, key, expected, new_state):
                logger.info(f"{team}/match{match_number} is now {new_state['status']} ({username})")
                return _status_view(new_state)

            logger.info(f"Claim {key} changed during toggle by {username}, re-reading (attempt {attempt})")

        raise Conflict(f"Claim for team {team} match {match_number} is changing too quickly, try again")
