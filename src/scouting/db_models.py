# src/scouting/db_models.py
# --- Document shapes for the scouting collections ---
import re
from typing import Dict, Optional, Union

Scalar = Union[str, int, float, bool, None]
# Flat form fields; grouped checkboxes (scoringPositions) are one level deep
FormPayload = Dict[str, Union[Scalar, Dict[str, Scalar]]]

MATCH_PREFIX = "match"
PIT_FIELD = "pitscout"
SLOT_PREFIX = "submission"

STATUS_UNCLAIMED = "unclaimed"
STATUS_CLAIMED = "claimed"

# 1. MATCHSCOUT Collection, one document per team (_id = team number)
# Each scout's form for a match sits under its own username, so several
# scouts on the same team/match never overwrite each other.
MATCHSCOUT_SCHEMA = {
    "_id": "Team number (e.g., 1678)",
    "match12": {
        "scout_a": {
            "autoL1Scores": 2,
            "teleopNetAlgaeScores": 4,
            "climbLevel": "Deep",
            "generalComments": "Fast cycles",
            "submissionTimestamp": "03/08/2025, 02:15:09 PM",
        },
    },
}

# 2. PITSCOUT Collection, one document per team (_id = team number)
# Slot keys are submission<epoch millis>, strictly increasing per team.
PITSCOUT_SCHEMA = {
    "_id": "Team number (e.g., 1678)",
    "pitscout": {
        "submission1741471509000": {
            "scout_b": {
                "drivetrain": "Swerve",
                "scoringPositions": {"l1": True, "net": False},
                "submissionTimestamp": "03/08/2025, 02:05:09 PM",
            },
        },
    },
}

# 3. MATCHBUTTON Collection, one claim per team/match (_id = "<team>_<match>")
# holder and claimedAt are set exactly when status is "claimed".
MATCHBUTTON_SCHEMA = {
    "_id": "1678_12",
    "teamNumber": "1678",
    "matchNumber": "12",
    "status": STATUS_CLAIMED,
    "holder": "scout_a",
    "claimedAt": "03/08/2025, 02:01:44 PM",
}

_MATCH_LABEL_RE = re.compile(rf"^{MATCH_PREFIX}(.+)$")
_SLOT_RE = re.compile(rf"^{SLOT_PREFIX}([0-9]+)$")


def match_label(match_number: str) -> str:
    return f"{MATCH_PREFIX}{match_number}"


def parse_match_label(field: str) -> Optional[str]:
    """'match12' -> '12'; None for fields that aren't match entries."""
    m = _MATCH_LABEL_RE.match(field)
    return m.group(1) if m else None


def slot_millis(slot_key: str) -> int:
    m = _SLOT_RE.match(slot_key)
    return int(m.group(1)) if m else -1


def lease_key(team: str, match_number: str) -> str:
    """Callers make sure neither id contains "_", so keys never collide."""
    return f"{team}_{match_number}"
