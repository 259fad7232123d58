# src/scouting/aggregation.py
"""
Flattens the nested per-team documents into one record per submission.

Records are ordered by team number (as text), then match/slot number
(numerically), then username, so exporting unchanged data twice gives the
same rows in the same order.
"""
import logging
import re

from .db_models import PIT_FIELD, parse_match_label, slot_millis

logger = logging.getLogger(__name__)

MATCHSCOUT_TYPE = "matchscout"
PITSCOUT_TYPE = "pitscout"

_ASCII_NUMBER = re.compile(r"[0-9]+")


def _number_key(value):
    # ASCII-numeric labels first in numeric order, anything else after, as text
    if _ASCII_NUMBER.fullmatch(value):
        return (0, int(value), "")
    return (1, 0, value)


def match_records(documents):
    """documents: iterable of (team_number, team_document) pairs."""
    records = []
    for team, doc in documents:
        for field, entries in doc.items():
            match_number = parse_match_label(field)
            if match_number is None or not isinstance(entries, dict):
                continue
            for username in sorted(entries):
                payload = entries[username]
                if not isinstance(payload, dict):
                    logger.warning(f"Skipping malformed entry matchscout/{team}.{field}.{username}")
                    continue
                records.append({
                    "teamNumber": team,
                    "matchNumber": match_number,
                    "username": username,
                    **payload,
                })

    records.sort(key=lambda r: (r["teamNumber"], _number_key(r["matchNumber"]), r["username"]))
    return records


def pit_records(documents):
    records = []
    for team, doc in documents:
        slots = doc.get(PIT_FIELD)
        if not isinstance(slots, dict):
            continue
        for slot, submission in slots.items():
            if not isinstance(submission, dict):
                continue
            for username in sorted(submission):
                payload = submission[username]
                if not isinstance(payload, dict):
                    logger.warning(f"Skipping malformed entry pitscout/{team}.{slot}.{username}")
                    continue
                records.append({
                    "teamNumber": team,
                    "submissionKey": slot,
                    **payload,
                    "username": username,
                })

    records.sort(key=lambda r: (r["teamNumber"], slot_millis(r["submissionKey"]),
                                r["submissionKey"], r["username"]))
    return records


def _tagged(records, scout_type):
    return [{**record, "scoutType": scout_type} for record in records]


def all_instances(match_documents, pit_documents):
    """Both listings side by side, each record tagged with where it came from."""
    return {
        "pitScoutInstances": _tagged(pit_records(pit_documents), PITSCOUT_TYPE),
        "matchScoutInstances": _tagged(match_records(match_documents), MATCHSCOUT_TYPE),
    }
