import threading
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from scouting.aggregation import match_records, pit_records
from scouting.errors import BadRequest
from scouting.store import MemoryStore
from scouting.submissions import SubmissionMerger, format_timestamp


@pytest.fixture
def merger(store, fixed_clock):
    return SubmissionMerger(store, clock=fixed_clock)


def test_format_timestamp_uses_pacific_time():
    summer = datetime(2025, 7, 4, 3, 5, 0, tzinfo=timezone.utc)
    assert format_timestamp(summer) == "07/03/2025, 08:05:00 PM"

    winter = datetime(2025, 3, 8, 22, 15, 9, tzinfo=timezone.utc)
    assert format_timestamp(winter) == "03/08/2025, 02:15:09 PM"


def test_first_match_submission_creates_team_document(merger, store):
    merger.submit_match("254", "3", "amy", {"username": "amy", "matchNumber": "3", "autoL1Scores": 2})

    assert store.get("matchscout", "254") == {
        "match3": {"amy": {"autoL1Scores": 2, "submissionTimestamp": "03/08/2025, 02:15:09 PM"}},
    }


def test_submitters_on_same_match_both_survive(merger, store):
    merger.submit_match("254", "3", "amy", {"autoL1Scores": 2})
    merger.submit_match("254", "3", "bo", {"autoL1Scores": 5})

    match3 = store.get("matchscout", "254")["match3"]
    assert match3["amy"]["autoL1Scores"] == 2
    assert match3["bo"]["autoL1Scores"] == 5
    assert len(match_records(store.stream("matchscout"))) == 2


def test_other_matches_survive(merger, store):
    merger.submit_match("254", 1, "amy", {"climbLevel": "Deep"})
    merger.submit_match("254", 2, "amy", {"climbLevel": "Shallow"})

    doc = store.get("matchscout", "254")
    assert doc["match1"]["amy"]["climbLevel"] == "Deep"
    assert doc["match2"]["amy"]["climbLevel"] == "Shallow"


def test_same_scout_resubmitting_replaces_their_entry(merger, store):
    merger.submit_match("254", "3", "amy", {"autoL1Scores": 2, "robotSpeed": "Fast"})
    merger.submit_match("254", "3", "amy", {"autoL1Scores": 4})

    assert store.get("matchscout", "254")["match3"] == {
        "amy": {"autoL1Scores": 4, "submissionTimestamp": "03/08/2025, 02:15:09 PM"},
    }


def test_server_timestamp_overrides_client_value(merger, store):
    merger.submit_match("254", "3", "amy", {"submissionTimestamp": "yesterday"})
    payload = store.get("matchscout", "254")["match3"]["amy"]
    assert payload["submissionTimestamp"] == "03/08/2025, 02:15:09 PM"


@pytest.mark.parametrize("username, match_number", [
    (None, "3"),
    ("", "3"),
    ("   ", "3"),
    ("amy", None),
    ("amy", ""),
    ("a.my", "3"),
    ("$amy", "3"),
])
def test_match_submission_rejects_missing_or_unusable_keys(username, match_number):
    store = MagicMock()
    merger = SubmissionMerger(store)
    with pytest.raises(BadRequest):
        merger.submit_match("254", match_number, username, {})
    store.exists.assert_not_called()
    store.merge.assert_not_called()


def test_match_submission_is_one_read_and_one_write(fixed_clock):
    store = MagicMock()
    store.exists.return_value = True
    SubmissionMerger(store, clock=fixed_clock).submit_match("254", "3", "amy", {"x": 1})

    assert store.exists.call_count == 1
    store.merge.assert_called_once()
    store.set.assert_not_called()


def test_concurrent_submitters_on_one_team_all_survive():
    store = MemoryStore()
    merger = SubmissionMerger(store)
    scouts = [f"scout{i}" for i in range(16)]
    start = threading.Barrier(len(scouts))

    def submit(name):
        start.wait()
        merger.submit_match("254", "7", name, {"generalComments": name})

    threads = [threading.Thread(target=submit, args=(name,)) for name in scouts]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(store.get("matchscout", "254")["match7"]) == sorted(scouts)


def test_pit_submissions_are_appended(merger, store):
    keys = [merger.submit_pit("254", name, {"drivetrain": "Swerve"}) for name in ("amy", "bo", "cy")]

    assert len(set(keys)) == 3
    assert keys == sorted(keys, key=lambda k: int(k[len("submission"):]))

    slots = store.get("pitscout", "254")["pitscout"]
    assert {next(iter(slots[k])) for k in keys} == {"amy", "bo", "cy"}

    records = pit_records(store.stream("pitscout"))
    assert [r["username"] for r in records] == ["amy", "bo", "cy"]


def test_pit_slot_is_time_based(merger):
    millis = int(datetime(2025, 3, 8, 22, 15, 9, tzinfo=timezone.utc).timestamp() * 1000)
    assert merger.submit_pit("254", "amy", {}) == f"submission{millis}"


def test_pit_slot_moves_past_stored_slots(store, fixed_clock):
    store.set("pitscout", "254", {"pitscout": {"submission9999999999999": {"amy": {}}}})
    merger = SubmissionMerger(store, clock=fixed_clock)

    assert merger.submit_pit("254", "bo", {}) == "submission10000000000000"
    assert len(store.get("pitscout", "254")["pitscout"]) == 2


def test_pit_slots_increase_across_merger_instances(store, fixed_clock):
    first = SubmissionMerger(store, clock=fixed_clock).submit_pit("254", "amy", {})
    second = SubmissionMerger(store, clock=fixed_clock).submit_pit("254", "bo", {})
    assert int(second[len("submission"):]) == int(first[len("submission"):]) + 1


def test_pit_submission_requires_username(merger, store):
    with pytest.raises(BadRequest):
        merger.submit_pit("254", None, {"drivetrain": "Tank"})
    assert store.get("pitscout", "254") is None


def test_pit_payload_drops_routing_fields(merger, store):
    slot = merger.submit_pit("254", "amy", {"username": "amy", "scoringPositions": {"l1": True}})
    payload = store.get("pitscout", "254")["pitscout"][slot]["amy"]
    assert payload == {"scoringPositions": {"l1": True}, "submissionTimestamp": "03/08/2025, 02:15:09 PM"}
