# src/scouting/export.py
import csv
from io import StringIO

from .errors import NotFound

MATCHSCOUT_FILENAME = "matchscout_data.csv"
PITSCOUT_FILENAME = "pitscout_data.csv"

# (column, default when the form left it blank)
MATCHSCOUT_COLUMNS = [
    ("teamNumber", ""),
    ("matchNumber", ""),
    ("username", ""),
    ("submissionTimestamp", ""),
    # Auto
    ("autoL1Scores", 0),
    ("autoL2Scores", 0),
    ("autoL3Scores", 0),
    ("autoL4Scores", 0),
    ("autoL1Attempts", 0),
    ("autoL2Attempts", 0),
    ("autoL3Attempts", 0),
    ("autoL4Attempts", 0),
    ("autoProcessorAlgaeScores", 0),
    ("autoProcessorAlgaeAttempts", 0),
    ("autoNetAlgaeScores", 0),
    ("autoNetAlgaeAttempts", 0),
    ("leftStartingZone", "No"),
    # Teleop
    ("teleopL1Scores", 0),
    ("teleopL2Scores", 0),
    ("teleopL3Scores", 0),
    ("teleopL4Scores", 0),
    ("teleopL1Attempts", 0),
    ("teleopL2Attempts", 0),
    ("teleopL3Attempts", 0),
    ("teleopL4Attempts", 0),
    ("teleopProcessorAlgaeScores", 0),
    ("teleopProcessorAlgaeAttempts", 0),
    ("teleopNetAlgaeScores", 0),
    ("teleopNetAlgaeAttempts", 0),
    # Endgame
    ("climbLevel", "None"),
    ("climbSuccess", "No"),
    ("climbAttemptTime", "None"),
    # Comments
    ("climbComments", ""),
    ("robotSpeed", "None"),
    ("generalComments", ""),
]

# (column, form field or (group, checkbox) for grouped checkboxes, default)
PITSCOUT_COLUMNS = [
    ("teamNumber", "teamNumber", ""),
    ("username", "username", ""),
    ("submissionTimestamp", "submissionTimestamp", ""),
    # Robot specifications
    ("robotWeight", "robotWeight", ""),
    ("frameSize", "frameSize", ""),
    ("drivetrain", "drivetrain", ""),
    # Auto
    ("auto", "auto", ""),
    ("autoProcessor", ("scoringPositions", "processor"), False),
    ("autoNet", ("scoringPositions", "net"), False),
    ("autoL1", ("scoringPositions", "l1"), False),
    ("autoL2", ("scoringPositions", "l2"), False),
    ("autoL3", ("scoringPositions", "l3"), False),
    ("autoL4", ("scoringPositions", "l4"), False),
    ("autoNotesScored", "autoNotesScored", ""),
    # Teleop scoring positions
    ("teleopProcessor", ("scoringPositionsTeleop", "processorTeleop"), False),
    ("teleopNet", ("scoringPositionsTeleop", "netTeleop"), False),
    ("teleopL1", ("scoringPositionsTeleop", "l1Teleop"), False),
    ("teleopL2", ("scoringPositionsTeleop", "l2Teleop"), False),
    ("teleopL3", ("scoringPositionsTeleop", "l3Teleop"), False),
    ("teleopL4", ("scoringPositionsTeleop", "l4Teleop"), False),
    # Teleop capabilities
    ("estimatedCycleTime", "estimatedCycleTime", ""),
    ("pickupFromFloor", "pickupFromFloor", ""),
    # Climb
    ("climb", "climb", ""),
    ("climbTime", "climbTime", ""),
    ("additionalComments", "additionalComments", ""),
]


def _cell(value):
    # Spreadsheet tools expect lowercase booleans
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def to_csv(rows, columns):
    output = StringIO()
    writer = csv.DictWriter(output, fieldnames=columns, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({col: _cell(row[col]) for col in columns})
    return output.getvalue()


def matchscout_csv(records):
    if not records:
        raise NotFound("No scouting data found")

    rows = [{col: record.get(col) or default for col, default in MATCHSCOUT_COLUMNS}
            for record in records]
    return to_csv(rows, [col for col, _ in MATCHSCOUT_COLUMNS])


def _pit_value(record, source, default):
    if isinstance(source, tuple):
        group, checkbox = source
        checkboxes = record.get(group)
        value = checkboxes.get(checkbox) if isinstance(checkboxes, dict) else None
    else:
        value = record.get(source)
    return value or default


def pitscout_csv(records):
    if not records:
        raise NotFound("No pit scout data found")

    rows = [{col: _pit_value(record, source, default) for col, source, default in PITSCOUT_COLUMNS}
            for record in records]
    return to_csv(rows, [col for col, _, _ in PITSCOUT_COLUMNS])
