# src/scouting/api.py
from flask import Blueprint, Flask, request, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
import logging

from . import config
from .aggregation import all_instances, match_records, pit_records
from .errors import BadRequest, ScoutingError, StoreError
from .export import MATCHSCOUT_FILENAME, PITSCOUT_FILENAME, matchscout_csv, pitscout_csv
from .leases import LeaseManager
from .store import MemoryStore, MongoStore
from .submissions import SubmissionMerger

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)


def get_store():
    """Builds the one store handle the app shares across requests."""
    if config.STORE_BACKEND == "memory":
        logger.warning("Using in-memory store; data is lost on restart")
        return MemoryStore()

    db = config.get_mongo_database()
    if db is None:
        raise RuntimeError("Database connection failed")
    return MongoStore(db)


def _json_body():
    """The POSTed form; a missing body reads as empty, anything but an object is refused."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object")
    return data


def _csv_response(body, filename):
    return body, 200, {
        'Content-Type': 'text/csv',
        'Content-Disposition': f'attachment; filename={filename}',
    }


def create_api(store):
    """Scouting routes with the store and services injected."""
    api = Blueprint("scouting", __name__)
    merger = SubmissionMerger(store)
    leases = LeaseManager(store)

    @api.errorhandler(ScoutingError)
    def handle_scouting_error(e):
        if isinstance(e, StoreError):
            # Details were logged by the store; don't leak them to scouts
            return jsonify({"success": False, "error": "Internal Server Error"}), 500
        return jsonify({"success": False, "error": e.message}), e.status_code

    @api.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return jsonify({"success": False, "error": e.description}), e.code
        logger.error(f"Unhandled error on {request.method} {request.path}: {e}", exc_info=True)
        return jsonify({"success": False, "error": "Internal Server Error"}), 500

    # ---- Match scouting ----

    @api.route('/matchscout/<team_number>', methods=['POST'])
    def submit_match_scout_form(team_number):
        """Merges one scout's match form into the team's document."""
        data = _json_body()
        merger.submit_match(team_number, data.get('matchNumber'), data.get('username'), data)
        return jsonify({"success": True}), 200

    @api.route('/matchscout', methods=['GET'])
    def fetch_match_scout_data():
        records = match_records(store.stream(config.MATCHSCOUT_COLLECTION))
        return jsonify(records), 200

    @api.route('/matchscout/export/csv', methods=['GET'])
    def export_match_scout_csv():
        records = match_records(store.stream(config.MATCHSCOUT_COLLECTION))
        return _csv_response(matchscout_csv(records), MATCHSCOUT_FILENAME)

    # ---- Claim buttons ----

    @api.route('/matchscout/match/<match_number>/status', methods=['GET'])
    def fetch_match_button_statuses(match_number):
        """Claim state of every team for one match, for the scout's match picker."""
        statuses = leases.list_statuses(match_number)
        return jsonify({"success": True, "matchNumber": match_number, "statuses": statuses}), 200

    @api.route('/matchscout/<team_number>/<match_number>/button', methods=['GET'])
    def fetch_match_button_status(team_number, match_number):
        return jsonify({"success": True, **leases.get_status(team_number, match_number)}), 200

    @api.route('/matchscout/<team_number>/<match_number>/button', methods=['POST'])
    def toggle_match_button_status(team_number, match_number):
        data = _json_body()
        state = leases.toggle(team_number, match_number, data.get('username'))
        return jsonify({"success": True, **state}), 200

    # ---- Pit scouting ----

    @api.route('/submit-pitscout/<team_number>', methods=['POST'])
    def submit_pit_scout_form(team_number):
        data = _json_body()
        slot = merger.submit_pit(team_number, data.get('username'), data)
        return jsonify({"success": True, "submissionKey": slot}), 200

    @api.route('/pitscout', methods=['GET'])
    def fetch_pit_scout_data():
        records = pit_records(store.stream(config.PITSCOUT_COLLECTION))
        return jsonify(records), 200

    @api.route('/pitscout/export/csv', methods=['GET'])
    def export_pit_scout_csv():
        records = pit_records(store.stream(config.PITSCOUT_COLLECTION))
        return _csv_response(pitscout_csv(records), PITSCOUT_FILENAME)

    @api.route('/all-scout-instances', methods=['GET'])
    def fetch_all_scout_instances():
        instances = all_instances(
            store.stream(config.MATCHSCOUT_COLLECTION),
            store.stream(config.PITSCOUT_COLLECTION),
        )
        return jsonify(instances), 200

    return api


def create_app(store=None):
    app = Flask(__name__)
    store = store if store is not None else get_store()

    CORS(app, resources={rf"{config.API_PREFIX}/*": {"origins": "*"}})
    app.register_blueprint(create_api(store), url_prefix=config.API_PREFIX)

    @app.route('/test', methods=['GET'])
    def backend_check():
        return jsonify({"message": "Backend is working!"}), 200

    return app


if __name__ == '__main__':
    # Local development server; run with `python -m scouting.api`
    create_app().run(host='0.0.0.0', port=config.PORT, debug=True)
