# src/scouting/config.py
from pymongo import MongoClient
from pymongo.errors import PyMongoError
from dotenv import load_dotenv
import logging
import os

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# On a hosted deployment set these in the provider console, not via .env.
MONGO_URI = os.getenv("MONGO_URI")
DB_NAME = os.getenv("DB_NAME", "scouting_db")

# "mongo" for a real deployment, "memory" for local runs without a database
STORE_BACKEND = os.getenv("STORE_BACKEND", "mongo").lower()

API_PREFIX = os.getenv("API_PREFIX", "/api")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Collection names
MATCHSCOUT_COLLECTION = "matchscout"
PITSCOUT_COLLECTION = "pitscout"
BUTTON_COLLECTION = "matchbutton"

# Submission timestamps are written in the event's local time
SUBMISSION_TIMEZONE = "America/Los_Angeles"


def get_mongo_database(uri=None, db_name=None):
    """Returns the MongoDB database object for the scouting DB, or None."""
    uri = uri or MONGO_URI
    db_name = db_name or DB_NAME
    if not uri:
        logger.error("MONGO_URI not found. Check your .env file or environment variables.")
        return None

    try:
        client = MongoClient(uri)

        # Ping the server to confirm a successful connection
        client.admin.command('ping')
        logger.info(f"MongoDB connection successful. Using database: '{db_name}'")
        return client[db_name]
    except PyMongoError as e:
        logger.error(f"Error connecting to MongoDB: {e}")
        return None
