import os

from dotenv import load_dotenv, find_dotenv

load_dotenv(find_dotenv(), override=False)

API_URL = os.getenv("ACQUISITION_TRACKER_API_URL", "https://api.sleeper.app/v1")
DATABASE_URL = os.getenv("ACQUISITION_TRACKER_DATABASE_URL", "acquisition_cache.db")

API_CACHE_TTL_SECONDS = int(os.getenv("ACQUISITION_TRACKER_API_CACHE_TTL_SECONDS", "3600"))  # 1 hour
RESULT_CACHE_TTL_SECONDS = int(os.getenv("ACQUISITION_TRACKER_RESULT_CACHE_TTL_SECONDS", "3600"))

MAX_CONCURRENT_FETCHES = int(os.getenv("ACQUISITION_TRACKER_MAX_CONCURRENT_FETCHES", "5"))
MAX_LINEAGE_DEPTH = int(os.getenv("ACQUISITION_TRACKER_MAX_LINEAGE_DEPTH", "10"))
EMPTY_WEEKS_BEFORE_STOP = int(os.getenv("ACQUISITION_TRACKER_EMPTY_WEEKS_BEFORE_STOP", "1"))
DISCONNECT_POLL_SECONDS = float(os.getenv("ACQUISITION_TRACKER_DISCONNECT_POLL_SECONDS", "0.5"))

LOG_LEVEL = os.getenv("ACQUISITION_TRACKER_LOG_LEVEL", "INFO")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "ACQUISITION_TRACKER_CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    ).split(",")
    if origin.strip()
]

DEFAULT_TEAM_COUNT = 12
TRANSACTION_WEEKS = 18
# Weeks always scanned before an empty week may end the transaction scan.
TRANSACTION_MIN_WEEKS = 4
FIRST_SLEEPER_SEASON = 2017
