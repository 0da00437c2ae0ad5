# telehealth/db/client.py

from pymongo import MongoClient, ASCENDING

from telehealth.core import config
from telehealth.core.logger import logger

USERS = "users"
APPOINTMENTS = "appointments"
PRESCRIPTIONS = "prescriptions"
MEDICAL_RECORDS = "medical_records"

_client = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        _client = MongoClient(config.MONGO_URI, serverSelectionTimeoutMS=config.MONGO_TIMEOUT_MS)
    return _client


def get_db():
    return get_client()[config.MONGO_DB_NAME]


def init_db(db=None):
    """Create the indexes the booking rules rely on."""
    db = db if db is not None else get_db()

    db[USERS].create_index("externalId", unique=True, sparse=True)
    db[USERS].create_index("email")
    db[USERS].create_index([("role", ASCENDING), ("specialization", ASCENDING)])

    db[APPOINTMENTS].create_index([("patientId", ASCENDING), ("date", ASCENDING)])
    db[APPOINTMENTS].create_index([("doctorId", ASCENDING), ("date", ASCENDING)])
    # At most one scheduled appointment per doctor, date and start time
    db[APPOINTMENTS].create_index(
        [("doctorId", ASCENDING), ("date", ASCENDING), ("time.start", ASCENDING)],
        unique=True,
        partialFilterExpression={"status": "scheduled"},
        name="one_scheduled_per_slot",
    )

    db[PRESCRIPTIONS].create_index("patientId")
    db[MEDICAL_RECORDS].create_index("patientId")
    logger.info(f"MongoDB indexes ensured on {db.name}")


def close_db():
    global _client
    if _client is not None:
        _client.close()
        _client = None
