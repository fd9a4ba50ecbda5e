import motor.motor_asyncio
from pymongo import ASCENDING, DESCENDING
import os
from dotenv import load_dotenv

# Import logging
from app.utils.logging_config import get_logger

logger = get_logger(__name__)

# Load environment variables from .env
load_dotenv()

# Connection string (from .env or fallback)
MONGO_DETAILS = os.getenv("MONGO_DETAILS", "mongodb://localhost:27017")

DB_NAME = os.getenv("DB_NAME", "recruitment_matcher")

logger.info(f"Initializing MongoDB connection to database: {DB_NAME}")

client = motor.motor_asyncio.AsyncIOMotorClient(MONGO_DETAILS)
db = client[DB_NAME]

# Collections
resumes_coll = db["resumes"]
jobs_coll = db["jobs"]
users_coll = db["users"]


async def _create_index(coll, keys, **kwargs):
    try:
        await coll.create_index(keys, **kwargs)
        logger.debug(f"Created index on {coll.name}: {keys}")
    except Exception as e:
        if "already exists" in str(e).lower():
            logger.debug(f"Index on {coll.name} {keys} already exists")
        else:
            logger.warning(f"Could not create index on {coll.name} {keys}: {e}")


async def init_indexes():
    """Index initialization for collections."""
    logger.info("Starting database index initialization")

    await _create_index(resumes_coll, [("resumeId", ASCENDING)], unique=True)
    await _create_index(resumes_coll, [("userId", ASCENDING), ("isActive", ASCENDING)])
    await _create_index(resumes_coll, [("lastUpdated", DESCENDING)])
    await _create_index(resumes_coll, [("parsedData.skills.name", ASCENDING)])

    await _create_index(jobs_coll, [("jobId", ASCENDING)], unique=True)
    await _create_index(jobs_coll, [("isActive", ASCENDING)])
    await _create_index(jobs_coll, [("adminId", ASCENDING)])

    await _create_index(users_coll, [("id", ASCENDING)], unique=True)

    logger.info("Database index initialization completed")
