# medassist/db/mongo.py
from motor.motor_asyncio import AsyncIOMotorClient
from medassist.core.config import settings
from medassist.core.logger import logger


client = AsyncIOMotorClient(settings.MONGODB_URI)
db = client[settings.MONGODB_DB]

# Collections
chat_sessions_collection = db.get_collection("chat_sessions")
chat_histories_collection = db.get_collection("chat_histories")


# Function to check DB connection
async def verify_mongodb_connection():
    try:
        await client.server_info()
        logger.info("MongoDB connection established")
    except Exception as e:
        logger.error(f"MongoDB connection failed: {str(e)}")

