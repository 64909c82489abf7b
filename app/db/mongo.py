# app/db/mongo.py
from motor.motor_asyncio import AsyncIOMotorClient

from app.core.config import Settings


def create_mongo_client(settings: Settings) -> AsyncIOMotorClient:
    """
    Build a Motor client for the configured URI. The caller owns it and
    is responsible for closing it (see Backend.close).
    """
    # tz_aware so timestamps round-trip as UTC-aware datetimes
    return AsyncIOMotorClient(settings.MONGODB_URI, tz_aware=True)


def get_database(client: AsyncIOMotorClient, settings: Settings):
    return client[settings.MONGODB_DB]
