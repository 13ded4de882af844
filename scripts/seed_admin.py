# scripts/seed_admin.py
# usage: python -m scripts.seed_admin TH 0812345678
import argparse
import asyncio

from db.db_operation import MongoConnection
from services.user_service import UserService
from settings.config import get_settings
from utils.logger import configure_logging, get_logger

logger = get_logger("Seed_Admin")


async def seed(country_code: str, phone_number: str):
    settings = get_settings()
    mongo = MongoConnection(settings)
    await mongo.connect()
    await mongo.create_indexes()
    try:
        user = await UserService(mongo).ensure_admin(country_code.upper(), phone_number)
        print("Admin ready:", f"{user['country_code']}{user['phone_number']}", user["_id"])
    finally:
        mongo.client.close()


def main():
    parser = argparse.ArgumentParser(description="Create or promote the platform admin account")
    parser.add_argument("country_code", help="ISO country code, e.g. TH")
    parser.add_argument("phone_number", help="digits only, 10 to 15 long")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    asyncio.run(seed(args.country_code, args.phone_number))


if __name__ == "__main__":
    main()
