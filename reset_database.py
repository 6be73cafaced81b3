import asyncio
import sys

from config import settings
from database import Base, make_database, make_engine
from storage import DatabaseStorage


async def reset_database(database_url: str = None):
    """Drop every table, recreate the schema and seed the admin and starter catalog."""
    database_url = database_url or settings.database_url
    print("🧨 RESETTING DATABASE...")

    # registers the tables on Base
    import models  # noqa: F401

    engine = make_engine(database_url)
    try:
        print("🗑️ Dropping all tables...")
        Base.metadata.drop_all(bind=engine)
        print("🔨 Creating tables...")
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()

    storage = DatabaseStorage(make_database(database_url))
    await storage.connect()
    print("✅ Connected to database")
    try:
        await storage.initialize(
            settings.admin_username,
            settings.admin_password,
            settings.admin_security_code,
        )
        print("\n🎉 DATABASE RESET COMPLETE!")
        print(f"   Admin username: {settings.admin_username}")
    finally:
        await storage.disconnect()
        print("✅ Database disconnected")


if __name__ == "__main__":
    asyncio.run(reset_database(sys.argv[1] if len(sys.argv) > 1 else None))
