#!/usr/bin/env python3
"""
Database initialization script
"""
import asyncio
import sys
from pathlib import Path

# Make the newsfeed package importable when run from anywhere
current_dir = Path(__file__).parent
root_dir = current_dir.parent
sys.path.insert(0, str(root_dir))

async def init_database() -> None:
    """Create every table"""
    from newsfeed.db.session import init_db
    from newsfeed.config import settings

    print(f"🚀 Initializing database: {settings.database_url}")

    try:
        await init_db()
        print("✅ Database initialized successfully")
    except Exception as e:
        print(f"❌ Error initializing database: {e}")
        sys.exit(1)

async def create_initial_data() -> None:
    """
    Create a few development users, a community and a first post.

    Accounts normally come from the auth service; these rows only mirror
    what it would have created.
    """
    from sqlalchemy import select
    from newsfeed.db.session import AsyncSessionLocal
    from newsfeed.models.user import User
    from newsfeed.repositories import communities as community_repo
    from newsfeed.repositories import follows as follow_repo
    from newsfeed.repositories import posts as post_repo
    from newsfeed.services.user_service import pwd_context

    print("👤 Creating initial data...")

    dev_users = [
        {"username": "ada", "email": "ada@example.com", "first_name": "Ada", "last_name": "Obi"},
        {"username": "tunde", "email": "tunde@example.com", "first_name": "Tunde", "last_name": "Bakare"},
        {"username": "amina", "email": "amina@example.com", "first_name": "Amina", "last_name": "Yusuf"},
    ]

    async with AsyncSessionLocal() as db:
        try:
            users = []
            for user_data in dev_users:
                result = await db.execute(select(User).where(User.username == user_data["username"]))
                user = result.scalar_one_or_none()
                if not user:
                    user = User(password=pwd_context.hash("Password123!"), **user_data)
                    db.add(user)
                    await db.flush()
                users.append(user)

            ada, tunde, amina = users
            for follower in (tunde, amina):
                if not await follow_repo.get_follow(db, follower.id, ada.id):
                    await follow_repo.create_follow(db, follower.id, ada.id)

            communities = await community_repo.search_communities(db, "Builders")
            if not communities:
                community = await community_repo.create_community(
                    db, name="Builders", description="People shipping things", topics=["tech"]
                )
                await community_repo.create_membership(db, ada.id, community.id, role="super_admin")
                await community_repo.create_membership(db, tunde.id, community.id)
                await post_repo.create_post(db, user_id=ada.id, content="Welcome to the newsfeed!", topic="tech")

            await db.commit()
            print(f"✅ Initial data ready for {len(users)} users")

        except Exception as e:
            await db.rollback()
            print(f"⚠️  Error creating initial data: {e}")

async def check_database_connection() -> bool:
    """Check if database is accessible"""
    from newsfeed.db.session import engine
    from sqlalchemy import text

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        print("✅ Database connection successful")
        return True
    except Exception as e:
        print(f"❌ Database connection failed: {e}")
        return False

async def drop_database() -> None:
    """Drop all database tables"""
    from newsfeed.db.session import engine
    from newsfeed.models import Base

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        print("✅ Database dropped successfully")
    except Exception as e:
        print(f"❌ Error dropping database: {e}")

async def reset_database() -> None:
    await drop_database()
    await init_database()

async def check_or_exit() -> None:
    if not await check_database_connection():
        sys.exit(1)

def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(description="Newsfeed database management")
    parser.add_argument("command", choices=["init", "check", "drop", "seed", "reset"])
    parser.add_argument("--confirm", action="store_true", help="Required by drop and reset")
    args = parser.parse_args()

    if args.command in ("drop", "reset") and not args.confirm:
        print("⚠️  WARNING: This will drop ALL tables and data!")
        print("   Use --confirm flag to proceed")
        sys.exit(1)

    commands = {
        "init": init_database,
        "check": check_or_exit,
        "drop": drop_database,
        "seed": create_initial_data,
        "reset": reset_database,
    }
    try:
        asyncio.run(commands[args.command]())
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user")
        sys.exit(1)

if __name__ == "__main__":
    main()
