"""
Database seeding script for the first admin.

Admins can only be appointed by other admins, so the first one is created
(or promoted) here. Run after the database is reachable:

    python -m parcel_backend.seed_users admin@yourcompany.com "Ops Admin"
"""

import asyncio
import sys

from sqlalchemy import select

from parcel_backend.app.db.session import AsyncSessionLocal, Base, engine
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.user import User

# Register the remaining tables with Base for create_all
from parcel_backend.app.models import audit_log, dlq, parcel, payment, rider, tracking_log  # noqa: F401


async def seed_admin(session_factory, email: str, name: str = None) -> User:
    """
    Create the admin user, or promote the existing user with that email.
    
    Args:
        session_factory: async_sessionmaker to open the session with
        email: Admin email (must match the identity provider's email claim)
        name: Optional display name for a new user
        
    Returns:
        The admin User
    """
    async with session_factory() as db:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        
        if user is None:
            user = User(email=email, name=name, role=UserRole.ADMIN)
            db.add(user)
            print(f"Created ADMIN user {email}")
        elif user.role != UserRole.ADMIN:
            user.role = UserRole.ADMIN
            print(f"Promoted {email} to ADMIN")
        else:
            print(f"{email} is already ADMIN, nothing to do")
        
        await db.commit()
        await db.refresh(user)
        return user


async def main(argv) -> None:
    if not argv:
        print("usage: python -m parcel_backend.seed_users <email> [name]")
        raise SystemExit(2)
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    await seed_admin(AsyncSessionLocal, argv[0], argv[1] if len(argv) > 1 else None)
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
