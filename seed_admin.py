"""Seed an admin account and the Elite Physiotherapists demo provider.

Idempotent: existing rows are left alone. Prints a bearer token for the admin
so the admin API can be exercised without a login flow.
"""

import asyncio
from datetime import time
from decimal import Decimal

from dotenv import load_dotenv
from sqlalchemy import select

load_dotenv()

from careconnect.core.database import AsyncSessionLocal, engine  # noqa: E402
from careconnect.core.security import create_access_token  # noqa: E402
from careconnect.modules.providers.models import Provider  # noqa: E402
from careconnect.modules.users.models import User  # noqa: E402
from careconnect.shared.enums import Language, ProviderType, UserRole, Weekday  # noqa: E402

ADMIN_EMAIL = "admin@careconnect.local"
PROVIDER_EMAIL = "elite@physiotherapists.hu"


async def get_or_create_user(session, email: str, **fields) -> User:
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is not None:
        print(f"✓ User {email} already exists")
        return user
    user = User(email=email, **fields)
    session.add(user)
    await session.flush()
    print(f"✓ User {email} created")
    return user


async def seed() -> None:
    async with AsyncSessionLocal() as session:
        admin = await get_or_create_user(
            session,
            ADMIN_EMAIL,
            first_name="Admin",
            last_name="User",
            role=UserRole.ADMIN,
        )
        provider_user = await get_or_create_user(
            session,
            PROVIDER_EMAIL,
            first_name="Elite",
            last_name="Physiotherapists",
            phone="+36-1-234-5678",
            role=UserRole.PROVIDER,
            city="Budapest",
        )

        result = await session.execute(select(Provider).where(Provider.user_id == provider_user.user_id))
        if result.scalar_one_or_none() is None:
            session.add(
                Provider(
                    user_id=provider_user.user_id,
                    provider_type=ProviderType.PHYSIOTHERAPIST,
                    specialization="Sports Rehabilitation, Pain Management, Orthopedic Recovery",
                    bio=(
                        "Physiotherapy clinic in Budapest focused on sports injuries, chronic pain "
                        "management and post-operative recovery."
                    ),
                    years_experience=15,
                    education="MSc in Physiotherapy, Budapest University; Advanced Sports Medicine Certification",
                    certifications=[
                        "Certified Sports Physiotherapist",
                        "Manual Therapy Specialist",
                        "Orthopedic Rehabilitation Expert",
                    ],
                    languages=[Language.ENGLISH, Language.HUNGARIAN, Language.GERMAN],
                    consultation_fee=Decimal("75.00"),
                    home_visit_fee=Decimal("120.00"),
                    is_verified=True,
                    available_days=[
                        Weekday.MONDAY,
                        Weekday.TUESDAY,
                        Weekday.WEDNESDAY,
                        Weekday.THURSDAY,
                        Weekday.FRIDAY,
                        Weekday.SATURDAY,
                    ],
                    working_hours_start=time(8, 0),
                    working_hours_end=time(20, 0),
                )
            )
            print("✓ Elite Physiotherapists provider profile created")
        else:
            print("✓ Elite Physiotherapists provider profile already exists")

        await session.commit()
        token = create_access_token(admin.user_id, admin.role.value)

    await engine.dispose()
    print("-" * 30)
    print(f"Admin: {ADMIN_EMAIL}")
    print(f"Provider: {PROVIDER_EMAIL}")
    print(f"Admin bearer token: {token}")


if __name__ == "__main__":
    asyncio.run(seed())
