#!/usr/bin/env python3
"""
Seed database with an admin, a demo user, sample agents and content types.
"""
import asyncio
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

from sqlalchemy import select

from copymode.core.database import AsyncSessionLocal, engine
from copymode.core.security import get_password_hash
from copymode.models import User, Agent, ContentType, Expert, Tutorial

ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin123")
DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demo123"


async def main():
    """Seed database with sample data."""
    print("🌱 Seeding database...")

    async with AsyncSessionLocal() as db:
        try:
            result = await db.execute(select(User).where(User.email == ADMIN_EMAIL))
            if result.scalar_one_or_none():
                print(f"⚠️  {ADMIN_EMAIL} already exists, skipping seed")
                return

            admin = User(
                email=ADMIN_EMAIL,
                name="Admin",
                role="admin",
                hashed_password=get_password_hash(ADMIN_PASSWORD)
            )
            demo = User(
                email=DEMO_EMAIL,
                name="Demo User",
                role="user",
                hashed_password=get_password_hash(DEMO_PASSWORD)
            )
            db.add_all([admin, demo])
            await db.flush()

            agents = [
                Agent(
                    name="Direct Response Copywriter",
                    description="Persuasive sales copy with strong calls to action",
                    prompt=(
                        "You are a direct response copywriter. Write short, punchy sentences, "
                        "open with a hook, focus on one big promise and close with a clear call to action."
                    ),
                    temperature=0.8,
                    knowledge_files=[],
                    created_by=admin.id
                ),
                Agent(
                    name="Storyteller",
                    description="Narrative copy built around the customer's journey",
                    prompt=(
                        "You are a storytelling copywriter. Structure every text as a short story: "
                        "situation, conflict, turning point and resolution tied to the offer."
                    ),
                    temperature=0.9,
                    knowledge_files=[],
                    created_by=admin.id
                ),
                Agent(
                    name="Email Specialist",
                    description="Subject lines and email sequences",
                    prompt=(
                        "You write marketing emails. Always propose three subject lines, "
                        "keep paragraphs to two sentences and end with one link call to action."
                    ),
                    temperature=0.7,
                    knowledge_files=[],
                    created_by=admin.id
                ),
            ]
            db.add_all(agents)

            content_types = [
                ContentType(name="Instagram Post", description="Caption up to 2200 characters with hashtags", user_id=admin.id),
                ContentType(name="Sales Email", description="Email with subject line and a single call to action", user_id=admin.id),
                ContentType(name="Landing Page Headline", description="Headline and subheadline for a landing page", user_id=admin.id),
                ContentType(name="Video Script", description="Script for a 60 second short video", user_id=admin.id),
            ]
            db.add_all(content_types)

            db.add(Expert(
                name="Online Yoga Studio",
                niche="Yoga for beginners",
                target_audience="Office workers aged 25-45 with back pain",
                deliverables="Monthly online classes and a 30 day beginner program",
                benefits="Less back pain, better sleep, 20 minute sessions",
                objections="No time, not flexible enough, prefers in-person classes",
                user_id=demo.id
            ))

            db.add(Tutorial(
                title="Getting started with Copy Mode",
                description="Pick an agent, attach an expert and generate your first post",
                youtube_url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
                order_index=1,
                created_by=admin.id
            ))

            await db.commit()

            print(f"✅ Created admin: {ADMIN_EMAIL} / {ADMIN_PASSWORD}")
            print(f"✅ Created demo user: {DEMO_EMAIL} / {DEMO_PASSWORD}")
            print(f"✅ Created {len(agents)} agents")
            print(f"✅ Created {len(content_types)} content types")
            print("✅ Created 1 expert for the demo user")
            print("✅ Created 1 tutorial")

        except Exception as e:
            print(f"❌ Error seeding database: {e}")
            await db.rollback()
            sys.exit(1)

    await engine.dispose()
    print("\n🎉 Database seeded successfully!")


if __name__ == "__main__":
    asyncio.run(main())
