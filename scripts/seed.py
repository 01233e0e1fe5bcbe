"""Database seeder: categories, demo authors with avatar/thumbnail files, and articles."""
import asyncio
import argparse
import random
import time
from pathlib import Path

from app.config import settings
from app.database import engine, async_session, Base
from app.models import Article, ArticleCategory, Category, File, User
from app.security import hash_password

CATEGORIES = ["python", "fastapi", "postgresql", "redis", "docker", "kubernetes",
              "react", "typescript", "aws", "devops", "testing", "security"]

DEMO_PASSWORD = "password123"


def _placeholder(name: str) -> Path:
    path = Path(settings.UPLOAD_DIR) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        path.write_bytes(b"\x89PNG\r\n\x1a\n")
    return path


async def seed(num_users: int, num_articles: int, reset: bool = False):
    print(f"Seeding: {len(CATEGORIES)} categories, {num_users} users, {num_articles} articles")
    start = time.perf_counter()

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        categories = [Category(name=name) for name in CATEGORIES]
        session.add_all(categories)
        await session.flush()
        print(f"  Created {len(categories)} categories")

        users = []
        thumbnails: dict[int, File] = {}
        password = hash_password(DEMO_PASSWORD)
        for i in range(num_users):
            user = User(
                email=f"author{i:03d}@example.com",
                password=password,
                full_name=f"Author {i}",
            )
            session.add(user)
            await session.flush()

            path = _placeholder(f"seed-{i:03d}.png")
            image = File(user_id=user.id, name=path.name, path=str(path),
                         mime_type="image/png", size=path.stat().st_size)
            session.add(image)
            await session.flush()

            user.display_picture = image.id
            thumbnails[user.id] = image
            users.append(user)
        print(f"  Created {len(users)} users (password: {DEMO_PASSWORD})")

        for i in range(num_articles):
            author = random.choice(users)
            topic = random.choice(CATEGORIES)
            article = Article(
                title=f"Article {i}: Getting started with {topic}",
                description=f"A practical introduction to {topic}.",
                content=f"This is the full content of article {i}. " * 20,
                thumbnail_id=thumbnails[author.id].id,
                author_id=author.id,
            )
            session.add(article)
            await session.flush()
            session.add_all(
                ArticleCategory(article_id=article.id, category_id=category.id)
                for category in random.sample(categories, k=random.randint(1, 3))
            )
        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the articles database")
    parser.add_argument("--users", type=int, default=5, help="Number of demo authors")
    parser.add_argument("--articles", type=int, default=50, help="Number of articles")
    parser.add_argument("--reset", action="store_true", help="Drop all tables first")
    args = parser.parse_args()
    asyncio.run(seed(args.users, args.articles, reset=args.reset))


if __name__ == "__main__":
    main()
