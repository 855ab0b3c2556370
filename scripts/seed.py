"""Database seeder for catalog benchmark testing."""
import asyncio
import argparse
import random
import time
from datetime import datetime, timezone, timedelta
from catalog.database import engine, async_session, Base
from catalog.models import (
    Author, BlogPost, Category, GalleryGroup, GalleryImage, PostStatus,
    ServiceCategory, ServiceRelated, Tag, blog_posts_tags, gallery_image_groups,
)
from catalog.schemas import FAQ, PricingTier, ProcessStep, ServiceCreate, Testimonial
from catalog.services.service_admin import create_service, slugify

TECHNOLOGIES = ["Python", "FastAPI", "PostgreSQL", "React", "TypeScript", "Docker",
                "Kubernetes", "AWS", "Figma", "Terraform", "GraphQL", "Redis"]

TAGS = ["python", "fastapi", "postgresql", "docker", "design-systems", "seo",
        "performance", "security", "accessibility", "devops", "testing", "ux"]

BLOG_CATEGORIES = ["Engineering", "Design", "Company News", "Case Studies"]

GALLERY_GROUPS = ["Web Projects", "Brand Identity", "Mobile Apps"]


def _service_payload(i: int, category: ServiceCategory) -> ServiceCreate:
    title = f"{category.value} Service {i}"
    return ServiceCreate(
        title=title,
        short_description=f"{category.value} work delivered end to end.",
        full_description=f"Full description for {title}. " * 10,
        timeline=f"{random.randint(2, 16)} weeks",
        category=category,
        featured_image=f"/images/services/{i}.jpg",
        features=[f"Feature {n} of {title}" for n in range(1, random.randint(3, 7))],
        benefits=[f"Benefit {n}" for n in range(1, random.randint(2, 5))],
        technologies=random.sample(TECHNOLOGIES, k=random.randint(2, 5)),
        deliverables=[f"Deliverable {n}" for n in range(1, random.randint(2, 4))],
        gallery=[f"/images/services/{i}/{n}.jpg" for n in range(random.randint(0, 4))],
        process=[
            ProcessStep(step=n, title=f"Phase {n}", description=f"Work for phase {n}.", duration="1 week")
            for n in range(1, 4)
        ],
        pricing=[
            PricingTier(
                name=name,
                price=f"${price:,}",
                description=f"{name} package",
                popular=name == "Pro",
                features=[f"{name} perk {n}" for n in range(1, 4)],
            )
            for name, price in (("Starter", 2000), ("Pro", 6000), ("Enterprise", 15000))
        ],
        testimonials=[
            Testimonial(quote="Excellent delivery.", author=f"Client {i}-{n}", company=f"Company {n}")
            for n in range(random.randint(0, 2))
        ],
        faq=[
            FAQ(question=f"Question {n}?", answer=f"Answer {n}.")
            for n in range(random.randint(0, 3))
        ],
    )


async def seed_services(num_services: int) -> list[str]:
    categories = list(ServiceCategory)
    ids: list[str] = []
    async with async_session() as session:
        for i in range(num_services):
            created = await create_service(session, _service_payload(i, categories[i % len(categories)]))
            ids.append(created["id"])
        await session.commit()

    # Related links are added once every service id exists.
    async with async_session() as session:
        for service_id in ids:
            others = [other for other in ids if other != service_id]
            for related_id in random.sample(others, k=min(3, len(others))):
                session.add(ServiceRelated(service_id=service_id, related_service_id=related_id))
        await session.commit()
    return ids


async def seed_blog(num_posts: int) -> None:
    async with async_session() as session:
        authors = [
            Author(name=f"Author {i}", email=f"author_{i:02d}@example.com", bio=f"Writer number {i}.")
            for i in range(5)
        ]
        categories = [
            Category(name=name, slug=slugify(name), description=f"Posts about {name.lower()}.")
            for name in BLOG_CATEGORIES
        ]
        tags = [Tag(name=name, slug=name) for name in TAGS]
        session.add_all(authors + categories + tags)
        await session.flush()

        links = []
        for i in range(num_posts):
            created = datetime.now(timezone.utc) - timedelta(days=random.randint(0, 365))
            published = random.random() > 0.1  # 90% published
            post = BlogPost(
                title=f"Post {i}: notes on {random.choice(TAGS)}",
                slug=f"post-{i}",
                excerpt=f"Excerpt for post {i}.",
                content=f"This is the full content of post {i}. " * random.randint(20, 400),
                status=PostStatus.PUBLISHED if published else PostStatus.DRAFT,
                published_at=created if published else None,
                created_at=created,
                author_id=random.choice(authors).id,
                category_id=random.choice(categories).id,
            )
            session.add(post)
            await session.flush()
            for tag in random.sample(tags, k=random.randint(1, 4)):
                links.append({"post_id": post.id, "tag_id": tag.id})
        await session.execute(blog_posts_tags.insert(), links)
        await session.commit()


async def seed_gallery(num_images: int) -> None:
    async with async_session() as session:
        groups = [
            GalleryGroup(name=name, slug=slugify(name), display_order=order)
            for order, name in enumerate(GALLERY_GROUPS)
        ]
        session.add_all(groups)
        await session.flush()

        links = []
        for i in range(num_images):
            image = GalleryImage(
                name=f"Image {i}",
                alt_text=f"Portfolio image {i}",
                file_name=f"image-{i}.jpg",
                original_url=f"/gallery/original/image-{i}.jpg",
                thumbnail_url=f"/gallery/thumb/image-{i}.jpg",
                file_size=random.randint(50_000, 2_000_000),
                width=1920,
                height=1080,
                mime_type="image/jpeg",
                display_order=i,
                is_featured=random.random() > 0.8,
            )
            session.add(image)
            await session.flush()
            for position, group in enumerate(random.sample(groups, k=random.randint(1, 2))):
                links.append({"image_id": image.id, "group_id": group.id, "display_order": position})
        await session.execute(gallery_image_groups.insert(), links)
        await session.commit()


async def seed(small: bool = False):
    num_services = 10 if small else 200
    num_posts = 30 if small else 2000
    num_images = 20 if small else 500

    print(f"Seeding: {num_services} services, {num_posts} posts, {num_images} gallery images")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    await seed_services(num_services)
    print(f"  Created {num_services} services with all relations")
    await seed_blog(num_posts)
    print(f"  Created {num_posts} blog posts")
    await seed_gallery(num_images)
    print(f"  Created {num_images} gallery images")

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the catalog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (10 services)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
