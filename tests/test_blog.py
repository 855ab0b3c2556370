"""Blog read path: published feed, filters, detail and related posts."""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.middleware import start_query_count
from catalog.models import Author, BlogPost, Category, PostStatus, Tag, blog_posts_tags
from catalog.services import blog_catalog
from catalog.store import QueryEngine

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _seed_blog(db: AsyncSession) -> dict:
    author = Author(name="Ada", email="ada@example.com", bio="Engineer")
    eng = Category(name="Engineering", slug="engineering")
    news = Category(name="News", slug="news")
    python = Tag(name="python", slug="python")
    async_tag = Tag(name="asyncio", slug="asyncio")
    db.add_all([author, eng, news, python, async_tag])
    await db.flush()

    def post(slug, category, days_ago, status=PostStatus.PUBLISHED, words=10):
        return BlogPost(
            title=slug.replace("-", " ").title(),
            slug=slug,
            excerpt=f"About {slug}",
            content="word " * words,
            status=status,
            published_at=NOW - timedelta(days=days_ago) if status == PostStatus.PUBLISHED else None,
            author_id=author.id,
            category_id=category.id,
        )

    posts = {
        "newest": post("newest", eng, 1, words=500),
        "middle": post("middle", eng, 5),
        "oldest": post("oldest", eng, 10),
        "announcement": post("announcement", news, 2),
        "draft": post("draft", eng, 0, status=PostStatus.DRAFT),
    }
    db.add_all(posts.values())
    await db.flush()
    await db.execute(
        blog_posts_tags.insert(),
        [
            {"post_id": posts["newest"].id, "tag_id": python.id},
            {"post_id": posts["newest"].id, "tag_id": async_tag.id},
            {"post_id": posts["middle"].id, "tag_id": python.id},
        ],
    )
    await db.commit()
    return {slug: p.id for slug, p in posts.items()}


# ---------------------------------------------------------------------------
# fetch_posts
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_fetch_posts_published_newest_first(store: QueryEngine, db_session: AsyncSession):
    await _seed_blog(db_session)
    result = await blog_catalog.fetch_posts(store, page=1, page_size=10)

    assert result.success is True
    assert [p.slug for p in result.data.posts] == ["newest", "announcement", "middle", "oldest"]
    assert result.data.total_posts == 4

    newest = result.data.posts[0]
    assert newest.author.name == "Ada"
    assert newest.category.slug == "engineering"
    assert [t.name for t in newest.tags] == ["asyncio", "python"]
    assert newest.reading_time == 3
    assert result.data.posts[-1].tags == []


@pytest.mark.asyncio
async def test_fetch_posts_pagination(store: QueryEngine, db_session: AsyncSession):
    await _seed_blog(db_session)
    result = await blog_catalog.fetch_posts(store, page=2, page_size=3)
    assert [p.slug for p in result.data.posts] == ["oldest"]
    assert result.data.total_pages == 2
    assert result.data.has_previous_page is True
    assert result.data.has_next_page is False


@pytest.mark.asyncio
async def test_fetch_posts_filters(store: QueryEngine, db_session: AsyncSession):
    await _seed_blog(db_session)

    by_category = await blog_catalog.fetch_posts(store, category_slug="news")
    assert [p.slug for p in by_category.data.posts] == ["announcement"]

    by_tag = await blog_catalog.fetch_posts(store, tag_slug="python")
    assert [p.slug for p in by_tag.data.posts] == ["newest", "middle"]


@pytest.mark.asyncio
async def test_fetch_posts_unknown_filter_is_failure(store: QueryEngine, db_session: AsyncSession):
    await _seed_blog(db_session)

    result = await blog_catalog.fetch_posts(store, category_slug="missing")
    assert result.success is False
    assert result.error == "Category not found"
    assert result.data.posts == []

    result = await blog_catalog.fetch_posts(store, tag_slug="missing")
    assert result.error == "Tag not found"


@pytest.mark.asyncio
async def test_fetch_posts_statement_count_independent_of_page_size(store: QueryEngine, db_session: AsyncSession):
    await _seed_blog(db_session)

    counter = start_query_count()
    await blog_catalog.fetch_posts(store, page_size=1)
    one = counter.value

    counter = start_query_count()
    await blog_catalog.fetch_posts(store, page_size=10)
    many = counter.value

    # count + page + authors + categories + tags
    assert one == many == 5


# ---------------------------------------------------------------------------
# fetch_post_by_slug / fetch_related_posts
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_fetch_post_by_slug(store: QueryEngine, db_session: AsyncSession):
    await _seed_blog(db_session)
    result = await blog_catalog.fetch_post_by_slug(store, "middle")
    assert result.success is True
    assert result.data.slug == "middle"
    assert [t.slug for t in result.data.tags] == ["python"]


@pytest.mark.asyncio
async def test_fetch_post_by_slug_hides_drafts(store: QueryEngine, db_session: AsyncSession):
    await _seed_blog(db_session)
    for slug in ("draft", "never-written"):
        result = await blog_catalog.fetch_post_by_slug(store, slug)
        assert result.success is False
        assert result.data is None
        assert result.error == "Blog post not found"


@pytest.mark.asyncio
async def test_fetch_related_posts_same_category(store: QueryEngine, db_session: AsyncSession):
    ids = await _seed_blog(db_session)
    result = await blog_catalog.fetch_related_posts(store, ids["newest"], limit=2)
    assert result.success is True
    assert [p.slug for p in result.data] == ["middle", "oldest"]


@pytest.mark.asyncio
async def test_fetch_related_posts_unknown_post(store: QueryEngine):
    result = await blog_catalog.fetch_related_posts(store, "missing")
    assert result.success is True
    assert result.data == []
