"""
Blog catalog: published posts hydrated with author, category and tags.

Author and category are many-to-one and are fetched once per call for the
whole page with an ``IN`` query each; tags are many-to-many and come from a
single join grouped by post id.  All three run concurrently, so a page of
posts costs the same number of statements as a single post.
"""
import asyncio
import logging
from collections.abc import Sequence
from operator import attrgetter

from sqlalchemy import select

from catalog.config import settings
from catalog.hydration.builders import build_blog_post
from catalog.hydration.grouping import index_by
from catalog.hydration.loaders import load_post_tags
from catalog.models import Author, BlogPost, Category, PostStatus, Tag, blog_posts_tags
from catalog.schemas import BlogPostAggregate, BlogPostPage, Envelope, PageInfo
from catalog.services.service_catalog import STORAGE_ERRORS
from catalog.store import QueryEngine

logger = logging.getLogger(__name__)

POST_NOT_FOUND = "Blog post not found"
CATEGORY_NOT_FOUND = "Category not found"
TAG_NOT_FOUND = "Tag not found"

FEED_ORDER = (BlogPost.published_at.desc(), BlogPost.created_at.desc(), BlogPost.id)

PostPage = Envelope[BlogPostPage]
PostDetail = Envelope[BlogPostAggregate | None]
PostList = Envelope[list[BlogPostAggregate]]


def _published():
    return BlogPost.status == PostStatus.PUBLISHED


def _empty_page(page: int) -> BlogPostPage:
    return BlogPostPage(posts=[], total_posts=0, **PageInfo.compute(0, page, 1))


async def hydrate_posts(store: QueryEngine, posts: Sequence[BlogPost]) -> list[BlogPostAggregate]:
    if not posts:
        return []
    authors, categories, tags = await asyncio.gather(
        store.select_where_id_in(Author, Author.id, {p.author_id for p in posts}),
        store.select_where_id_in(Category, Category.id, {p.category_id for p in posts}),
        load_post_tags(store, [p.id for p in posts]),
    )
    authors_by_id = index_by(authors, attrgetter("id"))
    categories_by_id = index_by(categories, attrgetter("id"))
    return [
        build_blog_post(
            post, authors_by_id, categories_by_id, tags, settings.READING_WORDS_PER_MINUTE
        )
        for post in posts
    ]


async def fetch_posts(
    store: QueryEngine,
    page: int = 1,
    page_size: int = 10,
    category_slug: str | None = None,
    tag_slug: str | None = None,
) -> PostPage:
    """
    Return one page of published posts, newest first, optionally restricted
    to a category and/or a tag (both addressed by slug).
    """
    try:
        criteria = [_published()]
        if category_slug:
            found = await store.select_where(Category, Category.slug == category_slug, limit=1)
            if not found:
                return PostPage.fail(CATEGORY_NOT_FOUND, _empty_page(page))
            criteria.append(BlogPost.category_id == found[0].id)
        if tag_slug:
            found = await store.select_where(Tag, Tag.slug == tag_slug, limit=1)
            if not found:
                return PostPage.fail(TAG_NOT_FOUND, _empty_page(page))
            tagged = select(blog_posts_tags.c.post_id).where(blog_posts_tags.c.tag_id == found[0].id)
            criteria.append(BlogPost.id.in_(tagged))

        total, posts = await asyncio.gather(
            store.count_where(BlogPost, *criteria),
            store.select_where(
                BlogPost,
                *criteria,
                order_by=FEED_ORDER,
                limit=page_size,
                offset=(page - 1) * page_size,
            ),
        )
        hydrated = await hydrate_posts(store, posts)
    except STORAGE_ERRORS as exc:
        logger.exception("Failed to fetch blog posts")
        return PostPage.fail(str(exc) or "Failed to fetch blog posts", _empty_page(page))

    return PostPage.ok(
        BlogPostPage(posts=hydrated, total_posts=total, **PageInfo.compute(total, page, page_size))
    )


async def fetch_post_by_slug(store: QueryEngine, slug: str) -> PostDetail:
    """Return the published post identified by *slug*; drafts are not found."""
    try:
        posts = await store.select_where(BlogPost, BlogPost.slug == slug, _published(), limit=1)
        if not posts:
            logger.info("Blog post %r not found", slug)
            return PostDetail.fail(POST_NOT_FOUND, None)
        hydrated = await hydrate_posts(store, posts)
        return PostDetail.ok(hydrated[0])
    except STORAGE_ERRORS as exc:
        logger.exception("Failed to fetch blog post %r", slug)
        return PostDetail.fail(str(exc) or "Failed to fetch blog post", None)


async def fetch_related_posts(store: QueryEngine, post_id: str, limit: int = 3) -> PostList:
    """
    Return up to *limit* other published posts from the same category as
    *post_id*, newest first.  An unknown post has no related posts.
    """
    try:
        current = await store.select_where(BlogPost, BlogPost.id == post_id, limit=1)
        if not current:
            return PostList.ok([])
        posts = await store.select_where(
            BlogPost,
            BlogPost.category_id == current[0].category_id,
            BlogPost.id != post_id,
            _published(),
            order_by=FEED_ORDER,
            limit=limit,
        )
        return PostList.ok(await hydrate_posts(store, posts))
    except STORAGE_ERRORS as exc:
        logger.exception("Failed to fetch posts related to %s", post_id)
        return PostList.fail(str(exc) or "Failed to fetch related posts", [])
