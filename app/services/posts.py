"""
Post Service - CRUD and Like/Unlike

Posts are owned by their author: only the author can edit or delete one,
and a post that exists but belongs to someone else is reported as not found.

Likes are stored twice: as rows in post_likes (who liked) and as the
Post.likes counter. Every like/unlike changes both inside one transaction
using single SQL statements, never by reading the post, changing it in
Python and writing it back, so concurrent likes cannot lose updates and
likes always equals the number of post_likes rows.
"""

import logging

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.exceptions import AlreadyLiked, NotFound, NothingToUnlike
from app.models import Post, User, post_likes
from app.services.audit import log_action
from app.utils.validators import (
    POST_FIELD_VALIDATORS,
    POST_UPDATABLE_FIELDS,
    validate_body,
    validate_description,
    validate_title,
    validate_updates,
)

logger = logging.getLogger(__name__)


def _post_query():
    # populate_existing refreshes posts already in the session, since
    # like/unlike change rows behind the ORM's back
    return (
        select(Post)
        .options(selectinload(Post.liked_by))
        .execution_options(populate_existing=True)
    )


async def load_post(db: AsyncSession, post_id: str) -> Post | None:
    """Fetch a post with its likers loaded, or None."""
    result = await db.execute(_post_query().filter(Post.id == post_id))
    return result.scalars().first()


async def _load_own_post(db: AsyncSession, post_id: str, author: User) -> Post:
    result = await db.execute(
        _post_query().filter(Post.id == post_id, Post.author == author.id)
    )
    post = result.scalars().first()
    if not post:
        raise NotFound("Post not found")
    return post


async def list_posts(db: AsyncSession) -> list[Post]:
    result = await db.execute(_post_query().order_by(Post.created_at))
    return list(result.scalars().all())


async def get_post(db: AsyncSession, post_id: str) -> Post:
    post = await load_post(db, post_id)
    if not post:
        raise NotFound("Post not found")
    return post


async def create_post(
    db: AsyncSession,
    author: User,
    title: str,
    description: str,
    body: str,
) -> Post:
    """
    Create a post owned by `author` with no likes.

    Raises:
        ValidationError: title under 5 chars, empty description,
                         or body under 20 chars
    """
    post = Post(
        title=validate_title(title),
        description=validate_description(description),
        body=validate_body(body),
        likes=0,
        author=author.id,
    )
    db.add(post)
    await db.flush()
    await log_action(db, "post_created", author, {"post_id": post.id})
    await db.commit()

    logger.info(f"Post {post.id} created by {author.id}")
    return await get_post(db, post.id)


async def update_post(
    db: AsyncSession,
    post_id: str,
    author: User,
    changes: dict,
) -> Post:
    """
    Edit title, description and/or body of the caller's own post.

    Raises:
        ValidationError: unknown field or invalid value
        NotFound: no such post, or it belongs to another user
    """
    validate_updates(changes, POST_UPDATABLE_FIELDS)
    cleaned = {
        field: POST_FIELD_VALIDATORS[field](value)
        for field, value in changes.items()
    }

    post = await _load_own_post(db, post_id, author)
    for field, value in cleaned.items():
        setattr(post, field, value)
    await db.commit()

    return await get_post(db, post_id)


async def delete_post(db: AsyncSession, post_id: str, author: User) -> Post:
    """
    Delete the caller's own post together with its likes.

    Returns:
        The deleted post, still readable after the commit
    """
    post = await _load_own_post(db, post_id, author)

    await db.execute(delete(post_likes).where(post_likes.c.post_id == post_id))
    await db.delete(post)
    await log_action(db, "post_deleted", author, {"post_id": post_id, "title": post.title[:50]})
    await db.commit()

    logger.info(f"Post {post_id} deleted by {author.id}")
    return post


async def _current_likes(db: AsyncSession, post_id: str) -> int:
    result = await db.execute(select(Post.likes).filter(Post.id == post_id))
    likes = result.scalar_one_or_none()
    if likes is None:
        raise NotFound("Post not found")
    return likes


async def _has_liked(db: AsyncSession, post_id: str, user_id: str) -> bool:
    result = await db.execute(
        select(post_likes.c.user_id).where(
            post_likes.c.post_id == post_id,
            post_likes.c.user_id == user_id,
        )
    )
    return result.first() is not None


async def like(db: AsyncSession, post_id: str, user_id: str) -> Post:
    """
    Record that `user_id` likes the post.

    The (post_id, user_id) primary key of post_likes makes the insert an
    "add if absent": a second like by the same user fails at the database
    even when two requests race past the membership check.

    Raises:
        NotFound: no such post
        AlreadyLiked: the user already likes this post (nothing changes)
    """
    await _current_likes(db, post_id)

    if await _has_liked(db, post_id, user_id):
        raise AlreadyLiked()

    try:
        await db.execute(insert(post_likes).values(post_id=post_id, user_id=user_id))
    except IntegrityError:
        await db.rollback()
        raise AlreadyLiked()

    await db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values(likes=Post.likes + 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    return await get_post(db, post_id)


async def unlike(db: AsyncSession, post_id: str, user_id: str) -> Post:
    """
    Remove `user_id`'s like from the post.

    A user who never liked the post cannot unlike it, so the counter is
    only decremented when a post_likes row was actually removed.

    Raises:
        NotFound: no such post
        NothingToUnlike: the post has no likes, or none from this user
    """
    if await _current_likes(db, post_id) == 0:
        raise NothingToUnlike()

    result = await db.execute(
        delete(post_likes).where(
            post_likes.c.post_id == post_id,
            post_likes.c.user_id == user_id,
        )
    )
    if result.rowcount == 0:
        raise NothingToUnlike("You have not liked this post")

    await db.execute(
        update(Post)
        .where(Post.id == post_id, Post.likes > 0)
        .values(likes=Post.likes - 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    return await get_post(db, post_id)
