"""
Post Routes

Post endpoints, mounted under /api/posts:
- GET /allpost: Every post (no login required)
- POST /: Create a post
- GET /{id}: One post
- PUT /{id}: Edit own post
- DELETE /{id}: Delete own post
- PUT /{id}/like: Like a post
- PUT /{id}/unlike: Remove own like
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models import User
from app.schemas import PostCreate, PostRead, PostUpdate
from app.services import posts as post_service


router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.get("/allpost", response_model=list[PostRead])
async def all_posts(db: AsyncSession = Depends(get_db)):
    posts = await post_service.list_posts(db)
    return [post.to_dict() for post in posts]


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=PostRead)
async def create_post(
    payload: PostCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a post authored by the current user.

    Errors:
        400: title shorter than 5, empty description, or body shorter than 20
    """
    post = await post_service.create_post(
        db, user, payload.title, payload.description, payload.body
    )
    return post.to_dict()


@router.get("/{post_id}", response_model=PostRead)
async def read_post(
    post_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    post = await post_service.get_post(db, post_id)
    return post.to_dict()


@router.put("/{post_id}", response_model=PostRead)
async def edit_post(
    post_id: str,
    payload: PostUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Edit title, description and/or body of one of the user's own posts.

    A post owned by someone else answers 404, the same as a missing one.
    """
    post = await post_service.update_post(
        db, post_id, user, payload.model_dump(exclude_unset=True)
    )
    return post.to_dict()


@router.delete("/{post_id}", response_model=PostRead)
async def remove_post(
    post_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    post = await post_service.delete_post(db, post_id, user)
    return post.to_dict()


@router.put("/{post_id}/like", response_model=PostRead)
async def like_post(
    post_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Like a post.

    Errors:
        404: post not found
        409: already liked by this user
    """
    post = await post_service.like(db, post_id, user.id)
    return post.to_dict()


@router.put("/{post_id}/unlike", response_model=PostRead)
async def unlike_post(
    post_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Remove the current user's like.

    Errors:
        404: post not found
        409: post has no likes, or none from this user
    """
    post = await post_service.unlike(db, post_id, user.id)
    return post.to_dict()
