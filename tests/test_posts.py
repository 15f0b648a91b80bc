"""
Unit tests for app.services.posts
"""
import pytest
from sqlalchemy import func, insert, select

from app.exceptions import AlreadyLiked, NotFound, NothingToUnlike, ValidationError
from app.models import post_likes
from app.services import posts


BODY = "A body that is comfortably longer than twenty characters."


async def liker_count(db, post_id):
    result = await db.execute(
        select(func.count()).select_from(post_likes).where(post_likes.c.post_id == post_id)
    )
    return result.scalar_one()


async def assert_invariant(db, post_id):
    post = await posts.get_post(db, post_id)
    assert post.likes == len(post.liked_by) == await liker_count(db, post_id)
    return post


@pytest.fixture
def make_post(db):
    async def _make(author, title="Hello world"):
        return await posts.create_post(db, author, title, "A description", BODY)
    return _make


class TestCreatePost:

    @pytest.mark.asyncio
    async def test_new_post_has_no_likes(self, db, ann, make_post):
        post = await make_post(ann)
        assert post.author == ann.id
        assert post.likes == 0
        assert post.to_dict()["likedBy"] == []

    @pytest.mark.asyncio
    async def test_fields_are_trimmed(self, db, ann):
        post = await posts.create_post(db, ann, "  Title here ", " desc ", f"  {BODY}  ")
        assert post.title == "Title here"
        assert post.description == "desc"
        assert post.body == BODY

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "title,description,body",
        [("Hey", "desc", BODY), ("Hello world", "", BODY), ("Hello world", "desc", "too short")],
    )
    async def test_invalid_fields(self, db, ann, title, description, body):
        with pytest.raises(ValidationError):
            await posts.create_post(db, ann, title, description, body)

    @pytest.mark.asyncio
    async def test_list_posts(self, db, ann, bob, make_post):
        await make_post(ann, "First post")
        await make_post(bob, "Second post")
        titles = [p.title for p in await posts.list_posts(db)]
        assert sorted(titles) == ["First post", "Second post"]


class TestEditAndDelete:

    @pytest.mark.asyncio
    async def test_author_can_edit(self, db, ann, make_post):
        post = await make_post(ann)
        edited = await posts.update_post(db, post.id, ann, {"title": "Better title"})
        assert edited.title == "Better title"
        assert edited.body == BODY

    @pytest.mark.asyncio
    async def test_other_user_cannot_edit(self, db, ann, bob, make_post):
        post = await make_post(ann)
        with pytest.raises(NotFound):
            await posts.update_post(db, post.id, bob, {"title": "Hijacked!"})

    @pytest.mark.asyncio
    async def test_likes_not_editable(self, db, ann, make_post):
        post = await make_post(ann)
        with pytest.raises(ValidationError):
            await posts.update_post(db, post.id, ann, {"likes": 99})

    @pytest.mark.asyncio
    async def test_author_can_delete(self, db, ann, bob, make_post):
        post = await make_post(ann)
        post_id = post.id
        await posts.like(db, post_id, bob.id)

        deleted = await posts.delete_post(db, post_id, ann)
        assert deleted.id == post_id
        assert await posts.load_post(db, post_id) is None
        assert await liker_count(db, post_id) == 0

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(self, db, ann, bob, make_post):
        post = await make_post(ann)
        with pytest.raises(NotFound):
            await posts.delete_post(db, post.id, bob)
        assert await posts.load_post(db, post.id) is not None

    @pytest.mark.asyncio
    async def test_get_missing_post(self, db):
        with pytest.raises(NotFound):
            await posts.get_post(db, "missing")


class TestLikeUnlike:

    @pytest.mark.asyncio
    async def test_like_records_user(self, db, ann, bob, make_post):
        post = await make_post(ann)
        liked = await posts.like(db, post.id, bob.id)
        assert liked.likes == 1
        assert liked.to_dict()["likedBy"] == [bob.id]

    @pytest.mark.asyncio
    async def test_second_like_rejected(self, db, ann, make_post):
        post = await make_post(ann)
        await posts.like(db, post.id, ann.id)
        with pytest.raises(AlreadyLiked):
            await posts.like(db, post.id, ann.id)
        post = await assert_invariant(db, post.id)
        assert post.likes == 1

    @pytest.mark.asyncio
    async def test_racing_second_like_hits_primary_key(self, db, ann, make_post, monkeypatch):
        post = await make_post(ann)
        # The rollback below expires every loaded instance
        post_id, user_id = post.id, ann.id
        await posts.like(db, post_id, user_id)

        async def not_liked_yet(*args):
            return False

        monkeypatch.setattr(posts, "_has_liked", not_liked_yet)
        with pytest.raises(AlreadyLiked):
            await posts.like(db, post_id, user_id)

        post = await assert_invariant(db, post_id)
        assert post.likes == 1
        assert [u.id for u in post.liked_by] == [user_id]

    @pytest.mark.asyncio
    async def test_unlike_with_no_likes(self, db, ann, make_post):
        post = await make_post(ann)
        with pytest.raises(NothingToUnlike):
            await posts.unlike(db, post.id, ann.id)

    @pytest.mark.asyncio
    async def test_unlike_by_non_liker_changes_nothing(self, db, ann, bob, make_post):
        post = await make_post(ann)
        await posts.like(db, post.id, ann.id)
        with pytest.raises(NothingToUnlike):
            await posts.unlike(db, post.id, bob.id)
        post = await assert_invariant(db, post.id)
        assert post.likes == 1

    @pytest.mark.asyncio
    async def test_like_then_unlike(self, db, ann, make_post):
        post = await make_post(ann)
        await posts.like(db, post.id, ann.id)
        post = await posts.unlike(db, post.id, ann.id)
        assert post.likes == 0
        assert post.liked_by == []

    @pytest.mark.asyncio
    async def test_unlike_never_drives_counter_negative(self, db, ann, make_post, monkeypatch):
        post = await make_post(ann)
        # A like row whose counter increment never landed
        await db.execute(insert(post_likes).values(post_id=post.id, user_id=ann.id))
        await db.commit()

        async def stale_count(*args):
            return 1

        monkeypatch.setattr(posts, "_current_likes", stale_count)
        unliked = await posts.unlike(db, post.id, ann.id)
        assert unliked.likes == 0
        assert unliked.liked_by == []
        assert await liker_count(db, post.id) == 0

    @pytest.mark.asyncio
    async def test_missing_post(self, db, ann):
        with pytest.raises(NotFound):
            await posts.like(db, "missing", ann.id)
        with pytest.raises(NotFound):
            await posts.unlike(db, "missing", ann.id)

    @pytest.mark.asyncio
    async def test_invariant_over_mixed_sequence(self, db, ann, bob, make_post):
        post = await make_post(ann)
        steps = [
            (posts.like, ann.id),
            (posts.like, bob.id),
            (posts.like, ann.id),
            (posts.unlike, ann.id),
            (posts.unlike, ann.id),
            (posts.unlike, bob.id),
            (posts.unlike, bob.id),
            (posts.like, bob.id),
        ]
        for operation, user_id in steps:
            try:
                await operation(db, post.id, user_id)
            except (AlreadyLiked, NothingToUnlike):
                pass
            await assert_invariant(db, post.id)

        post = await posts.get_post(db, post.id)
        assert post.likes == 1
        assert [u.id for u in post.liked_by] == [bob.id]
