"""
Tests for likes, comments, threaded replies, subscriptions, ratings and trivia
"""

import pytest

from vidshare.core.exceptions import (
    CommentNotFound,
    InvalidRating,
    ParentReplyNotFound,
    TargetNotFound,
    ValidationError,
    VideoMismatch,
    VideoNotFound,
)
from vidshare.models.comment import Comment, Reply
from vidshare.models.like import Like, LikeTargetType, LikeType
from vidshare.models.rating import Rating
from vidshare.models.subscription import Subscription
from vidshare.models.user import User
from vidshare.models.video import Video
from vidshare.services import interactions
from vidshare.services.interactions import LikeTarget, round_rating


class TestLikeTarget:
    def test_single_id_picks_kind(self):
        assert LikeTarget.from_ids(comment_id=2) == LikeTarget(LikeTargetType.COMMENT, 2)
        assert LikeTarget.from_ids(reply_id=3) == LikeTarget(LikeTargetType.REPLY, 3)
        assert LikeTarget.from_ids(video_id=1) == LikeTarget(LikeTargetType.VIDEO, 1)

    @pytest.mark.parametrize(
        "ids",
        [
            {"video_id": 1, "comment_id": 2},
            {"comment_id": 2, "reply_id": 3},
            {"video_id": 1, "comment_id": 2, "reply_id": 3},
        ],
    )
    def test_several_ids_rejected(self, ids):
        with pytest.raises(ValidationError):
            LikeTarget.from_ids(**ids)

    def test_no_target(self):
        with pytest.raises(ValidationError):
            LikeTarget.from_ids()


class TestToggleLike:
    """Like toggling on videos, comments and replies"""

    def test_like_then_unlike_comment(self, db, make_user, video):
        user = make_user()
        db.add(Comment(id=42, video_id=video.id, user_id=user.id, text="nice"))
        db.commit()
        target = LikeTarget.from_ids(comment_id=42)

        first = interactions.toggle_like(db, user.id, target)
        assert (first.action, first.liked, first.like_count) == ("created", True, 1)

        second = interactions.toggle_like(db, user.id, target)
        assert (second.action, second.liked, second.like_count) == ("removed", False, 0)
        assert db.query(Like).count() == 0

    def test_toggle_twice_restores_count_on_every_target_kind(self, db, make_user, video):
        fan, other = make_user(), make_user()
        comment = interactions.create_comment(db, other.id, video.id, "first")
        reply = interactions.create_reply(db, other.id, video.id, "re", comment_id=comment.id)
        targets = [
            LikeTarget(LikeTargetType.VIDEO, video.id),
            LikeTarget(LikeTargetType.COMMENT, comment.id),
            LikeTarget(LikeTargetType.REPLY, reply.id),
        ]
        for target in targets:
            interactions.toggle_like(db, other.id, target)
            before = interactions.count_likes(db, target)
            interactions.toggle_like(db, fan.id, target)
            result = interactions.toggle_like(db, fan.id, target)
            assert result.liked is False
            assert result.like_count == before

    def test_same_id_on_different_kinds_is_independent(self, db, make_user, video):
        user = make_user()
        comment = interactions.create_comment(db, user.id, video.id, "c")
        interactions.toggle_like(db, user.id, LikeTarget(LikeTargetType.COMMENT, comment.id))
        result = interactions.toggle_like(db, user.id, LikeTarget(LikeTargetType.VIDEO, video.id))
        assert result.action == "created"
        assert db.query(Like).count() == 2

    def test_dislike_is_stored_with_type(self, db, test_user, video):
        interactions.toggle_like(db, test_user.id, LikeTarget(LikeTargetType.VIDEO, video.id), LikeType.DISLIKE)
        assert db.query(Like).one().type == "DISLIKE"

    def test_invalid_type(self, db, test_user, video):
        with pytest.raises(ValidationError):
            interactions.toggle_like(db, test_user.id, LikeTarget(LikeTargetType.VIDEO, video.id), "LOVE")

    def test_missing_target(self, db, test_user):
        with pytest.raises(TargetNotFound):
            interactions.toggle_like(db, test_user.id, LikeTarget(LikeTargetType.REPLY, 999))

    def test_like_endpoint(self, client, test_user, video, auth_headers):
        response = client.post("/api/interactions/like", json={"video_id": video.id}, headers=auth_headers(test_user))
        assert response.status_code == 200
        assert response.json() == {"action": "created", "liked": True, "like_count": 1, "type": "VIDEO"}

    def test_like_endpoint_missing_target(self, client, test_user, auth_headers):
        response = client.post("/api/interactions/like", json={"comment_id": 12345}, headers=auth_headers(test_user))
        assert response.status_code == 404
        assert response.json()["error"] == "TARGET_NOT_FOUND"

    def test_like_endpoint_with_two_ids(self, client, db, test_user, video, auth_headers):
        comment = interactions.create_comment(db, test_user.id, video.id, "root")
        response = client.post(
            "/api/interactions/like",
            json={"video_id": video.id, "comment_id": comment.id},
            headers=auth_headers(test_user),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert db.query(Like).count() == 0

    def test_like_endpoint_requires_token(self, client, video):
        response = client.post("/api/interactions/like", json={"video_id": video.id})
        assert response.status_code == 401


class TestReplies:
    """Replies always point at their root comment"""

    def test_root_comment_resolved_at_depth(self, db, test_user, video):
        comment = interactions.create_comment(db, test_user.id, video.id, "root")
        parent = interactions.create_reply(db, test_user.id, video.id, "r1", comment_id=comment.id)
        for depth in range(4):
            child = interactions.create_reply(db, test_user.id, video.id, f"r{depth + 2}", parent_reply_id=parent.id)
            assert child.comment_id == comment.id
            assert child.parent_reply_id == parent.id
            parent = child

    def test_parent_reply_wins_over_comment_id(self, db, test_user, video):
        c1 = interactions.create_comment(db, test_user.id, video.id, "one")
        c2 = interactions.create_comment(db, test_user.id, video.id, "two")
        parent = interactions.create_reply(db, test_user.id, video.id, "r", comment_id=c1.id)
        reply = interactions.create_reply(
            db, test_user.id, video.id, "rr", comment_id=c2.id, parent_reply_id=parent.id
        )
        assert reply.comment_id == c1.id

    def test_requires_comment_or_parent(self, db, test_user, video):
        with pytest.raises(ValidationError):
            interactions.create_reply(db, test_user.id, video.id, "orphan")

    def test_requires_text(self, db, test_user, video):
        comment = interactions.create_comment(db, test_user.id, video.id, "root")
        with pytest.raises(ValidationError):
            interactions.create_reply(db, test_user.id, video.id, "   ", comment_id=comment.id)

    def test_unknown_parent_reply(self, db, test_user, video):
        with pytest.raises(ParentReplyNotFound):
            interactions.create_reply(db, test_user.id, video.id, "x", parent_reply_id=777)

    def test_unknown_comment(self, db, test_user, video):
        with pytest.raises(CommentNotFound):
            interactions.create_reply(db, test_user.id, video.id, "x", comment_id=777)

    def test_unknown_video(self, db, test_user):
        with pytest.raises(VideoNotFound):
            interactions.create_reply(db, test_user.id, 777, "x", comment_id=1)

    def test_comment_on_other_video(self, db, test_user, make_video):
        a, b = make_video(), make_video()
        comment = interactions.create_comment(db, test_user.id, a.id, "on a")
        with pytest.raises(VideoMismatch):
            interactions.create_reply(db, test_user.id, b.id, "x", comment_id=comment.id)

    def test_parent_on_other_video(self, db, test_user, make_video):
        a, b = make_video(), make_video()
        comment = interactions.create_comment(db, test_user.id, a.id, "on a")
        parent = interactions.create_reply(db, test_user.id, a.id, "r", comment_id=comment.id)
        with pytest.raises(VideoMismatch):
            interactions.create_reply(db, test_user.id, b.id, "x", parent_reply_id=parent.id)
        assert db.query(Reply).count() == 1

    def test_reply_endpoint(self, client, db, test_user, video, auth_headers):
        comment = interactions.create_comment(db, test_user.id, video.id, "root")
        response = client.post(
            "/api/interactions/reply",
            json={"video_id": video.id, "text": "hi", "comment_id": comment.id},
            headers=auth_headers(test_user),
        )
        assert response.status_code == 201
        data = response.json()
        assert data["comment_id"] == comment.id
        assert data["parent_reply_id"] is None
        assert data["user"]["id"] == test_user.id

    def test_comment_endpoint_unknown_video(self, client, test_user, auth_headers):
        response = client.post(
            "/api/interactions/comment",
            json={"video_id": 999, "text": "hi"},
            headers=auth_headers(test_user),
        )
        assert response.status_code == 404
        assert response.json()["error"] == "VIDEO_NOT_FOUND"


class TestSubscriptions:
    """Subscriptions are per creator, whichever of their videos is used"""

    def test_two_videos_one_creator(self, db, test_user, creator, make_video):
        a, b = make_video(creator), make_video(creator)

        first = interactions.toggle_subscription(db, test_user.id, a.id, subscribe=True)
        assert first.subscribed is True and first.subscriber_count == 1

        again = interactions.toggle_subscription(db, test_user.id, b.id, subscribe=True)
        assert again.subscribed is True
        assert again.creator_id == creator.id
        assert db.query(Subscription).filter(Subscription.creator_id == creator.id).count() == 1

        off = interactions.toggle_subscription(db, test_user.id, b.id)
        assert off.action == "unsubscribed"
        assert off.subscriber_count == 0
        assert db.query(Subscription).count() == 0

    def test_plain_toggle(self, db, test_user, video):
        assert interactions.toggle_subscription(db, test_user.id, video.id).subscribed is True
        assert interactions.toggle_subscription(db, test_user.id, video.id).subscribed is False

    def test_unsubscribe_is_idempotent(self, db, test_user, video):
        result = interactions.toggle_subscription(db, test_user.id, video.id, subscribe=False)
        assert result.subscribed is False
        assert result.subscriber_count == 0

    def test_unknown_video(self, db, test_user):
        with pytest.raises(VideoNotFound):
            interactions.toggle_subscription(db, test_user.id, 999)

    def test_subscribe_endpoint(self, client, test_user, creator, video, auth_headers):
        response = client.post(
            "/api/interactions/subscribe",
            json={"video_id": video.id},
            headers=auth_headers(test_user),
        )
        assert response.status_code == 200
        assert response.json() == {
            "action": "subscribed",
            "subscribed": True,
            "creator_id": creator.id,
            "subscriber_count": 1,
        }


class TestRatings:
    """One rating per (user, video); re-rating overwrites"""

    def test_rerate_overwrites(self, db):
        db.add(User(id=7, first_name="R", last_name="S", email="r@example.com", password="x"))
        db.add(User(id=8, first_name="C", last_name="D", email="c@example.com", password="x"))
        db.commit()
        db.add(Video(id=100, user_id=8, title="v", thumbnail="/uploads/t.png", video_url="/uploads/v.mp4"))
        db.commit()

        interactions.rate_video(db, 7, 100, 8)
        result = interactions.rate_video(db, 7, 100, 3)

        rows = db.query(Rating).filter(Rating.user_id == 7, Rating.video_id == 100).all()
        assert len(rows) == 1
        assert rows[0].value == 3
        assert result.average == 3.0
        assert result.count == 1

    def test_average_of_distinct_raters(self, db, make_user, video):
        for value in (7, 8, 10):
            interactions.rate_video(db, make_user().id, video.id, value)
        average, count = interactions.rating_stats(db, video.id)
        assert count == 3
        assert average == 8.3

    @pytest.mark.parametrize("value", [0, 11, -3, True])
    def test_out_of_range_rejected_before_lookup(self, db, test_user, value):
        with pytest.raises(InvalidRating):
            interactions.rate_video(db, test_user.id, 999999, value)

    def test_unknown_video(self, db, test_user):
        with pytest.raises(VideoNotFound):
            interactions.rate_video(db, test_user.id, 999999, 5)

    def test_round_rating_half_up(self):
        assert round_rating(25, 4) == 6.3
        assert round_rating(17, 2) == 8.5
        assert round_rating(None, 0) == 0.0

    def test_rate_endpoint(self, client, test_user, video, auth_headers):
        response = client.post(
            "/api/interactions/rate",
            json={"video_id": video.id, "value": 9},
            headers=auth_headers(test_user),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["rating"]["value"] == 9
        assert data["average"] == 9.0
        assert data["count"] == 1

    def test_rate_endpoint_out_of_range(self, client, test_user, auth_headers):
        response = client.post(
            "/api/interactions/rate",
            json={"video_id": 424242, "value": 0},
            headers=auth_headers(test_user),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_RATING"


class TestTriviaAndSynopsis:
    def test_trivia_listed_newest_first(self, client, test_user, video, auth_headers):
        headers = auth_headers(test_user)
        for text in ("first", "second"):
            response = client.post("/api/interactions/trivia", json={"video_id": video.id, "text": text}, headers=headers)
            assert response.status_code == 201
        response = client.get(f"/api/videos/{video.id}/trivia")
        assert [t["text"] for t in response.json()] == ["second", "first"]

    def test_owner_updates_synopsis(self, client, creator, video, auth_headers):
        response = client.post(
            f"/api/videos/{video.id}/synopsis",
            json={"synopsis": "A story."},
            headers=auth_headers(creator),
        )
        assert response.status_code == 200
        assert response.json() == {"id": video.id, "title": video.title, "synopsis": "A story."}

    def test_non_owner_cannot_update_synopsis(self, client, test_user, video, auth_headers):
        response = client.post(
            f"/api/videos/{video.id}/synopsis",
            json={"synopsis": "Hijack"},
            headers=auth_headers(test_user),
        )
        assert response.status_code == 403


class TestMalformedBodies:
    """Bodies that fail schema validation get the same error envelope as service errors"""

    def test_comment_without_text(self, client, test_user, video, auth_headers):
        response = client.post(
            "/api/interactions/comment",
            json={"video_id": video.id},
            headers=auth_headers(test_user),
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert body["message"]
        assert [d["field"] for d in body["details"]] == ["text"]
        assert body["details"][0]["type"] == "missing"

    def test_rating_without_value(self, client, test_user, video, auth_headers):
        response = client.post(
            "/api/interactions/rate",
            json={"video_id": video.id},
            headers=auth_headers(test_user),
        )
        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "value"

    @pytest.mark.parametrize("value", [8.5, True, "7"])
    def test_rating_value_must_be_integer(self, client, db, test_user, video, auth_headers, value):
        response = client.post(
            "/api/interactions/rate",
            json={"video_id": video.id, "value": value},
            headers=auth_headers(test_user),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert db.query(Rating).count() == 0
