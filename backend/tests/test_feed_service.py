from datetime import date
from uuid import uuid4

from sqlite_case import SqliteServiceCase

from theater_tracker.db.models import Reaction, ReactionTypeEnum
from theater_tracker.services.diary_service import mark_seen, mark_want_to_see
from theater_tracker.services.feed_service import (
    ActivityNotFoundError,
    InvalidCommentError,
    add_comment,
    list_comments,
    list_recent_activity,
    react,
    reaction_counts,
)
from theater_tracker.services.spoilers import SpoilerRevealState


class FeedCase(SqliteServiceCase):
    def setUp(self) -> None:
        super().setUp()
        self.actor = self.make_user("actor")
        self.viewer = self.make_user("viewer")
        self.show = self.make_show("Hamlet")
        _, self.activity = mark_seen(
            self.db,
            self.actor.id,
            self.show.id,
            date_seen=date(2024, 3, 1),
            city="London",
            rating=4,
            review="Great",
        )


class TestRecentActivity(FeedCase):
    def test_items_carry_actor_show_and_entry(self) -> None:
        item = list_recent_activity(self.db)[0]
        self.assertEqual(item["activity_type"], "review")
        self.assertEqual(item["username"], self.actor.username)
        self.assertEqual(item["show"]["title"], "Hamlet")
        self.assertEqual(item["entry"]["review"], "Great")
        self.assertEqual(item["entry"]["rating"], 4.0)
        self.assertFalse(item["entry_missing"])
        self.assertEqual(item["reaction_counts"], {"like": 0, "love": 0, "clap": 0})

    def test_want_to_see_items_have_no_entry(self) -> None:
        other_show = self.make_show("Cats")
        mark_want_to_see(self.db, self.viewer.id, other_show.id)

        items = list_recent_activity(self.db)
        self.assertEqual(items[0]["activity_type"], "want_to_see")
        self.assertIsNone(items[0]["entry"])

    def test_newest_first_and_limited(self) -> None:
        for title in ("Cats", "Wicked", "Rent"):
            mark_want_to_see(self.db, self.viewer.id, self.make_show(title).id)

        items = list_recent_activity(self.db, limit=2)
        self.assertEqual([i["show"]["title"] for i in items], ["Rent", "Wicked"])

    def test_viewer_reaction_is_reported(self) -> None:
        react(self.db, self.activity.id, self.viewer.id, ReactionTypeEnum.CLAP)
        item = list_recent_activity(self.db, viewer_id=self.viewer.id)[0]
        self.assertEqual(item["viewer_reaction"], "clap")
        self.assertIsNone(list_recent_activity(self.db, viewer_id=self.actor.id)[0]["viewer_reaction"])

    def _item_for(self, items: list[dict], title: str) -> dict:
        return next(i for i in items if i["show"]["title"] == title)

    def test_spoiler_review_is_hidden_until_revealed(self) -> None:
        entry, _ = mark_seen(
            self.db,
            self.viewer.id,
            self.make_show("Sweeney Todd").id,
            date_seen=date(2024, 4, 2),
            city="Paris",
            review="The barber did it",
            contains_spoilers=True,
        )

        hidden = self._item_for(list_recent_activity(self.db), "Sweeney Todd")["entry"]
        self.assertIsNone(hidden["review"])
        self.assertTrue(hidden["spoiler_hidden"])
        self.assertTrue(hidden["contains_spoilers"])
        self.assertEqual(hidden["id"], entry.id)

        other_only = SpoilerRevealState([self.activity.user_show_id])
        still_hidden = self._item_for(
            list_recent_activity(self.db, reveal_state=other_only), "Sweeney Todd"
        )["entry"]
        self.assertIsNone(still_hidden["review"])

        revealed = self._item_for(
            list_recent_activity(self.db, reveal_state=SpoilerRevealState([entry.id])),
            "Sweeney Todd",
        )["entry"]
        self.assertEqual(revealed["review"], "The barber did it")
        self.assertFalse(revealed["spoiler_hidden"])

    def test_anonymous_entries_hide_their_author(self) -> None:
        mark_seen(
            self.db,
            self.actor.id,
            self.make_show("Cats").id,
            date_seen=date(2024, 4, 2),
            city="Paris",
            review="Memorable",
            is_anonymous=True,
        )

        items = list_recent_activity(self.db)
        anonymous = self._item_for(items, "Cats")
        self.assertEqual(anonymous["username"], "Anonymous")
        self.assertIsNone(anonymous["user_id"])
        self.assertEqual(anonymous["entry"]["review"], "Memorable")

        named = self._item_for(items, "Hamlet")
        self.assertEqual(named["username"], "actor")
        self.assertEqual(named["user_id"], self.actor.id)


class TestReactions(FeedCase):
    def _mine(self) -> list[Reaction]:
        return (
            self.db.query(Reaction)
            .filter(Reaction.activity_id == self.activity.id, Reaction.user_id == self.viewer.id)
            .all()
        )

    def test_same_type_twice_removes_reaction(self) -> None:
        first = react(self.db, self.activity.id, self.viewer.id, ReactionTypeEnum.LIKE)
        self.assertEqual(first["reaction_type"], "like")
        self.assertEqual(first["counts"]["like"], 1)

        second = react(self.db, self.activity.id, self.viewer.id, ReactionTypeEnum.LIKE)
        self.assertIsNone(second["reaction_type"])
        self.assertEqual(second["counts"]["like"], 0)
        self.assertEqual(self._mine(), [])

    def test_different_type_replaces_reaction(self) -> None:
        react(self.db, self.activity.id, self.viewer.id, ReactionTypeEnum.LIKE)
        state = react(self.db, self.activity.id, self.viewer.id, ReactionTypeEnum.LOVE)

        self.assertEqual(state["reaction_type"], "love")
        self.assertEqual(state["counts"], {"like": 0, "love": 1, "clap": 0})
        self.assertEqual(len(self._mine()), 1)

    def test_counts_across_users(self) -> None:
        react(self.db, self.activity.id, self.viewer.id, ReactionTypeEnum.CLAP)
        react(self.db, self.activity.id, self.actor.id, ReactionTypeEnum.CLAP)
        self.assertEqual(reaction_counts(self.db, self.activity.id)["clap"], 2)

    def test_unknown_activity_raises(self) -> None:
        with self.assertRaises(ActivityNotFoundError):
            react(self.db, uuid4(), self.viewer.id, ReactionTypeEnum.LIKE)


class TestComments(FeedCase):
    def test_comments_are_trimmed_and_oldest_first(self) -> None:
        add_comment(self.db, self.activity.id, self.viewer.id, "  First!  ")
        add_comment(self.db, self.activity.id, self.actor.id, "Thanks")

        comments = list_comments(self.db, self.activity.id)
        self.assertEqual([c["comment_text"] for c in comments], ["First!", "Thanks"])
        self.assertEqual(comments[0]["username"], "viewer")

    def test_blank_or_long_comment_is_rejected(self) -> None:
        with self.assertRaises(InvalidCommentError):
            add_comment(self.db, self.activity.id, self.viewer.id, "   ")
        with self.assertRaises(InvalidCommentError):
            add_comment(self.db, self.activity.id, self.viewer.id, "x" * 1001)

    def test_comment_on_unknown_activity_raises(self) -> None:
        with self.assertRaises(ActivityNotFoundError):
            add_comment(self.db, uuid4(), self.viewer.id, "Hello")
