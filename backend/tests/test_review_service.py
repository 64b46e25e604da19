from datetime import date
from uuid import uuid4

from sqlite_case import SqliteServiceCase

from theater_tracker.db.models import ApprovalStatusEnum
from theater_tracker.services.diary_service import mark_seen, mark_want_to_see
from theater_tracker.services.review_service import (
    average_rating,
    get_reviews_for_show,
    public_reviews_query,
    rating_for_show,
)
from theater_tracker.services.show_service import ShowNotFoundError
from theater_tracker.services.spoilers import ANONYMOUS_USERNAME, SpoilerRevealState


class ReviewCase(SqliteServiceCase):
    def setUp(self) -> None:
        super().setUp()
        self.show = self.make_show("Hamlet")

    def log(self, rating=None, review=None, city="London", seen=date(2024, 3, 1), **extra):
        user = self.make_user()
        entry, _ = mark_seen(
            self.db,
            user.id,
            self.show.id,
            date_seen=seen,
            city=city,
            rating=rating,
            review=review,
            **extra,
        )
        return user, entry


class TestAverageRating(ReviewCase):
    def test_mean_of_ratings(self) -> None:
        self.log(rating=3)
        self.log(rating=5)
        self.log(rating=4)

        summary = average_rating(self.db, self.show.id)
        self.assertEqual(summary.average, 4.0)
        self.assertEqual(summary.rated_count, 3)

    def test_no_ratings_is_none_not_zero(self) -> None:
        self.log(review="Fine")
        summary = average_rating(self.db, self.show.id)
        self.assertIsNone(summary.average)
        self.assertFalse(summary.has_ratings)

    def test_rating_only_entries_count(self) -> None:
        self.log(rating=2)
        self.log(rating=4, review="Good")
        self.assertEqual(average_rating(self.db, self.show.id).average, 3.0)

    def test_unknown_show_raises(self) -> None:
        with self.assertRaises(ShowNotFoundError):
            rating_for_show(self.db, uuid4())

    def test_unapproved_show_has_no_public_reviews(self) -> None:
        for status in (ApprovalStatusEnum.PENDING, ApprovalStatusEnum.REJECTED):
            show = self.make_show(status=status)
            with self.assertRaises(ShowNotFoundError):
                rating_for_show(self.db, show.id)
            with self.assertRaises(ShowNotFoundError):
                get_reviews_for_show(self.db, show.id)


class TestPublicProjection(ReviewCase):
    def test_private_notes_and_user_id_are_not_selected(self) -> None:
        self.log(review="Great", private_notes="Sat next to my ex")

        names = {column["name"] for column in public_reviews_query(self.db).column_descriptions}
        self.assertNotIn("private_notes", names)
        self.assertNotIn("user_id", names)

        payload = get_reviews_for_show(self.db, self.show.id)
        for review in payload["reviews"]:
            self.assertNotIn("private_notes", review)

    def test_want_to_see_rows_are_excluded(self) -> None:
        user = self.make_user()
        mark_want_to_see(self.db, user.id, self.show.id)
        self.assertEqual(public_reviews_query(self.db).count(), 0)

    def test_rating_only_rows_are_not_listed_as_reviews(self) -> None:
        self.log(rating=4)
        payload = get_reviews_for_show(self.db, self.show.id)
        self.assertEqual(payload["reviews"], [])
        self.assertEqual(payload["rating"]["rated_count"], 1)


class TestAnonymity(ReviewCase):
    def test_anonymous_review_hides_username(self) -> None:
        user, _ = self.log(review="Haunting", is_anonymous=True)

        review = get_reviews_for_show(self.db, self.show.id)["reviews"][0]
        self.assertEqual(review["username"], ANONYMOUS_USERNAME)
        self.assertTrue(review["is_anonymous"])
        self.assertNotIn(user.username, review.values())

    def test_named_review_shows_username(self) -> None:
        user, _ = self.log(review="Haunting")
        review = get_reviews_for_show(self.db, self.show.id)["reviews"][0]
        self.assertEqual(review["username"], user.username)

    def test_anonymity_is_per_entry(self) -> None:
        user = self.make_user()
        other_show = self.make_show("Cats")
        mark_seen(
            self.db,
            user.id,
            other_show.id,
            date_seen=date(2024, 3, 1),
            city="London",
            review="Loved it",
        )
        mark_seen(
            self.db,
            user.id,
            self.show.id,
            date_seen=date(2024, 3, 2),
            city="London",
            review="Too long",
            is_anonymous=True,
        )

        named = get_reviews_for_show(self.db, other_show.id)["reviews"][0]
        self.assertEqual(named["username"], user.username)
        self.assertFalse(named["is_anonymous"])

        hidden = get_reviews_for_show(self.db, self.show.id)["reviews"][0]
        self.assertEqual(hidden["username"], ANONYMOUS_USERNAME)
        self.assertTrue(hidden["is_anonymous"])


class TestSpoilerGating(ReviewCase):
    def test_spoiler_hidden_until_revealed(self) -> None:
        _, entry = self.log(review="The ghost is his father", contains_spoilers=True)

        hidden = get_reviews_for_show(self.db, self.show.id)["reviews"][0]
        self.assertIsNone(hidden["review"])
        self.assertTrue(hidden["spoiler_hidden"])

        state = SpoilerRevealState()
        state.toggle(entry.id)
        shown = get_reviews_for_show(self.db, self.show.id, reveal_state=state)["reviews"][0]
        self.assertEqual(shown["review"], "The ghost is his father")
        self.assertFalse(shown["spoiler_hidden"])

        state.toggle(entry.id)
        hidden_again = get_reviews_for_show(self.db, self.show.id, reveal_state=state)["reviews"][0]
        self.assertIsNone(hidden_again["review"])

    def test_reveal_is_per_review(self) -> None:
        _, first = self.log(review="Spoiler one", contains_spoilers=True)
        self.log(review="Spoiler two", contains_spoilers=True, seen=date(2024, 2, 1))

        state = SpoilerRevealState([first.id])
        reviews = get_reviews_for_show(self.db, self.show.id, reveal_state=state)["reviews"]
        by_id = {r["id"]: r for r in reviews}
        self.assertEqual(by_id[first.id]["review"], "Spoiler one")
        self.assertEqual(sum(1 for r in reviews if r["spoiler_hidden"]), 1)


class TestCityFilter(ReviewCase):
    def test_city_filter_and_city_list(self) -> None:
        self.log(rating=2, review="Meh", city="Paris")
        self.log(rating=4, review="Lovely", city="London")

        payload = get_reviews_for_show(self.db, self.show.id, city_filter="Paris")
        self.assertEqual([r["review"] for r in payload["reviews"]], ["Meh"])
        self.assertEqual(payload["cities"], ["London", "Paris"])
        # rating summary ignores the filter
        self.assertEqual(payload["rating"]["average"], 3.0)

    def test_newest_performance_first(self) -> None:
        self.log(review="Older", seen=date(2023, 1, 1))
        self.log(review="Newer", seen=date(2024, 1, 1))
        reviews = get_reviews_for_show(self.db, self.show.id)["reviews"]
        self.assertEqual([r["review"] for r in reviews], ["Newer", "Older"])
