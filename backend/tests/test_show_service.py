from uuid import uuid4

from sqlite_case import SqliteServiceCase

from theater_tracker.db.models import ApprovalStatusEnum
from theater_tracker.services.notification_service import NotificationType
from theater_tracker.services.show_service import (
    DuplicateTitleError,
    InvalidShowPayloadError,
    InvalidShowTransitionError,
    ShowNotFoundError,
    approve_show,
    get_show,
    list_approved_shows,
    list_pending_shows,
    normalize_title,
    reject_show,
    submit_show,
)


class TestShowHelpers(SqliteServiceCase):
    def test_normalize_title_collapses_spaces(self) -> None:
        self.assertEqual(normalize_title("  The   Lion  King "), "The Lion King")

    def test_submit_rejects_blank_title(self) -> None:
        submitter = self.make_user()
        with self.assertRaises(InvalidShowPayloadError):
            submit_show(self.db, submitter, title="   ", photo_url="https://x/y.jpg")


class TestShowLifecycle(SqliteServiceCase):
    def test_submitted_show_is_pending_and_hidden_from_browse(self) -> None:
        submitter = self.make_user()
        show = submit_show(self.db, submitter, title="Hamlet", photo_url="https://x/hamlet.jpg")

        self.assertEqual(show.approval_status, ApprovalStatusEnum.PENDING)
        self.assertEqual(show.submitter_email, submitter.email)
        self.assertEqual(list_approved_shows(self.db), [])
        self.assertEqual([s.title for s in list_pending_shows(self.db)], ["Hamlet"])

    def test_approve_makes_show_browsable(self) -> None:
        submitter = self.make_user()
        show = submit_show(self.db, submitter, title="Hamlet", photo_url="https://x/hamlet.jpg")

        approve_show(self.db, show.id)

        self.assertEqual([s.title for s in list_approved_shows(self.db)], ["Hamlet"])
        self.assertEqual(list_pending_shows(self.db), [])

    def test_rejected_show_never_browsable(self) -> None:
        submitter = self.make_user()
        show = submit_show(self.db, submitter, title="Hamlet", photo_url="https://x/hamlet.jpg")

        reject_show(self.db, show.id)

        self.assertEqual(list_approved_shows(self.db), [])
        self.assertEqual(list_approved_shows(self.db, "ham"), [])

    def test_reviewed_show_cannot_transition_again(self) -> None:
        show = self.make_show(status=ApprovalStatusEnum.REJECTED)
        with self.assertRaises(InvalidShowTransitionError):
            approve_show(self.db, show.id)

    def test_duplicate_title_is_rejected(self) -> None:
        submitter = self.make_user()
        submit_show(self.db, submitter, title="Hamlet", photo_url="https://x/a.jpg")
        with self.assertRaises(DuplicateTitleError):
            submit_show(self.db, submitter, title="Hamlet", photo_url="https://x/b.jpg")

    def test_titles_differing_in_case_are_distinct(self) -> None:
        submitter = self.make_user()
        submit_show(self.db, submitter, title="Hamlet", photo_url="https://x/a.jpg")
        show = submit_show(self.db, submitter, title="HAMLET", photo_url="https://x/b.jpg")
        self.assertEqual(show.title, "HAMLET")

    def test_approve_missing_show_raises_not_found(self) -> None:
        with self.assertRaises(ShowNotFoundError):
            approve_show(self.db, uuid4())


class TestShowBrowse(SqliteServiceCase):
    def test_search_is_case_insensitive_and_sorted(self) -> None:
        self.make_show("Wicked")
        self.make_show("The Wiz")
        self.make_show("Cats")
        self.make_show("Wild Party", status=ApprovalStatusEnum.PENDING)

        titles = [s.title for s in list_approved_shows(self.db, "wi")]
        self.assertEqual(titles, ["The Wiz", "Wicked"])

    def test_pending_show_visible_only_to_admin_and_submitter(self) -> None:
        submitter = self.make_user()
        admin = self.make_user(is_admin=True)
        stranger = self.make_user()
        show = self.make_show(status=ApprovalStatusEnum.PENDING, submitter=submitter)

        self.assertEqual(get_show(self.db, show.id, submitter).id, show.id)
        self.assertEqual(get_show(self.db, show.id, admin).id, show.id)
        with self.assertRaises(ShowNotFoundError):
            get_show(self.db, show.id, stranger)
        with self.assertRaises(ShowNotFoundError):
            get_show(self.db, show.id, None)


class TestShowNotifications(SqliteServiceCase):
    def test_submit_notifies_first_admin(self) -> None:
        admin = self.make_user(is_admin=True)
        submitter = self.make_user()

        submit_show(self.db, submitter, title="Hamlet", photo_url="https://x/a.jpg")

        notification = self.send_notification.call_args.args[0]
        self.assertEqual(notification.type, NotificationType.NEW_SHOW)
        self.assertEqual(notification.show_title, "Hamlet")
        self.assertEqual(notification.recipient_email, admin.email)

    def test_approve_notifies_submitter(self) -> None:
        submitter = self.make_user()
        show = self.make_show(status=ApprovalStatusEnum.PENDING, submitter=submitter)

        approve_show(self.db, show.id)

        notification = self.send_notification.call_args.args[0]
        self.assertEqual(notification.type, NotificationType.SHOW_APPROVED)
        self.assertEqual(notification.recipient_email, submitter.email)

    def test_notification_failure_does_not_fail_submit_or_approve(self) -> None:
        self.send_notification.side_effect = RuntimeError("provider down")
        submitter = self.make_user()

        with self.assertLogs("theater_tracker.services.show_service", level="ERROR"):
            show = submit_show(self.db, submitter, title="Hamlet", photo_url="https://x/a.jpg")
        with self.assertLogs("theater_tracker.services.show_service", level="ERROR"):
            approved = approve_show(self.db, show.id)

        self.assertEqual(approved.approval_status, ApprovalStatusEnum.APPROVED)

    def test_reject_sends_nothing(self) -> None:
        show = self.make_show(status=ApprovalStatusEnum.PENDING)
        reject_show(self.db, show.id)
        self.send_notification.assert_not_called()
