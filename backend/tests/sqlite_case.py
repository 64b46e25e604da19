import unittest
from itertools import count
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from theater_tracker.db.models import ApprovalStatusEnum, Base, Show, User

_seq = count(1)


class SqliteServiceCase(unittest.TestCase):
    """Runs service functions against a throwaway in-memory database."""

    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.db = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )()

        # Keep catalog operations from reaching the email provider
        notifier = patch("theater_tracker.services.show_service.send_show_notification")
        self.send_notification = notifier.start()
        self.addCleanup(notifier.stop)

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def make_user(self, username: str | None = None, is_admin: bool = False) -> User:
        n = next(_seq)
        user = User(
            username=username or f"user{n}",
            email=f"{username or 'user'}{n}@example.com",
            password_hash="not-a-real-hash",
            is_admin=is_admin,
        )
        self.db.add(user)
        self.db.commit()
        return user

    def make_show(
        self,
        title: str | None = None,
        status: ApprovalStatusEnum = ApprovalStatusEnum.APPROVED,
        submitter: User | None = None,
    ) -> Show:
        show = Show(
            title=title or f"Show {next(_seq)}",
            photo_url="https://img.example.com/poster.jpg",
            approval_status=status,
            created_by=submitter.id if submitter else None,
            submitter_email=submitter.email if submitter else None,
        )
        self.db.add(show)
        self.db.commit()
        return show
