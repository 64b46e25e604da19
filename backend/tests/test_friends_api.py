import unittest
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import patch
from uuid import uuid4

from fastapi.testclient import TestClient

from theater_tracker.db.session import get_db
from theater_tracker.deps.auth import get_current_user
from theater_tracker.main import app
from theater_tracker.services.friendship_service import (
    DuplicateRequestError,
    FriendshipNotFoundError,
    NotAddresseeError,
    SelfFriendshipError,
)


def _edge(status: str = "pending", **overrides) -> dict:
    base = {
        "id": uuid4(),
        "requester_id": uuid4(),
        "addressee_id": uuid4(),
        "status": status,
        "user_id": uuid4(),
        "username": "jamie",
        "created_at": datetime.now(timezone.utc),
    }
    base.update(overrides)
    return base


class TestFriendsApi(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)
        app.dependency_overrides[get_db] = lambda: iter([object()])
        self.user_id = uuid4()
        app.dependency_overrides[get_current_user] = lambda: SimpleNamespace(id=self.user_id)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_friends_require_auth(self) -> None:
        app.dependency_overrides.pop(get_current_user)
        self.assertEqual(self.client.get("/friends").status_code, 401)

    def test_send_request_201(self) -> None:
        target = uuid4()
        with patch(
            "theater_tracker.api.friends.send_request",
            return_value=_edge(requester_id=self.user_id, addressee_id=target),
        ) as mocked:
            response = self.client.post("/friends/requests", json={"user_id": str(target)})

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["status"], "pending")
        self.assertEqual(mocked.call_args.args[1:], (self.user_id, target))

    def test_send_request_maps_duplicate(self) -> None:
        with patch(
            "theater_tracker.api.friends.send_request",
            side_effect=DuplicateRequestError("A friend request already exists between you"),
        ):
            response = self.client.post("/friends/requests", json={"user_id": str(uuid4())})

        self.assertEqual(response.status_code, 409)

    def test_send_request_maps_self_request(self) -> None:
        with patch(
            "theater_tracker.api.friends.send_request",
            side_effect=SelfFriendshipError("no"),
        ):
            response = self.client.post("/friends/requests", json={"user_id": str(self.user_id)})

        self.assertEqual(response.status_code, 400)

    def test_accept_maps_not_addressee(self) -> None:
        with patch(
            "theater_tracker.api.friends.accept_request",
            side_effect=NotAddresseeError("Only the recipient can accept this request"),
        ):
            response = self.client.post(f"/friends/requests/{uuid4()}/accept")

        self.assertEqual(response.status_code, 403)

    def test_accept_returns_edge(self) -> None:
        with patch(
            "theater_tracker.api.friends.accept_request",
            return_value=_edge(status="accepted"),
        ):
            response = self.client.post(f"/friends/requests/{uuid4()}/accept")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "accepted")

    def test_reject_204(self) -> None:
        with patch("theater_tracker.api.friends.reject_request", return_value=True):
            response = self.client.delete(f"/friends/requests/{uuid4()}")

        self.assertEqual(response.status_code, 204)

    def test_remove_friend_maps_not_found(self) -> None:
        with patch(
            "theater_tracker.api.friends.remove_friend",
            side_effect=FriendshipNotFoundError("missing"),
        ):
            response = self.client.delete(f"/friends/{uuid4()}")

        self.assertEqual(response.status_code, 404)

    def test_incoming_and_outgoing_lists(self) -> None:
        with patch(
            "theater_tracker.api.friends.list_incoming_requests",
            return_value=[_edge()],
        ), patch(
            "theater_tracker.api.friends.list_outgoing_requests",
            return_value=[],
        ):
            incoming = self.client.get("/friends/requests/incoming")
            outgoing = self.client.get("/friends/requests/outgoing")

        self.assertEqual(len(incoming.json()), 1)
        self.assertEqual(outgoing.json(), [])

    def test_search_excludes_caller(self) -> None:
        with patch(
            "theater_tracker.api.friends.search_users",
            return_value=[
                {
                    "id": uuid4(),
                    "username": "jamie",
                    "friendship_status": "request_received",
                    "friendship_id": uuid4(),
                }
            ],
        ) as mocked:
            response = self.client.get("/friends/search", params={"q": "jam"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()[0]["friendship_status"], "request_received")
        self.assertEqual(mocked.call_args.kwargs["exclude_user_id"], self.user_id)

    def test_search_requires_query(self) -> None:
        self.assertEqual(self.client.get("/friends/search").status_code, 422)
