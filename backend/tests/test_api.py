"""
StackIt Backend — API Endpoint Tests
=====================================

What:  End-to-end tests through the FastAPI app (middleware, identity header,
       exception handlers, camelCase serialization).
How:   httpx.AsyncClient over ASGITransport; users are registered through
       POST /api/users like a real client would.

What we test:
    ✅ Health check reports the database
    ✅ Protected routes need a known X-User-ID (401)
    ✅ Error body shape and status codes (400, 403, 404, 409, 422)
    ✅ Vote / accept / notification endpoints speak camelCase
    ✅ Per-user question / answer lists and user stats
    ✅ Store failures become an opaque 500 and roll the request back
"""

import uuid

import pytest


async def _register(client, username: str) -> dict:
    response = await client.post(
        "/api/users", json={"username": username, "email": f"{username}@example.com"}
    )
    assert response.status_code == 201
    return response.json()


def _as(user: dict) -> dict:
    return {"X-User-ID": user["id"]}


async def _ask(client, user: dict) -> dict:
    response = await client.post(
        "/api/questions",
        json={
            "title": "How to implement JWT authentication in React?",
            "description": "Where should the access token live between page loads?",
            "tags": ["react", "jwt"],
        },
        headers=_as(user),
    )
    assert response.status_code == 201
    return response.json()


async def _answer(client, user: dict, question_id: str) -> dict:
    response = await client.post(
        "/api/answers",
        json={"content": "Keep it in memory; refresh via cookie.", "questionId": question_id},
        headers=_as(user),
    )
    assert response.status_code == 201
    return response.json()


class TestHealthAndUsers:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_duplicate_username_conflict(self, test_client):
        await _register(test_client, "alice")
        response = await test_client.post(
            "/api/users", json={"username": "alice", "email": "other@example.com"}
        )

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_profile_counts(self, test_client):
        alice = await _register(test_client, "alice")
        await _ask(test_client, alice)

        response = await test_client.get(f"/api/users/{alice['id']}")

        assert response.status_code == 200
        assert response.json()["questionCount"] == 1
        assert response.json()["answerCount"] == 0


class TestIdentity:

    @pytest.mark.asyncio
    async def test_missing_header_unauthorized(self, test_client):
        response = await test_client.get("/api/notifications")

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "unauthorized"
        assert "request_id" in body

    @pytest.mark.asyncio
    async def test_unknown_user_unauthorized(self, test_client):
        response = await test_client.get(
            "/api/notifications", headers={"X-User-ID": str(uuid.uuid4())}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_malformed_user_id_unauthorized(self, test_client):
        response = await test_client.get("/api/notifications", headers={"X-User-ID": "nope"})
        assert response.status_code == 401


class TestVotingEndpoints:

    @pytest.mark.asyncio
    async def test_vote_toggle_on_answer(self, test_client):
        alice = await _register(test_client, "alice")
        bob = await _register(test_client, "bob")
        question = await _ask(test_client, alice)
        answer = await _answer(test_client, bob, question["id"])

        response = await test_client.post(
            f"/api/answers/{answer['id']}/vote", json={"voteType": "upvote"}, headers=_as(alice)
        )
        assert response.status_code == 200
        assert response.json() == {"voteCount": 1, "hasUpvoted": True, "hasDownvoted": False}

        response = await test_client.post(
            f"/api/answers/{answer['id']}/vote", json={"voteType": "downvote"}, headers=_as(alice)
        )
        assert response.json() == {"voteCount": -1, "hasUpvoted": False, "hasDownvoted": True}

        response = await test_client.delete(
            f"/api/answers/{answer['id']}/vote",
            params={"voteType": "downvote"},
            headers=_as(alice),
        )
        assert response.json() == {"voteCount": 0, "hasUpvoted": False, "hasDownvoted": False}

    @pytest.mark.asyncio
    async def test_self_vote_forbidden(self, test_client):
        alice = await _register(test_client, "alice")
        question = await _ask(test_client, alice)

        response = await test_client.post(
            f"/api/questions/{question['id']}/vote",
            json={"voteType": "upvote"},
            headers=_as(alice),
        )
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

        detail = await test_client.get(f"/api/questions/{question['id']}")
        assert detail.json()["voteCount"] == 0

    @pytest.mark.asyncio
    async def test_invalid_vote_type_rejected(self, test_client):
        alice = await _register(test_client, "alice")
        bob = await _register(test_client, "bob")
        question = await _ask(test_client, alice)

        response = await test_client.post(
            f"/api/questions/{question['id']}/vote",
            json={"voteType": "sideways"},
            headers=_as(bob),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_vote_on_missing_question(self, test_client):
        bob = await _register(test_client, "bob")

        response = await test_client.post(
            f"/api/questions/{uuid.uuid4()}/vote", json={"voteType": "upvote"}, headers=_as(bob)
        )
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestAnswerEndpoints:

    @pytest.mark.asyncio
    async def test_accept_flow(self, test_client):
        alice = await _register(test_client, "alice")
        bob = await _register(test_client, "bob")
        question = await _ask(test_client, alice)
        answer = await _answer(test_client, bob, question["id"])

        denied = await test_client.post(f"/api/answers/{answer['id']}/accept", headers=_as(bob))
        assert denied.status_code == 403

        response = await test_client.post(
            f"/api/answers/{answer['id']}/accept", headers=_as(alice)
        )
        assert response.status_code == 200
        assert response.json()["isAccepted"] is True

        detail = await test_client.get(f"/api/questions/{question['id']}")
        assert detail.json()["isAccepted"] is True
        listing = await test_client.get(f"/api/answers/question/{question['id']}")
        assert listing.json()["data"][0]["isAccepted"] is True

    @pytest.mark.asyncio
    async def test_short_answer_is_400(self, test_client):
        alice = await _register(test_client, "alice")
        bob = await _register(test_client, "bob")
        question = await _ask(test_client, alice)

        response = await test_client.post(
            "/api/answers",
            json={"content": "short", "questionId": question["id"]},
            headers=_as(bob),
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["field"] == "content"

    @pytest.mark.asyncio
    async def test_duplicate_answer_is_409(self, test_client):
        alice = await _register(test_client, "alice")
        bob = await _register(test_client, "bob")
        question = await _ask(test_client, alice)
        await _answer(test_client, bob, question["id"])

        response = await test_client.post(
            "/api/answers",
            json={"content": "A second attempt at answering.", "questionId": question["id"]},
            headers=_as(bob),
        )
        assert response.status_code == 409


class TestNotificationEndpoints:

    @pytest.mark.asyncio
    async def test_notification_lifecycle(self, test_client):
        alice = await _register(test_client, "alice")
        bob = await _register(test_client, "bob")
        question = await _ask(test_client, alice)
        await _answer(test_client, bob, question["id"])

        count = await test_client.get("/api/notifications/unread-count", headers=_as(alice))
        assert count.json() == {"unreadCount": 1}

        listing = await test_client.get(
            "/api/notifications", params={"unreadOnly": "true"}, headers=_as(alice)
        )
        body = listing.json()
        assert body["unreadCount"] == 1
        notification = body["data"][0]
        assert notification["type"] == "answer"
        assert notification["sender"]["username"] == "bob"
        assert notification["metadata"]["questionTitle"] == question["title"]

        # bob cannot touch alice's notification
        foreign = await test_client.put(
            "/api/notifications/mark-read",
            json={"notificationIds": [notification["id"]]},
            headers=_as(bob),
        )
        assert foreign.status_code == 200
        count = await test_client.get("/api/notifications/unread-count", headers=_as(alice))
        assert count.json()["unreadCount"] == 1

        marked = await test_client.put(
            "/api/notifications/mark-read",
            json={"notificationIds": [notification["id"]]},
            headers=_as(alice),
        )
        assert marked.json()["unreadCount"] == 0

        deleted = await test_client.delete(
            f"/api/notifications/{notification['id']}", headers=_as(bob)
        )
        assert deleted.status_code == 404

        deleted = await test_client.delete(
            f"/api/notifications/{notification['id']}", headers=_as(alice)
        )
        assert deleted.status_code == 200

    @pytest.mark.asyncio
    async def test_mark_all_read(self, test_client):
        alice = await _register(test_client, "alice")
        bob = await _register(test_client, "bob")
        question = await _ask(test_client, alice)
        await _answer(test_client, bob, question["id"])

        response = await test_client.put("/api/notifications/mark-all-read", headers=_as(alice))

        assert response.status_code == 200
        assert response.json()["unreadCount"] == 0


class TestUserActivityEndpoints:

    @pytest.mark.asyncio
    async def test_user_question_and_answer_lists(self, test_client):
        alice = await _register(test_client, "alice")
        bob = await _register(test_client, "bob")
        question = await _ask(test_client, alice)
        answer = await _answer(test_client, bob, question["id"])

        # literal "user" segment must not be parsed as a question / answer id
        asked = await test_client.get(f"/api/questions/user/{alice['id']}")
        assert asked.status_code == 200
        assert [q["id"] for q in asked.json()["data"]] == [question["id"]]
        assert asked.json()["pagination"]["total"] == 1

        answered = await test_client.get(f"/api/answers/user/{bob['id']}")
        assert answered.status_code == 200
        assert [a["id"] for a in answered.json()["data"]] == [answer["id"]]
        assert answered.json()["data"][0]["questionId"] == question["id"]

        empty = await test_client.get(f"/api/answers/user/{alice['id']}")
        assert empty.json()["data"] == []

    @pytest.mark.asyncio
    async def test_user_stats(self, test_client):
        alice = await _register(test_client, "alice")
        bob = await _register(test_client, "bob")
        carol = await _register(test_client, "carol")
        question = await _ask(test_client, alice)
        answer = await _answer(test_client, bob, question["id"])

        await test_client.post(
            f"/api/questions/{question['id']}/vote", json={"voteType": "upvote"}, headers=_as(carol)
        )
        await test_client.post(
            f"/api/answers/{answer['id']}/vote", json={"voteType": "upvote"}, headers=_as(alice)
        )
        await test_client.post(
            f"/api/answers/{answer['id']}/vote", json={"voteType": "downvote"}, headers=_as(carol)
        )
        await test_client.post(f"/api/answers/{answer['id']}/accept", headers=_as(alice))

        response = await test_client.get(f"/api/users/{bob['id']}/stats")
        assert response.status_code == 200
        assert response.json() == {
            "questionCount": 0,
            "answerCount": 1,
            "totalVotes": 0,
            "acceptedAnswers": 1,
            "reputation": 0,
        }

        response = await test_client.get(f"/api/users/{alice['id']}/stats")
        assert response.json()["questionCount"] == 1
        assert response.json()["totalVotes"] == 1

    @pytest.mark.asyncio
    async def test_stats_for_unknown_user(self, test_client):
        response = await test_client.get(f"/api/users/{uuid.uuid4()}/stats")
        assert response.status_code == 404


class TestStorageFailure:

    @pytest.mark.asyncio
    async def test_store_error_is_opaque_500(self, test_client, monkeypatch):
        from sqlalchemy.exc import OperationalError

        from app.services.question_service import question_service

        async def broken_list(*args, **kwargs):
            raise OperationalError(
                "SELECT questions.id FROM questions", {}, Exception("disk I/O error")
            )

        monkeypatch.setattr(question_service, "list_questions", broken_list)

        response = await test_client.get("/api/questions")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "details" not in body
        assert "request_id" in body
        assert "disk I/O" not in response.text
        assert "SELECT" not in response.text

    @pytest.mark.asyncio
    async def test_store_error_rolls_back(self, test_client, monkeypatch):
        from sqlalchemy.exc import OperationalError

        from app.services.notification_service import notification_service

        alice = await _register(test_client, "alice")

        async def broken_dispatch(*args, **kwargs):
            raise OperationalError("INSERT INTO notifications", {}, Exception("disk full"))

        monkeypatch.setattr(notification_service, "dispatch_answer", broken_dispatch)
        bob = await _register(test_client, "bob")
        question = await _ask(test_client, alice)

        response = await test_client.post(
            "/api/answers",
            json={"content": "This answer never gets stored.", "questionId": question["id"]},
            headers=_as(bob),
        )
        assert response.status_code == 500
        assert response.json()["error"] == "server_error"

        listing = await test_client.get(f"/api/answers/question/{question['id']}")
        assert listing.json()["data"] == []
