"""HTTP tests for the inbound message endpoint."""

from __future__ import annotations

import unittest
from uuid import uuid4

from fastapi.testclient import TestClient

from profile_bot.main import app


class MessagesApiTestCase(unittest.TestCase):
    """Round trip of turns through /api/v1/messages."""

    def setUp(self) -> None:
        self.conversation_id = f"conv-{uuid4()}"

    def post_turn(self, client: TestClient, text: str, **params: str) -> dict:
        response = client.post(
            "/api/v1/messages",
            params=params,
            json={"conversation_id": self.conversation_id, "sender_id": "alfred", "text": text},
        )
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()

    def test_health_check(self) -> None:
        with TestClient(app) as client:
            response = client.get("/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_turns_advance_the_dialog(self) -> None:
        with TestClient(app) as client:
            first = self.post_turn(client, "hello")
            second = self.post_turn(client, "Car")
            third = self.post_turn(client, "Alfred")

        self.assertEqual(
            [reply["text"] for reply in first["replies"]],
            ["Please enter your mode of transport. (1) Car, (2) Bus, or (3) Bicycle"],
        )
        self.assertEqual([reply["text"] for reply in second["replies"]], ["Please enter your name."])
        self.assertEqual(
            [reply["text"] for reply in third["replies"]],
            ["Thanks Alfred.", "Do you want to give your age? (1) Yes or (2) No"],
        )
        self.assertEqual(third["replies"][0]["recipient_id"], "alfred")
        self.assertEqual(third["replies"][0]["conversation_id"], self.conversation_id)

    def test_variant_synonym_is_accepted(self) -> None:
        with TestClient(app) as client:
            payload = self.post_turn(client, "hello", variant="singleton")

        self.assertEqual(len(payload["replies"]), 1)

    def test_unknown_variant_is_rejected(self) -> None:
        with TestClient(app) as client:
            response = client.post(
                "/api/v1/messages",
                params={"variant": "teleport"},
                json={"conversation_id": self.conversation_id, "sender_id": "alfred", "text": "hello"},
            )

        self.assertEqual(response.status_code, 404)

    def test_missing_conversation_id_is_rejected(self) -> None:
        with TestClient(app) as client:
            response = client.post("/api/v1/messages", json={"sender_id": "alfred", "text": "hello"})

        self.assertEqual(response.status_code, 422)


if __name__ == "__main__":
    unittest.main()
