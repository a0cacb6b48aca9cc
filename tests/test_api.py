"""Tests for the HTTP endpoints."""
import os
import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from fastapi.testclient import TestClient

from database.models.player import Player
from src.api.app import create_app
from src.errors import UpstreamUnavailable
from tests.fakes import (
    FakeClashClient,
    attack,
    league_group,
    make_config,
    make_db,
    member,
    snapshot,
    war,
    war_member,
)


class ApiTestCase(unittest.TestCase):

    def setUp(self):
        self.db = make_db()
        self.fake = FakeClashClient(
            members=[member("#A", role="leader", name="Alice"), member("#B", name="Bob")],
            players={"#A": snapshot("#A"), "#B": snapshot("#B")},
        )
        self.app = create_app(config=make_config(), db=self.db, client=self.fake)
        self.store = self.app.state.store
        self.client = TestClient(self.app)

    def seed(self, tag, name, role, highest_role, **fields):
        self.store.upsert(Player(tag=tag, name=name, role=role, highest_role=highest_role, **fields))


class TestUpdateData(ApiTestCase):

    def test_returns_accepted_and_syncs_in_background(self):
        resp = self.client.get("/update-data")

        self.assertEqual(resp.status_code, 202)
        self.assertIn("Update process started", resp.json()["message"])
        # TestClient runs background tasks before returning
        self.assertEqual(self.store.count(), 2)
        self.assertEqual(self.store.get("#A").highest_role, "leader")

    def test_post_is_accepted_too(self):
        self.assertEqual(self.client.post("/update-data").status_code, 202)

    def test_upstream_failure_still_returns_accepted(self):
        self.fake.members_error = UpstreamUnavailable("Could not fetch clan member list.")

        resp = self.client.get("/update-data")

        self.assertEqual(resp.status_code, 202)
        self.assertEqual(self.store.count(), 0)


class TestTrackedClanData(ApiTestCase):

    def test_empty_database(self):
        resp = self.client.get("/tracked-clan-data")

        self.assertEqual(resp.status_code, 404)
        self.assertIn("/update-data", resp.json()["error"])

    def test_roster_ordered_by_highest_role(self):
        seen = datetime(2026, 2, 1, tzinfo=timezone.utc)
        self.seed("#B", "Bob", "member", "member", trophies=900)
        self.seed("#A", "Alice", "admin", "coLeader", trophies=1500, last_seen_active=seen)
        self.seed("#C", "Carl", "leader", "leader")

        resp = self.client.get("/tracked-clan-data")

        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual([p["tag"] for p in data], ["#C", "#A", "#B"])
        self.assertEqual(data[1], {
            "tag": "#A",
            "name": "Alice",
            "currentRoleName": "Elder",
            "highestRoleName": "Co-Leader",
            "sortOrder": 2,
            "trophies": 1500,
            "lastSeenActive": "2026-02-01T00:00:00+00:00",
        })

    def test_live_filter_hides_departed_players(self):
        self.seed("#A", "Alice", "leader", "leader")
        self.seed("#GONE", "Gone", "member", "coLeader")

        cached = self.client.get("/tracked-clan-data").json()
        live = self.client.get("/tracked-clan-data?live=true").json()

        self.assertEqual(len(cached), 2)
        self.assertEqual([p["tag"] for p in live], ["#A"])


class TestPlayer(ApiTestCase):

    def test_player_by_tag_without_hash(self):
        self.seed("#2PP", "Bob", "member", "admin", donations=12)

        resp = self.client.get("/player/2PP")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["highestRole"], "admin")
        self.assertEqual(resp.json()["donations"], 12)

    def test_player_by_encoded_tag(self):
        self.seed("#2PP", "Bob", "member", "member")

        self.assertEqual(self.client.get("/player/%232pp").status_code, 200)

    def test_player_not_found(self):
        resp = self.client.get("/player/NOPE")

        self.assertEqual(resp.status_code, 404)
        self.assertIn("#NOPE", resp.json()["error"])


class TestCwlStats(ApiTestCase):

    def test_stats_for_live_roster(self):
        self.fake.group = league_group(["#W1"])
        self.fake.wars = {"#W1": war(
            "warEnded",
            ours=[
                war_member("#A", [attack("#E1", 2, 80), attack("#E2", 3, 95)]),
                war_member("#B"),
                war_member("#LEFT", [attack("#E3", 3, 100)]),
            ],
            theirs=[war_member("#E1", [attack("#B", 1, 50)])],
        )}

        resp = self.client.get("/cwl-stats")

        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual([p["tag"] for p in data["players"]], ["#A", "#B"])
        self.assertEqual(data["players"][0]["avgDestruction"], 87.5)
        self.assertEqual(data["players"][1]["missedAttacks"], 1)
        self.assertEqual(data["players"][1]["netStars"], -1)
        self.assertEqual(data["summary"]["totalStars"], 5)
        self.assertEqual(data["summary"]["totalMissedAttacks"], 1)

    def test_not_in_league(self):
        self.fake.group = None

        resp = self.client.get("/cwl-stats")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "notInLeague")

    def test_not_in_league_even_when_member_list_fails(self):
        self.fake.group = None
        self.fake.members_error = UpstreamUnavailable("Could not fetch clan member list.")

        resp = self.client.get("/cwl-stats")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "notInLeague")

    def test_member_list_failure_in_league_is_a_generic_error(self):
        self.fake.group = league_group(["#W1"])
        self.fake.wars = {"#W1": war("warEnded", ours=[war_member("#A")], theirs=[])}
        self.fake.members_error = UpstreamUnavailable("Could not fetch clan member list.")

        self.assertEqual(self.client.get("/cwl-stats").status_code, 502)

    def test_league_data_unavailable(self):
        self.fake.group = league_group(["#0"])

        resp = self.client.get("/cwl-stats")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "leagueDataUnavailable")

    def test_war_fetch_failure_is_a_generic_error(self):
        self.fake.group = league_group(["#W1"])
        self.fake.failing_wars = {"#W1"}

        resp = self.client.get("/cwl-stats")

        self.assertEqual(resp.status_code, 502)
        self.assertNotIn("players", resp.json())


class TestAppFactory(unittest.TestCase):

    def test_database_comes_from_config_not_environment(self):
        config = make_config(database_url="sqlite://")

        with patch.dict(os.environ, {"DATABASE_URL": "sqlite:///should-not-be-used.db"}):
            app = create_app(config=config, client=FakeClashClient())

        self.assertEqual(app.state.db.database_url, "sqlite://")
        self.assertEqual(TestClient(app).get("/health").status_code, 200)


class TestHealth(ApiTestCase):

    def test_health(self):
        resp = self.client.get("/health")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
