"""Tests for the roster sync engine and the update cycle around it."""
import asyncio
import unittest

from database.enums import role_rank
from database.models.player import Player
from database.services.player_store import PlayerStore
from src.errors import StoreFailure, UpstreamUnavailable
from src.services.roster_sync import RosterSyncService
from src.services.roster_update import RosterUpdateService
from tests.fakes import FakeClashClient, FakeClock, T0, make_config, make_db, member, snapshot


class RosterSyncTestCase(unittest.TestCase):

    def setUp(self):
        self.config = make_config()
        self.db = make_db()
        self.store = PlayerStore(self.db)
        self.clock = FakeClock()
        self.service = RosterSyncService(self.config, clock=self.clock)

    def sync(self, members, client):
        return asyncio.run(self.service.synchronize(members, client.fetch_player, self.store))


class TestHighestRole(RosterSyncTestCase):

    def test_demotion_keeps_highest_role(self):
        client = FakeClashClient(players={"#A": snapshot("#A")})

        self.sync([member("#A", role="coLeader")], client)
        self.assertEqual(self.store.get("#A").highest_role, "coLeader")

        self.sync([member("#A", role="admin")], client)
        record = self.store.get("#A")
        self.assertEqual(record.role, "admin")
        self.assertEqual(record.highest_role, "coLeader")

    def test_promotion_raises_highest_role(self):
        client = FakeClashClient(players={"#A": snapshot("#A")})

        self.sync([member("#A", role="member")], client)
        self.sync([member("#A", role="leader")], client)

        self.assertEqual(self.store.get("#A").highest_role, "leader")

    def test_highest_role_rank_never_decreases(self):
        client = FakeClashClient(players={"#A": snapshot("#A")})
        history = ["admin", "member", "coLeader", "admin", "member", "leader", "member"]

        ranks = []
        for role in history:
            self.sync([member("#A", role=role)], client)
            record = self.store.get("#A")
            self.assertGreaterEqual(role_rank(record.highest_role), role_rank(record.role))
            ranks.append(role_rank(record.highest_role))

        self.assertEqual(ranks, sorted(ranks))
        self.assertEqual(ranks[-1], 3)


class TestLastSeenActive(RosterSyncTestCase):

    def test_activity_only_moves_when_donations_or_exp_change(self):
        client = FakeClashClient(players={"#B": snapshot("#B", donations=10, exp_level=5)})

        t1 = self.clock.now
        self.sync([member("#B")], client)
        self.assertEqual(self.store.get("#B").last_seen_active, t1)

        self.clock.advance(hours=1)
        self.sync([member("#B")], client)
        self.assertEqual(self.store.get("#B").last_seen_active, t1)

        t3 = self.clock.advance(hours=1)
        client.players["#B"] = snapshot("#B", donations=15, exp_level=5)
        self.sync([member("#B")], client)
        self.assertEqual(self.store.get("#B").last_seen_active, t3)

    def test_exp_level_change_counts_as_activity(self):
        client = FakeClashClient(players={"#B": snapshot("#B", donations=10, exp_level=5)})
        self.sync([member("#B")], client)

        t2 = self.clock.advance(days=2)
        client.players["#B"] = snapshot("#B", donations=10, exp_level=6)
        self.sync([member("#B")], client)

        self.assertEqual(self.store.get("#B").last_seen_active, t2)

    def test_new_record_uses_current_time(self):
        client = FakeClashClient(players={"#N": snapshot("#N")})
        self.clock.advance(minutes=30)

        self.sync([member("#N")], client)

        self.assertEqual(self.store.get("#N").last_seen_active, self.clock.now)

    def test_legacy_row_without_timestamp_gets_one(self):
        self.store.upsert(Player(
            tag="#L", name="Legacy", role="member", highest_role="member",
            donations=10, exp_level=5, last_seen_active=None,
        ))
        client = FakeClashClient(players={"#L": snapshot("#L", donations=10, exp_level=5)})

        self.sync([member("#L")], client)

        self.assertEqual(self.store.get("#L").last_seen_active, self.clock.now)


class TestMergedRecord(RosterSyncTestCase):

    def test_fields_come_from_snapshot_and_achievements(self):
        client = FakeClashClient(players={
            "#C": snapshot("#C", donations=42, troops=9000, spells=300, sieges=12, trophies=4100),
        })

        self.sync([member("#C", role="admin", name="Cool Guy")], client)

        data = self.store.get("#C").to_dict()
        self.assertEqual(data["name"], "Cool Guy")
        self.assertEqual(data["role"], "admin")
        self.assertEqual(data["donations"], 42)
        self.assertEqual(data["trophies"], 4100)
        self.assertEqual(data["troopDonations"], 9000)
        self.assertEqual(data["spellDonations"], 300)
        self.assertEqual(data["siegeDonations"], 12)
        self.assertEqual(data["townHallLevel"], 12)

    def test_missing_achievements_count_as_zero(self):
        client = FakeClashClient(players={"#C": snapshot("#C", achievements=[])})

        self.sync([member("#C")], client)

        record = self.store.get("#C")
        self.assertEqual(record.troop_donations, 0)
        self.assertEqual(record.siege_donations, 0)

    def test_name_is_sanitized_but_tag_is_not(self):
        client = FakeClashClient(players={"#2PP": snapshot("#2PP")})

        self.sync([member("#2PP", name="  ☆Ñinja☆ [X] ")], client)

        record = self.store.get("#2PP")
        self.assertEqual(record.tag, "#2PP")
        self.assertEqual(record.name, "inja [X]")

    def test_replaying_a_cycle_is_idempotent(self):
        client = FakeClashClient(players={"#A": snapshot("#A"), "#B": snapshot("#B", donations=3)})
        members = [member("#A", role="coLeader"), member("#B")]

        self.sync(members, client)
        first = {p.tag: p.to_dict() for p in self.store.list()}
        self.clock.advance(hours=6)
        self.sync(members, client)
        second = {p.tag: p.to_dict() for p in self.store.list()}

        self.assertEqual(first, second)


class TestFailures(RosterSyncTestCase):

    def test_failed_fetch_skips_only_that_member(self):
        client = FakeClashClient(
            players={"#A": snapshot("#A"), "#C": snapshot("#C")},
            failing_players={"#B"},
        )

        outcome = self.sync([member("#A"), member("#B"), member("#C")], client)

        self.assertCountEqual(outcome.updated, ["#A", "#C"])
        self.assertIn("#B", outcome.failed)
        self.assertIsNone(self.store.get("#B"))
        self.assertEqual(self.store.count(), 2)

    def test_failed_fetch_leaves_stored_record_stale(self):
        client = FakeClashClient(players={"#A": snapshot("#A", donations=1)})
        self.sync([member("#A")], client)

        client.failing_players.add("#A")
        self.clock.advance(hours=1)
        self.sync([member("#A", role="leader")], client)

        record = self.store.get("#A")
        self.assertEqual(record.role, "member")
        self.assertEqual(record.last_seen_active, T0)

    def test_store_failure_is_recorded_per_member(self):
        class BrokenStore(PlayerStore):
            def upsert(self, player):
                if player.tag == "#B":
                    raise StoreFailure("disk full")
                super().upsert(player)

        store = BrokenStore(self.db)
        client = FakeClashClient(players={"#A": snapshot("#A"), "#B": snapshot("#B")})

        outcome = asyncio.run(self.service.synchronize(
            [member("#A"), member("#B")], client.fetch_player, store
        ))

        self.assertEqual(outcome.updated, ["#A"])
        self.assertEqual(outcome.failed, {"#B": "disk full"})

    def test_unexpected_fetch_error_skips_only_that_member(self):
        client = FakeClashClient(players={"#A": snapshot("#A"), "#C": snapshot("#C")})

        def fetch(tag):
            if tag == "#B":
                raise RuntimeError("connection pool exhausted")
            return client.fetch_player(tag)

        outcome = asyncio.run(self.service.synchronize(
            [member("#A"), member("#B"), member("#C")], fetch, self.store
        ))

        self.assertCountEqual(outcome.updated, ["#A", "#C"])
        self.assertEqual(outcome.failed, {"#B": "connection pool exhausted"})
        self.assertIsNotNone(outcome.completed_at)
        self.assertEqual(self.store.count(), 2)

    def test_missing_snapshot_key_is_recorded_as_failure(self):
        client = FakeClashClient(players={"#A": snapshot("#A"), "#C": snapshot("#C")})

        outcome = self.sync([member("#A"), member("#B"), member("#C")], client)

        self.assertCountEqual(outcome.updated, ["#A", "#C"])
        self.assertIn("#B", outcome.failed)
        self.assertIsNone(self.store.get("#B"))

    def test_unexpected_store_error_is_recorded_per_member(self):
        class FlakyStore(PlayerStore):
            def upsert(self, player):
                if player.tag == "#A":
                    raise ValueError("bad row")
                super().upsert(player)

        store = FlakyStore(self.db)
        client = FakeClashClient(players={"#A": snapshot("#A"), "#B": snapshot("#B")})

        outcome = asyncio.run(self.service.synchronize(
            [member("#A"), member("#B")], client.fetch_player, store
        ))

        self.assertEqual(outcome.updated, ["#B"])
        self.assertEqual(outcome.failed, {"#A": "bad row"})

    def test_concurrent_fetches_are_capped(self):
        tags = [f"#P{i}" for i in range(12)]
        client = FakeClashClient(players={t: snapshot(t) for t in tags}, fetch_delay=0.02)

        outcome = self.sync([member(t) for t in tags], client)

        self.assertEqual(len(outcome.updated), 12)
        self.assertLessEqual(client.max_in_flight, self.config.max_concurrent_requests)


class TestRosterUpdateService(unittest.TestCase):

    def setUp(self):
        self.config = make_config()
        self.store = PlayerStore(make_db())

    def test_run_cycle_syncs_member_list(self):
        client = FakeClashClient(
            members=[member("#A", role="leader"), member("#B")],
            players={"#A": snapshot("#A"), "#B": snapshot("#B")},
        )
        service = RosterUpdateService(self.config, client=client, store=self.store)

        outcome = asyncio.run(service.run_cycle())

        self.assertCountEqual(outcome.updated, ["#A", "#B"])
        self.assertEqual(self.store.get("#A").highest_role, "leader")

    def test_member_list_failure_aborts_cycle(self):
        client = FakeClashClient(members_error=UpstreamUnavailable("Could not fetch clan member list."))
        service = RosterUpdateService(self.config, client=client, store=self.store)

        with self.assertRaises(UpstreamUnavailable):
            asyncio.run(service.run_cycle())
        self.assertEqual(client.player_calls, [])

    def test_background_run_swallows_cycle_failure(self):
        client = FakeClashClient(members_error=UpstreamUnavailable("Could not fetch clan member list."))
        service = RosterUpdateService(self.config, client=client, store=self.store)

        self.assertIsNone(asyncio.run(service.run_in_background()))
        self.assertEqual(self.store.count(), 0)


if __name__ == "__main__":
    unittest.main()
