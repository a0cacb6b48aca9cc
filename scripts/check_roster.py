"""
Quick script to check the cached clan roster from the database.

Usage:
    python -m scripts.check_roster
    python -m scripts.check_roster "#2PP"
"""

import sys
from dotenv import load_dotenv

load_dotenv()


def check_roster():
    """Print every stored player, highest role first."""
    from database import PlayerStore, role_display_name

    players = PlayerStore().list(order_by="role")

    print("\n" + "=" * 60)
    print(f"🔍 ROSTER CHECK: {len(players)} players")
    print("=" * 60)

    if not players:
        print("\n❌ Database is empty! Run the /update-data endpoint or scripts.run_sync first.")
        return

    by_role = {}
    for player in players:
        by_role.setdefault(role_display_name(player.highest_role), []).append(player)

    for role_name, members in by_role.items():
        print(f"\n📍 {role_name}:")
        for p in members:
            last_seen = p.last_seen_active.strftime('%Y-%m-%d %H:%M') if p.last_seen_active else '?'
            print(f"   • {p.name} ({p.tag}) TH{p.town_hall_level}, {p.trophies} trophies, last active {last_seen}")


def check_player(tag: str):
    """Print one stored player record."""
    from config import normalize_tag
    from database import PlayerStore

    record = PlayerStore().get(normalize_tag(tag))
    if record is None:
        print(f"\n❌ Player {tag} not found in the database.")
        return

    print(f"\n✅ {record.name} ({record.tag}):\n")
    for key, value in record.to_dict().items():
        print(f"   {key}: {value}")


def main():
    if len(sys.argv) > 1:
        check_player(sys.argv[1])
    else:
        check_roster()


if __name__ == "__main__":
    main()
