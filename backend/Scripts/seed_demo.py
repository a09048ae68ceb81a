# Usage:
#   python Scripts/seed_demo.py manager@example.com
#   python Scripts/seed_demo.py manager@example.com --group "Premier League 25/26"

import argparse

from lms_manager.core.errors import DuplicateNameError
from lms_manager.core.scope import ManagerScope
from lms_manager.db.init_db import init_db
from lms_manager.db.session import SessionLocal
from lms_manager.services import pools

TEAMS = [
    "Arsenal", "Aston Villa", "Bournemouth", "Brentford", "Brighton",
    "Burnley", "Chelsea", "Crystal Palace", "Everton", "Fulham",
    "Leeds", "Liverpool", "Man City", "Man Utd", "Newcastle",
    "Nottm Forest", "Sunderland", "Tottenham", "West Ham", "Wolves",
]

PLAYERS = ["Alice", "Bob", "Carla", "Dev", "Eve"]


def run():
    ap = argparse.ArgumentParser()
    ap.add_argument("manager_email")
    ap.add_argument("--group", default="Premier League 25/26")
    args = ap.parse_args()

    init_db()
    db = SessionLocal()
    scope = ManagerScope.of(args.manager_email)

    try:
        g = pools.create_group(db, scope, args.group, TEAMS)
        print(f"Seed GROUP OK: {g.name} ({len(g.teams)} teams) id={g.id}")
    except DuplicateNameError:
        print(f"Group already seeded for {scope.manager_email}: {args.group}")

    created = 0
    for name in PLAYERS:
        try:
            pools.create_player(db, scope, name)
            created += 1
        except DuplicateNameError:
            continue
    db.close()
    print(f"Seed PLAYERS OK ({created} new) for {scope.manager_email}")


if __name__ == "__main__":
    run()
