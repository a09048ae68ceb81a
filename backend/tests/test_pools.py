import pytest

from lms_manager.core.errors import DuplicateNameError, InvalidStateError, NotFoundError, StorageError
from lms_manager.core.scope import ManagerScope
from lms_manager.db.session import transaction
from lms_manager.models.players import Player
from lms_manager.models.rounds import Pick
from lms_manager.models.teams import Team
from lms_manager.services import games, pools
from lms_manager.services.picks import submit_pick
from lms_manager.services.round_resolver import resolve_round
from lms_manager.services.standings import get_pick_history, get_report


def test_create_group_with_teams(db, scope):
    g = pools.create_group(db, scope, "Premier League", ["Chelsea", "Arsenal", "Chelsea"])

    assert [t.name for t in g.teams] == ["Arsenal", "Chelsea"]
    listed = pools.list_groups(db, scope)
    assert [(grp.name, n) for grp, n in listed] == [("Premier League", 2)]


def test_group_name_unique_per_manager(db, scope):
    pools.create_group(db, scope, "League")
    with pytest.raises(DuplicateNameError):
        pools.create_group(db, scope, "League")

    other = ManagerScope.of("other@example.com")
    pools.create_group(db, other, "League")
    assert len(pools.list_groups(db, other)) == 1


def test_groups_are_scoped_to_manager(db, scope, make_group):
    g = make_group()
    other = ManagerScope.of("other@example.com")
    with pytest.raises(NotFoundError):
        pools.list_teams(db, other, g.id)
    with pytest.raises(NotFoundError):
        pools.delete_group(db, other, g.id)


def test_team_crud(db, scope, make_group):
    g = make_group(["Arsenal"])
    t = pools.create_team(db, scope, g.id, "Wolves", rank=3)
    assert t.rank == 3

    with pytest.raises(DuplicateNameError):
        pools.create_team(db, scope, g.id, "Arsenal")

    t = pools.update_team(db, scope, t.id, name="Wolverhampton")
    assert t.name == "Wolverhampton"

    pools.delete_team(db, scope, t.id)
    assert [x.name for x in pools.list_teams(db, scope, g.id)] == ["Arsenal"]


def test_team_pool_frozen_while_game_is_live(db, scope, make_group):
    g = make_group(["Arsenal", "Brentford"])
    games.create_game(db, scope, "Live", ["Alice"], group_id=g.id)
    arsenal = pools.list_teams(db, scope, g.id)[0]

    with pytest.raises(InvalidStateError):
        pools.update_team(db, scope, arsenal.id, name="Gunners")
    with pytest.raises(InvalidStateError):
        pools.create_team(db, scope, g.id, "Chelsea")
    with pytest.raises(InvalidStateError):
        pools.delete_group(db, scope, g.id)


def test_delete_group_deletes_teams(db, scope, make_group):
    g = make_group(["Arsenal", "Brentford"])
    pools.delete_group(db, scope, g.id)

    assert db.query(Team).count() == 0
    assert pools.list_groups(db, scope) == []


def test_delete_group_detaches_games_without_history(db, scope, make_group):
    g = make_group(["Arsenal"])
    game = games.create_game(db, scope, "Done", ["Alice"], group_id=g.id)
    games.declare_winners(db, scope, game.id)

    pools.delete_group(db, scope, g.id)

    db.expire_all()
    assert games.get_game(db, scope, game.id).group_id is None


def test_delete_group_keeps_history_of_finished_games(db, scope, make_group):
    g = make_group(["Arsenal", "Brentford"])
    game = games.create_game(db, scope, "Done", ["Alice", "Bob"], group_id=g.id)
    teams = {t.name: t for t in g.teams}
    people = {p.player_name: p for p in game.participants}
    rnd = game.rounds[0]
    submit_pick(db, scope, rnd.id, people["Alice"].id, teams["Arsenal"].id)
    submit_pick(db, scope, rnd.id, people["Bob"].id, teams["Brentford"].id)
    resolve_round(db, scope, rnd.id, {teams["Arsenal"].id: "win", teams["Brentford"].id: "loss"})

    pools.delete_group(db, scope, g.id)

    db.expire_all()
    assert db.query(Team).count() == 0
    assert all(p.team_id is None for p in db.query(Pick))
    history = get_pick_history(db, scope, game.id)
    assert [(h.player_name, h.team_name, h.result) for h in history] == [
        ("Alice", "Arsenal", "win"),
        ("Bob", "Brentford", "loss"),
    ]
    summary = get_report(db, game.id).rounds[0].team_summary
    assert sorted(t.team_name for t in summary) == ["Arsenal", "Brentford"]


def test_players_pool(db, scope):
    pools.create_player(db, scope, "Alice")
    with pytest.raises(DuplicateNameError):
        pools.create_player(db, scope, " Alice ")

    with transaction(db):
        inserted = pools.ensure_players(db, scope, ["Alice", "Bob", "Bob", ""])
    assert inserted == 1
    assert [p.name for p in pools.list_players(db, scope)] == ["Alice", "Bob"]

    bob = pools.list_players(db, scope)[1]
    pools.delete_player(db, scope, bob.id)
    with pytest.raises(NotFoundError):
        pools.delete_player(db, scope, bob.id)


def test_storage_errors_roll_back(db, scope):
    with pytest.raises(StorageError):
        with transaction(db):
            db.add(Player(manager_email=scope.manager_email, name="Twin"))
            db.add(Player(manager_email=scope.manager_email, name="Twin"))

    assert db.query(Player).count() == 0
    # session still usable
    pools.create_player(db, scope, "Twin")
    assert db.query(Player).count() == 1
