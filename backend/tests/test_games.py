import pytest

from conftest import participants_by_name, teams_by_name
from lms_manager.core.errors import DuplicateParticipantError, InvalidStateError, NotFoundError
from lms_manager.core.scope import ManagerScope
from lms_manager.models.games import Participant
from lms_manager.models.rounds import Pick, Round
from lms_manager.services import games, pools
from lms_manager.services.picks import submit_pick
from lms_manager.services.round_resolver import resolve_round


def test_create_game_defaults(db, scope, make_group):
    g = make_group()
    game = games.create_game(db, scope, "Office LMS", ["Bob", "Alice"], group_id=g.id)

    assert game.status == "active"
    assert game.winner_names is None
    assert game.postpone_as_win is True
    assert game.winner_mode == "single"
    assert game.rollover_mode == "round"
    assert game.max_winners == 4

    assert [(r.round_number, r.status) for r in game.rounds] == [(1, "open")]
    assert [(p.player_name, p.is_active, p.eliminated_in_round) for p in game.participants] == [
        ("Alice", True, None),
        ("Bob", True, None),
    ]
    # roster names land in the reusable pool
    assert [p.name for p in pools.list_players(db, scope)] == ["Alice", "Bob"]


def test_create_game_validates_config(db, scope, make_group):
    g = make_group()
    with pytest.raises(InvalidStateError):
        games.create_game(db, scope, "x", ["A"], group_id=g.id, winner_mode="everyone")
    with pytest.raises(InvalidStateError):
        games.create_game(db, scope, "x", ["A"], group_id=g.id, rollover_mode="season")
    with pytest.raises(InvalidStateError):
        games.create_game(db, scope, "x", ["A"], group_id=g.id, max_winners=0)
    with pytest.raises(DuplicateParticipantError):
        games.create_game(db, scope, "x", ["A", "A"], group_id=g.id)
    with pytest.raises(NotFoundError):
        games.create_game(db, scope, "x", ["A"], group_id=9999)
    assert games.list_games(db, scope) == []


def test_add_participants(db, scope, make_game):
    game = make_game(players=["Alice"])
    added = games.add_participants(db, scope, game.id, ["Bob", "Carla"])
    assert sorted(p.player_name for p in added) == ["Bob", "Carla"]

    with pytest.raises(DuplicateParticipantError):
        games.add_participants(db, scope, game.id, ["Bob"])


def test_add_participants_rejected_after_first_round(db, scope, make_game):
    game = make_game(players=["Alice", "Bob"])
    arsenal = teams_by_name(game.group)["Arsenal"]
    rnd = game.rounds[0]
    resolve_round(db, scope, rnd.id, {arsenal.id: "win"})

    with pytest.raises(InvalidStateError):
        games.add_participants(db, scope, game.id, ["Late"])


def test_games_are_scoped(db, scope, make_game):
    game = make_game()
    other = ManagerScope.of("other@example.com")
    with pytest.raises(NotFoundError):
        games.get_game(db, other, game.id)
    assert games.list_games(db, other) == []
    assert [g.id for g in games.list_games(db, scope, status="active")] == [game.id]


def test_delete_game_cascades(db, scope, make_game):
    game = make_game()
    people = participants_by_name(game)
    arsenal = teams_by_name(game.group)["Arsenal"]
    submit_pick(db, scope, game.rounds[0].id, people["Alice"].id, arsenal.id)

    games.delete_game(db, scope, game.id)

    assert db.query(Participant).count() == 0
    assert db.query(Round).count() == 0
    assert db.query(Pick).count() == 0


def test_declare_winners(db, scope, make_game):
    game = make_game(players=["Alice", "Bob"])
    winners = games.declare_winners(db, scope, game.id)

    assert winners == ["Alice", "Bob"]
    db.expire_all()
    game = games.get_game(db, scope, game.id)
    assert game.status == "completed"
    assert game.winner_names == ["Alice", "Bob"]
    assert game.completed_at is not None
    # empty open round is dropped
    assert game.rounds == []

    with pytest.raises(InvalidStateError):
        games.declare_winners(db, scope, game.id)


def test_declare_winners_voids_round_with_picks(db, scope, make_game):
    game = make_game(players=["Alice", "Bob"])
    people = participants_by_name(game)
    arsenal = teams_by_name(game.group)["Arsenal"]
    submit_pick(db, scope, game.rounds[0].id, people["Alice"].id, arsenal.id)

    games.declare_winners(db, scope, game.id)

    db.expire_all()
    rnd = games.get_game(db, scope, game.id).rounds[0]
    assert rnd.status == "closed"
    assert rnd.is_void is True
