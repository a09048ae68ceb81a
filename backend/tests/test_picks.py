import pytest

from conftest import participants_by_name, teams_by_name
from lms_manager.core.errors import (
    DuplicatePickError,
    InvalidStateError,
    NoTeamsAvailableError,
    NotFoundError,
    ParticipantInactiveError,
    RoundClosedError,
    TeamAlreadyUsedError,
)
from lms_manager.models.rounds import Pick
from lms_manager.services import games, picks
from lms_manager.services.auto_assign import auto_assign
from lms_manager.services.round_resolver import resolve_round


@pytest.fixture
def setup(db, scope, make_game):
    game = make_game(players=["Alice", "Bob", "Carla"])
    return game, participants_by_name(game), teams_by_name(game.group)


def test_submit_pick(db, scope, setup):
    game, people, teams = setup
    rnd = game.rounds[0]

    p = picks.submit_pick(db, scope, rnd.id, people["Alice"].id, teams["Chelsea"].id)

    assert p.auto_assigned is False
    assert p.result is None
    assert p.team.name == "Chelsea"
    assert [x.participant.player_name for x in picks.list_picks(db, rnd)] == ["Alice"]
    assert [x.player_name for x in picks.players_without_pick(db, game, rnd)] == ["Bob", "Carla"]


def test_duplicate_pick_rejected(db, scope, setup):
    game, people, teams = setup
    rnd = game.rounds[0]
    picks.submit_pick(db, scope, rnd.id, people["Alice"].id, teams["Chelsea"].id)

    with pytest.raises(DuplicatePickError) as exc:
        picks.submit_pick(db, scope, rnd.id, people["Alice"].id, teams["Arsenal"].id)
    assert exc.value.context["player_name"] == "Alice"
    assert exc.value.context["round_number"] == 1


def test_team_reuse_rejected_in_later_round(db, scope, setup):
    game, people, teams = setup
    r1 = game.rounds[0]
    for name in ("Alice", "Bob", "Carla"):
        picks.submit_pick(db, scope, r1.id, people[name].id, teams["Chelsea"].id)
    outcome = resolve_round(db, scope, r1.id, {teams["Chelsea"].id: "win"})
    r2 = games.current_round(db, game)
    assert r2.round_number == outcome.next_round_number == 2

    with pytest.raises(TeamAlreadyUsedError) as exc:
        picks.submit_pick(db, scope, r2.id, people["Alice"].id, teams["Chelsea"].id)
    assert exc.value.context["team_name"] == "Chelsea"

    assert "Chelsea" not in [t.name for t in picks.available_teams(db, game, people["Alice"].id)]
    picks.submit_pick(db, scope, r2.id, people["Alice"].id, teams["Arsenal"].id)


def test_closed_round_and_inactive_participant(db, scope, setup):
    game, people, teams = setup
    r1 = game.rounds[0]
    picks.submit_pick(db, scope, r1.id, people["Alice"].id, teams["Arsenal"].id)
    picks.submit_pick(db, scope, r1.id, people["Bob"].id, teams["Arsenal"].id)
    picks.submit_pick(db, scope, r1.id, people["Carla"].id, teams["Brentford"].id)
    resolve_round(db, scope, r1.id, {teams["Arsenal"].id: "win", teams["Brentford"].id: "loss"})

    with pytest.raises(RoundClosedError):
        picks.submit_pick(db, scope, r1.id, people["Alice"].id, teams["Chelsea"].id)

    r2 = games.current_round(db, game)
    with pytest.raises(ParticipantInactiveError) as exc:
        picks.submit_pick(db, scope, r2.id, people["Carla"].id, teams["Chelsea"].id)
    assert exc.value.context["eliminated_in_round"] == 1


def test_team_must_belong_to_game_group(db, scope, setup, make_group):
    game, people, _ = setup
    other = teams_by_name(make_group(["Madrid"], name="Other"))
    with pytest.raises(InvalidStateError):
        picks.submit_pick(db, scope, game.rounds[0].id, people["Alice"].id, other["Madrid"].id)
    with pytest.raises(NotFoundError):
        picks.submit_pick(db, scope, game.rounds[0].id, people["Alice"].id, 9999)


def test_change_and_remove_pick(db, scope, setup):
    game, people, teams = setup
    rnd = game.rounds[0]
    p = picks.submit_pick(db, scope, rnd.id, people["Alice"].id, teams["Chelsea"].id)

    p = picks.change_pick(db, scope, p.id, teams["Everton"].id)
    assert p.team.name == "Everton"

    picks.remove_pick(db, scope, p.id)
    assert picks.list_picks(db, rnd) == []
    with pytest.raises(NotFoundError):
        picks.remove_pick(db, scope, p.id)


# ---------------------------------------------------------------------------
# Auto-assign
# ---------------------------------------------------------------------------


def test_auto_assign_picks_first_unused_team_by_name(db, scope, setup):
    game, people, teams = setup
    r1 = game.rounds[0]
    picks.submit_pick(db, scope, r1.id, people["Alice"].id, teams["Chelsea"].id)

    created = auto_assign(db, scope, r1.id)

    assert sorted((p.participant.player_name, p.team.name) for p in created) == [
        ("Bob", "Arsenal"),
        ("Carla", "Arsenal"),
    ]
    assert all(p.auto_assigned for p in created)

    resolve_round(db, scope, r1.id, {teams["Chelsea"].id: "win", teams["Arsenal"].id: "win"})
    r2 = games.current_round(db, game)
    created = auto_assign(db, scope, r2.id)
    assert sorted((p.participant.player_name, p.team.name) for p in created) == [
        ("Alice", "Arsenal"),
        ("Bob", "Brentford"),
        ("Carla", "Brentford"),
    ]


def test_auto_assign_is_idempotent(db, scope, setup):
    game, _, _ = setup
    rnd = game.rounds[0]

    first = auto_assign(db, scope, rnd.id)
    second = auto_assign(db, scope, rnd.id)

    assert len(first) == 3
    assert second == []
    assert db.query(Pick).filter_by(round_id=rnd.id).count() == 3


def test_auto_assign_exhausted_group(db, scope, make_group, make_game):
    game = make_game(players=["Alice", "Bob"], group=make_group(["Arsenal"], name="Tiny"))
    people = participants_by_name(game)
    arsenal = teams_by_name(game.group)["Arsenal"]
    r1 = game.rounds[0]
    picks.submit_pick(db, scope, r1.id, people["Alice"].id, arsenal.id)
    resolve_round(db, scope, r1.id, {arsenal.id: "win"})

    r2 = games.current_round(db, game)
    with pytest.raises(NoTeamsAvailableError) as exc:
        auto_assign(db, scope, r2.id)

    assert exc.value.context["player_name"] in {"Alice", "Bob"}
    assert exc.value.context["round_number"] == 2
    # all or nothing
    assert db.query(Pick).filter_by(round_id=r2.id).count() == 0


def test_auto_assign_closed_round(db, scope, setup):
    game, _, teams = setup
    r1 = game.rounds[0]
    resolve_round(db, scope, r1.id, {teams["Arsenal"].id: "win"})
    with pytest.raises(RoundClosedError):
        auto_assign(db, scope, r1.id)


def test_auto_assign_orders_names_ignoring_case(db, scope, make_group, make_game):
    game = make_game(players=["Alice"], group=make_group(["Brentford", "arsenal", "Chelsea"], name="Mixed"))

    created = auto_assign(db, scope, game.rounds[0].id)

    assert [p.team_name for p in created] == ["arsenal"]
    assert [t.name for t in picks.group_teams(db, game)] == ["arsenal", "Brentford", "Chelsea"]
