from faceit_gateway.models import (
    ApiKey,
    MatchDetailedSummary,
    MatchScoreboard,
    PlayerLine,
    PlayerProfile,
    RotationState,
    TeammateAggregate,
)


def test_api_key_defaults():
    key = ApiKey(id="key_1", key="test-key-123")

    assert key.id == "key_1"
    assert key.key == "test-key-123"
    assert key.failure_count == 0
    assert key.in_cooldown is False
    assert key.last_used_at == 0.0


def test_api_key_prefix_never_exposes_full_key():
    key = ApiKey(id="key_1", key="0123456789abcdef-secret")

    assert key.key_prefix() == "01234567..."
    assert "secret" not in key.key_prefix()


def test_rotation_state_lookup():
    state = RotationState(keys=[ApiKey(id="key_1", key="a"), ApiKey(id="key_2", key="b")])

    assert state.cursor == 0
    assert state.get("key_2").key == "b"
    assert state.get("missing") is None


def test_profile_to_dict_uses_camel_case_and_defaults():
    profile = PlayerProfile(id="p1", nickname="s1mple", kd_ratio=1.3)

    data = profile.to_dict()

    assert data["id"] == "p1"
    assert data["kdRatio"] == 1.3
    assert data["winRatePercent"] == 0
    assert data["highestElo"] == 0
    assert data["avatarUrl"] == ""
    assert None not in data.values()


def test_detailed_summary_unknown_win_serializes_as_null():
    summary = MatchDetailedSummary(match_id="m1", game="cs2", played_at=1)

    data = summary.to_dict()

    assert data["matchId"] == "m1"
    assert data["playedAt"] == 1
    assert data["win"] is None
    assert data["scoreFor"] == 0


def test_scoreboard_serializes_nested_players():
    board = MatchScoreboard(
        key="faction1",
        name="Team A",
        score=16,
        players=[PlayerLine(id="p1", nickname="a", kills=20, deaths=10, kd=2.0)],
    )

    data = board.to_dict()

    assert data["players"][0]["avatarUrl"] == ""
    assert data["players"][0]["kd"] == 2.0


def test_teammate_aggregate_to_dict():
    assert TeammateAggregate(id="t1", nickname="mate", matches_together=3).to_dict() == {
        "id": "t1",
        "nickname": "mate",
        "matchesTogether": 3,
    }
