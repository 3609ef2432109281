from faceit_gateway.scores import (
    combined_round_score,
    detailed_results,
    extract_line,
    extract_score,
    results_score,
    round_team_stats,
    rounds_won,
)


def round_stats_payload(faction1_score, faction2_score):
    return {
        "rounds": [
            {
                "teams": [
                    {"team_id": "faction1", "team_stats": {"Final Score": faction1_score}},
                    {"team_id": "faction2", "team_stats": {"Final Score": faction2_score}},
                ]
            }
        ]
    }


def test_round_team_stats_wins_over_low_detailed_results():
    match = {
        "detailed_results": [
            {"factions": {"faction1": {"score": 1}, "faction2": {"score": 0}}}
        ]
    }
    stats = round_stats_payload(16, 10)

    verdict = extract_score(match, stats)

    assert verdict.strategy == "round_team_stats"
    assert (verdict.faction1, verdict.faction2) == (16, 10)


def test_round_team_stats_case_insensitive_and_string_digits():
    stats = {
        "rounds": [
            {
                "teams": [
                    {"team_id": "faction1", "team_stats": {"rounds won": "13 rounds"}},
                    {"team_id": "faction2", "team_stats": {"SCORE": 7}},
                    {"team_id": "spectators", "team_stats": {"Score": 99}},
                ]
            }
        ]
    }

    assert round_team_stats({}, stats) == (13, 7)


def test_combined_score_swapped_to_match_winner():
    stats = {"rounds": [{"round_stats": {"Score": "10 / 16"}, "teams": []}]}

    assert combined_round_score({"results": {"winner": "faction1"}}, stats) == (16, 10)
    assert combined_round_score({"results": {"winner": "faction2"}}, stats) == (10, 16)
    assert combined_round_score({}, stats) == (10, 16)


def test_combined_score_via_cascade():
    stats = {"rounds": [{"round_stats": {"Result": "13:7"}, "teams": []}]}

    verdict = extract_score({"results": {"winner": "faction2"}}, stats)

    assert verdict.strategy == "combined_round_score"
    assert (verdict.faction1, verdict.faction2) == (7, 13)


def test_rounds_won_needs_more_than_one_round():
    single = {"rounds": [{"winner": "faction1"}]}
    several = {
        "rounds": [
            {"winner": "faction1"},
            {"winner": "faction2"},
            {"round_stats": {"Winner": "faction1"}},
        ]
    }

    assert rounds_won({}, single) is None
    assert rounds_won({}, several) == (2, 1)


def test_detailed_results_floor_rejects_start_flag():
    low = {"detailed_results": [{"factions": {"a": {"score": 1}, "b": {"score": 0}}}]}
    real = {"detailed_results": [
        {"factions": {"a": {"score": 1}, "b": {"score": 0}}},
        {"factions": {"a": {"score": 2}, "b": {"score": 1}}},
    ]}

    assert detailed_results(low, {}) is None
    assert detailed_results(real, {}) == (2, 1)


def test_results_score_requires_value_above_floor():
    assert results_score({"results": {"score": {"faction1": 1, "faction2": 0}}}, {}) is None
    assert results_score({"results": {"score": {"faction1": "16", "faction2": 14}}}, {}) == (16, 14)


def test_cascade_floor_then_unknown():
    match = {
        "detailed_results": [{"factions": {"faction1": {"score": 1}, "faction2": {"score": 0}}}],
        "results": {"winner": "faction1"},
    }

    verdict = extract_score(match, None)

    assert verdict.strategy is None
    assert verdict.known is False
    assert (verdict.faction1, verdict.faction2) == (0, 0)


def test_cascade_falls_back_to_team_stats():
    match = {
        "teams": {
            "faction1": {"stats": {"Score": "9"}},
            "faction2": {"stats": {"score": 16}},
        }
    }

    verdict = extract_score(match, {})

    assert verdict.strategy == "team_stats_score"
    assert (verdict.faction1, verdict.faction2) == (9, 16)


def test_cascade_results_faction_then_last_resort():
    faction_scores = {"results": {"faction1": {"Score": 1}, "faction2": {"score": 0}}}
    low_score_map = {"results": {"score": {"faction1": 1, "faction2": 0}}}

    assert extract_score(faction_scores).strategy == "results_faction_score"
    verdict = extract_score(low_score_map)
    assert verdict.strategy == "results_score_any"
    assert (verdict.faction1, verdict.faction2) == (1, 0)


def test_cascade_tolerates_garbage():
    match = {"results": "nope", "teams": [], "detailed_results": {"x": 1}}
    stats = {"rounds": "broken"}

    verdict = extract_score(match, stats)

    assert verdict.strategy is None


def test_non_finite_team_score_ignored():
    nan_stats = round_stats_payload(float("nan"), float("inf"))

    assert round_team_stats({}, nan_stats) is None
    match = {"results": {"score": {"faction1": 13, "faction2": 7}}}
    verdict = extract_score(match, nan_stats)
    assert verdict.strategy == "results_score"
    assert (verdict.faction1, verdict.faction2) == (13, 7)


def test_extract_line_prefers_round_stats():
    stats = {
        "rounds": [
            {"teams": [{"players": [{"player_id": "p1", "player_stats": {"Kills": "21", "Deaths": "14", "Headshots": "9"}}]}]}
        ]
    }
    roster_entry = {"player_id": "p1", "player_stats": {"Kills": 5, "Deaths": 5}}

    line = extract_line("p1", {}, stats, roster_entry)

    assert (line.kills, line.deaths, line.headshots) == (21, 14, 9)


def test_extract_line_zero_round_stats_fall_through():
    stats = {
        "rounds": [
            {"teams": [{"players": [{"player_id": "p1", "player_stats": {"Kills": 0, "Deaths": 0}}]}]}
        ]
    }
    roster_entry = {"player_id": "p1", "player_stats": {"kills": 12, "deaths": 8, "headshots": 4}}

    line = extract_line("p1", {}, stats, roster_entry)

    assert (line.kills, line.deaths, line.headshots) == (12, 8, 4)


def test_extract_line_flat_player_list():
    match = {"players": [{"player_id": "p2", "kills": 3}, {"player_id": "p1", "Kills": 18, "Deaths": "11"}]}

    line = extract_line("p1", match, None, {"player_id": "p1"})

    assert (line.kills, line.deaths) == (18, 11)


def test_extract_line_nothing_found():
    line = extract_line("p1", {}, {}, {})

    assert (line.kills, line.deaths, line.headshots) == (0, 0, 0)
