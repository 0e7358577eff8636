import pytest

from guessmates.services.games.commands import (
    Disconnect,
    FindOpponent,
    InvalidCommand,
    LeaveGame,
    RequestFact,
    RequestNextRound,
    RequestRematch,
    SubmitGuess,
    parse_command,
)


def test_parse_known_events():
    assert parse_command('player:findOpponent', 's1') == FindOpponent('s1')
    assert parse_command('disconnect', 's1') == Disconnect('s1')
    assert parse_command('game:guess', 's1', {'gameId': 'g', 'guess': 'France', 'playerId': 's1'}) == SubmitGuess(
        sid='s1', game_id='g', guess='France', player_id='s1'
    )
    assert parse_command('game:requestFact', 's1', {'gameId': 'g'}) == RequestFact('s1', 'g', 's1')
    assert parse_command('game:requestNextRound', 's1', {'gameId': 'g'}) == RequestNextRound('s1', 'g')
    assert parse_command('game:requestRematch', 's1', {'gameId': 'g'}) == RequestRematch('s1', 'g')
    assert parse_command('game:leaveGame', 's1', {'gameId': 'g'}) == LeaveGame('s1', 'g')


def test_leave_without_game_id_still_parses():
    assert parse_command('game:leaveGame', 's1') == LeaveGame('s1', None)
    assert parse_command('game:leaveGame', 's1', {'gameId': 7}) == LeaveGame('s1', None)


@pytest.mark.parametrize('event,data', [
    ('game:guess', {'gameId': 'g'}),
    ('game:guess', {'gameId': 'g', 'guess': 42}),
    ('game:guess', 'France'),
    ('game:requestFact', {}),
    ('game:requestFact', {'gameId': 'g', 'playerId': 3}),
    ('game:requestNextRound', {'gameId': ''}),
    ('game:unknown', {}),
])
def test_invalid_payloads(event, data):
    with pytest.raises(InvalidCommand):
        parse_command(event, 's1', data)
