import pytest

from guessmates.services.games.models import CorrectGuess, Player
from guessmates.services.games.rules import GameRules
from guessmates.services.games.scoring import (
    is_correct_guess,
    overall_winner,
    points_for_guess,
    remaining_attempts,
    round_winner,
)


@pytest.mark.parametrize('facts_used,expected', [(0, 10), (1, 8), (3, 4), (5, 0), (6, 0)])
def test_points_for_guess(facts_used, expected):
    assert points_for_guess(facts_used, GameRules()) == expected


@pytest.mark.parametrize('guess', ['france', 'FRANCE', 'France', 'fRaNcE'])
def test_guess_matching_ignores_case(guess):
    assert is_correct_guess(guess, 'France')


def test_guess_matching_is_exact_otherwise():
    assert not is_correct_guess('Franc', 'France')
    assert not is_correct_guess(' france', 'France')


def test_remaining_attempts_never_negative():
    p = Player(id='a', username='A', guess_attempts_this_round=5)
    assert remaining_attempts(p, GameRules()) == 0
    p.guess_attempts_this_round = 1
    assert remaining_attempts(p, GameRules()) == 2


def test_round_winner_is_first_correct_guesser():
    guesses = [CorrectGuess('b', 4), CorrectGuess('a', 10)]
    assert round_winner(guesses) == 'b'
    assert round_winner([]) is None


def test_overall_winner():
    a = Player(id='a', username='A', score=12)
    b = Player(id='b', username='B', score=8)
    assert overall_winner([a, b]) == 'a'
    b.score = 20
    assert overall_winner([a, b]) == 'b'
    b.score = 12
    assert overall_winner([a, b]) is None
    # opponent abandoned: the remaining player wins even with fewer points
    assert overall_winner([Player(id='c', username='C', score=0)]) == 'c'
    assert overall_winner([]) is None
