from typing import Optional, Sequence

from .models import CorrectGuess, Player
from .rules import GameRules


def points_for_guess(facts_used: int, rules: GameRules) -> int:
    """Points for a correct guess: the base award minus a penalty per extra fact, floored at 0."""
    return max(0, rules.base_points - facts_used * rules.penalty_per_fact)


def is_correct_guess(guess: str, country_name: str) -> bool:
    # Exact match, ignoring case only
    return guess.lower() == country_name.lower()


def remaining_attempts(player: Player, rules: GameRules) -> int:
    return max(0, rules.max_guess_attempts - player.guess_attempts_this_round)


def round_winner(correct_guesses: Sequence[CorrectGuess]) -> Optional[str]:
    """The first player to guess correctly wins the round; nobody if no one did."""
    return correct_guesses[0].player_id if correct_guesses else None


def overall_winner(players: Sequence[Player]) -> Optional[str]:
    """Decide the match winner.

    - two players: strictly higher cumulative score wins, equal scores draw (None)
    - one player left (opponent abandoned): that player wins outright
    - anything else: no winner
    """
    if len(players) == 2:
        first, second = players
        if first.score > second.score:
            return first.id
        if second.score > first.score:
            return second.id
        return None
    if len(players) == 1:
        return players[0].id
    return None
