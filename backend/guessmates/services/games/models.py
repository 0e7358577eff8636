from dataclasses import dataclass, field
from typing import List


class SessionStatus:
    WAITING_FOR_PLAYERS = 'waiting_for_players'
    IN_GAME = 'in_game'
    ROUND_OVER = 'round_over'
    GAME_OVER = 'game_over'


@dataclass
class Connection:
    """A transport connection as seen by matchmaking."""

    sid: str
    username: str
    connected: bool = True


@dataclass
class CountryData:
    name: str
    facts: List[str] = field(default_factory=list)


@dataclass
class CorrectGuess:
    player_id: str
    points: int


@dataclass
class Player:
    id: str
    username: str
    score: int = 0
    facts_used_this_round: int = 0
    guess_attempts_this_round: int = 0
    ready_for_next_round: bool = False

    @classmethod
    def from_connection(cls, conn: Connection) -> 'Player':
        return cls(id=conn.sid, username=conn.username)

    def reset_round(self) -> None:
        self.facts_used_this_round = 0
        self.guess_attempts_this_round = 0
        self.ready_for_next_round = False

    def reset_match(self) -> None:
        self.score = 0
        self.reset_round()

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'score': self.score,
            'factsUsedThisRound': self.facts_used_this_round,
            'guessAttemptsThisRound': self.guess_attempts_this_round,
        }

    def score_dict(self):
        return {
            'id': self.id,
            'score': self.score,
            'factsUsedThisRound': self.facts_used_this_round,
            'guessAttemptsThisRound': self.guess_attempts_this_round,
        }
