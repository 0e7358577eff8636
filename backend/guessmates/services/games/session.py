"""One matched duel: rounds, scoring, the round timer and teardown.

Status pipeline::

    waiting_for_players -> in_game -> round_over -> in_game ... -> game_over
    game_over -> waiting_for_players (rematch)

Every public method is a transition triggered by a client command or by the
round timer. Callers serialize access (see ``GameServer.lock``).
"""

import logging
from typing import Iterable, List, Optional, Set

from .facts import MIN_FACTS, FactProvider, NoPlayableCountry
from .models import CorrectGuess, CountryData, Player, SessionStatus
from .rules import GameRules
from .scoring import (
    is_correct_guess,
    overall_winner,
    points_for_guess,
    remaining_attempts,
    round_winner,
)

logger = logging.getLogger(__name__)


class GameSession:
    def __init__(
        self,
        game_id: str,
        players: Iterable[Player],
        *,
        broadcaster,
        facts: FactProvider,
        scheduler,
        registry,
        rules: Optional[GameRules] = None,
    ):
        self.id = game_id
        self.players: List[Player] = list(players)
        self.broadcaster = broadcaster
        self.facts = facts
        self.scheduler = scheduler
        self.registry = registry
        self.rules = rules or GameRules()

        self.status = SessionStatus.WAITING_FOR_PLAYERS
        self.current_round = 0
        self.target_country = CountryData(name='', facts=[])
        self.revealed_fact_indices: List[int] = []
        self.timer = self.rules.round_time_seconds
        self.timer_handle = None
        self.correct_guesses: List[CorrectGuess] = []
        self.ready_players: Set[str] = set()
        self._pending_start = None
        self._rematch_hold = None

    def __repr__(self):
        return f'<GameSession {self.id} {self.status} round={self.current_round}>'

    # ---- lookups ----
    def get_player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def has_guessed_correctly(self, player_id: str) -> bool:
        return any(g.player_id == player_id for g in self.correct_guesses)

    def is_out_of_attempts(self, player: Player) -> bool:
        return player.guess_attempts_this_round >= self.rules.max_guess_attempts

    def _is_resolved(self, player: Player) -> bool:
        return self.has_guessed_correctly(player.id) or self.is_out_of_attempts(player)

    def _all_ready(self) -> bool:
        return bool(self.players) and all(p.id in self.ready_players for p in self.players)

    def _clear_readiness(self) -> None:
        self.ready_players.clear()
        for p in self.players:
            p.ready_for_next_round = False

    # ---- timers ----
    def _start_timer(self) -> None:
        self._stop_timer()
        self.timer = self.rules.round_time_seconds
        self.timer_handle = self.scheduler.every(1, self.tick, name=f'round:{self.id}:{self.current_round}')
        logger.info(f"[timer-set] game={self.id} round={self.current_round} duration={self.timer}s")

    def _stop_timer(self) -> None:
        if self.timer_handle is not None:
            self.timer_handle.cancel()
            self.timer_handle = None

    def _cancel_pending_start(self) -> None:
        if self._pending_start is not None:
            self._pending_start.cancel()
            self._pending_start = None

    def _cancel_rematch_hold(self) -> None:
        if self._rematch_hold is not None:
            self._rematch_hold.cancel()
            self._rematch_hold = None

    def tick(self) -> None:
        """One second of round time has passed."""
        if self.status != SessionStatus.IN_GAME:
            self._stop_timer()
            return
        self.timer -= 1
        self.broadcaster.to_room(self.id, 'game:timerUpdate', self.timer)
        hb = self.rules.timer_heartbeat_sec
        if hb and self.timer > 0 and self.timer % hb == 0:
            logger.info(f"[timer-heartbeat] game={self.id} round={self.current_round} remaining={self.timer}s")
        if self.timer <= 0:
            logger.info(f"[timer-fire] game={self.id} round={self.current_round}")
            self.end_round()

    # ---- round flow ----
    def schedule_first_round(self, delay: float) -> None:
        if delay <= 0:
            self.start_round()
            return
        self._pending_start = self.scheduler.call_later(delay, self._start_if_waiting, name=f'start:{self.id}')

    def _start_if_waiting(self) -> None:
        self._pending_start = None
        if self.status == SessionStatus.WAITING_FOR_PLAYERS and self.players:
            self.start_round()

    def start_round(self) -> bool:
        """Pick a country and open the next round. Returns False if the round could not start."""
        if self.current_round >= self.rules.max_rounds:
            self.emit_game_over()
            return False
        try:
            country = self.facts.random_country()
        except NoPlayableCountry as exc:
            logger.error(f"[round-error] game={self.id} no playable country: {exc}")
            country = None
        if country is None or len(country.facts) < MIN_FACTS:
            self.broadcaster.to_room(self.id, 'game:error', {'message': 'Failed to start round: No country data.'})
            return False

        self._cancel_pending_start()
        self.current_round += 1
        self.target_country = country
        self.revealed_fact_indices = [0]
        self.correct_guesses = []
        self._clear_readiness()
        for p in self.players:
            p.reset_round()
        self.status = SessionStatus.IN_GAME
        self._start_timer()

        self.broadcaster.to_room(self.id, 'game:start', {
            'gameId': self.id,
            'players': [p.to_dict() for p in self.players],
            'currentRound': self.current_round,
            'initialFact': country.facts[0],
            'timer': self.timer,
        })
        logger.info(f"[round-start] game={self.id} round={self.current_round} country={country.name}")
        return True

    def guess(self, player_id: str, text: str) -> None:
        if self.status != SessionStatus.IN_GAME:
            logger.warning(f"[guess-ignored] game={self.id} status={self.status}")
            return
        player = self.get_player(player_id)
        if player is None:
            logger.warning(f"[guess-ignored] game={self.id} unknown player={player_id}")
            return

        if self.has_guessed_correctly(player_id):
            self.broadcaster.to_player(player_id, 'game:guessResult', {
                'isCorrect': False,
                'message': 'You already guessed correctly this round.',
                'remainingAttempts': remaining_attempts(player, self.rules),
                'factsUsed': player.facts_used_this_round,
            })
            return

        if self.is_out_of_attempts(player):
            self.broadcaster.to_player(player_id, 'game:guessResult', {
                'isCorrect': False,
                'message': 'You are out of guess attempts for this round.',
                'remainingAttempts': 0,
                'factsUsed': player.facts_used_this_round,
            })
            self._end_round_if_resolved()
            return

        player.guess_attempts_this_round += 1
        left = remaining_attempts(player, self.rules)

        if is_correct_guess(text, self.target_country.name):
            points = points_for_guess(player.facts_used_this_round, self.rules)
            player.score += points
            self.correct_guesses.append(CorrectGuess(player_id=player_id, points=points))
            self.broadcaster.to_player(player_id, 'game:guessResult', {
                'isCorrect': True,
                'correctCountry': self.target_country.name,
                'points': points,
                'message': 'Correct guess!',
                'remainingAttempts': left,
                'factsUsed': player.facts_used_this_round,
            })
            logger.info(f"[guess-correct] game={self.id} player={player_id} points={points}")
        else:
            if left <= 0:
                message = 'Incorrect guess! You have no attempts remaining for this round.'
            else:
                message = f'Incorrect guess! You have {left} attempts remaining.'
            self.broadcaster.to_player(player_id, 'game:guessResult', {
                'isCorrect': False,
                'correctCountry': None,
                'message': message,
                'remainingAttempts': left,
                'factsUsed': player.facts_used_this_round,
            })
        self._end_round_if_resolved()

    def _end_round_if_resolved(self) -> None:
        # every player either guessed it or has no attempts left
        if self.players and all(self._is_resolved(p) for p in self.players):
            self.end_round()

    def request_fact(self, player_id: str) -> None:
        if self.status != SessionStatus.IN_GAME:
            logger.warning(f"[fact-ignored] game={self.id} status={self.status}")
            return
        player = self.get_player(player_id)
        if player is None:
            logger.warning(f"[fact-ignored] game={self.id} unknown player={player_id}")
            return
        if self.has_guessed_correctly(player_id) or self.is_out_of_attempts(player):
            self.broadcaster.to_player(player_id, 'game:noMoreFacts', {
                'message': 'You cannot request more facts. Either you are out of guesses or already guessed correctly.',
            })
            return

        next_index = next(
            (i for i in range(len(self.target_country.facts)) if i not in self.revealed_fact_indices),
            None,
        )
        if next_index is None:
            self.broadcaster.to_player(player_id, 'game:noMoreFacts', {
                'message': 'No more facts available for this country.',
            })
            return

        self.revealed_fact_indices.append(next_index)
        player.facts_used_this_round += 1
        self.broadcaster.to_player(player_id, 'game:newFact', {
            'fact': self.target_country.facts[next_index],
            'factsUsedByPlayer': player.facts_used_this_round,
        })

    def end_round(self) -> None:
        if self.status != SessionStatus.IN_GAME:
            return
        self._stop_timer()
        self.status = SessionStatus.ROUND_OVER
        winner_id = round_winner(self.correct_guesses)
        self.broadcaster.to_room(self.id, 'game:roundOver', {
            'winnerId': winner_id,
            'correctCountry': self.target_country.name,
            'playerScores': [p.score_dict() for p in self.players],
            'currentRound': self.current_round,
        })
        logger.info(
            f"[round-end] game={self.id} round={self.current_round} country={self.target_country.name} winner={winner_id}"
        )
        if self.current_round >= self.rules.max_rounds:
            self.emit_game_over()

    def request_next_round(self, player_id: str) -> None:
        player = self.get_player(player_id)
        if player is None:
            logger.warning(f"[next-round-ignored] game={self.id} unknown player={player_id}")
            return
        if self.status not in (SessionStatus.ROUND_OVER, SessionStatus.WAITING_FOR_PLAYERS):
            logger.warning(f"[next-round-ignored] game={self.id} status={self.status}")
            return

        self.ready_players.add(player_id)
        player.ready_for_next_round = True
        self.broadcaster.to_player(player_id, 'game:player:readyForNextRoundAck')
        logger.info(
            f"[next-round-ready] game={self.id} player={player_id} ready={len(self.ready_players)}/{len(self.players)}"
        )

        if self._all_ready():
            self._clear_readiness()
            if self.current_round < self.rules.max_rounds:
                self.start_round()
            else:
                self.emit_game_over()
        else:
            self.broadcaster.to_room(self.id, 'game:opponentReadyForNextRound', {'playerId': player_id}, skip=player_id)

    def request_rematch(self, player_id: str) -> None:
        player = self.get_player(player_id)
        if player is None:
            logger.warning(f"[rematch-ignored] game={self.id} unknown player={player_id}")
            return
        if self.status != SessionStatus.GAME_OVER:
            logger.warning(f"[rematch-ignored] game={self.id} status={self.status}")
            return

        self.ready_players.add(player_id)
        player.ready_for_next_round = True
        self.broadcaster.to_player(player_id, 'game:player:readyForRematchAck')

        if not self._all_ready():
            self.broadcaster.to_room(self.id, 'game:opponentReadyForRematch', {'playerId': player_id}, skip=player_id)
            return

        logger.info(f"[rematch] game={self.id} players={[p.id for p in self.players]}")
        self._cancel_rematch_hold()
        self._stop_timer()
        for p in self.players:
            p.reset_match()
        self.current_round = 0
        self.status = SessionStatus.WAITING_FOR_PLAYERS
        self.target_country = CountryData(name='', facts=[])
        self.revealed_fact_indices = []
        self.timer = self.rules.round_time_seconds
        self.correct_guesses = []
        self._clear_readiness()
        self.registry.restore(self)
        self.start_round()

    def emit_game_over(self) -> None:
        self._stop_timer()
        self._cancel_pending_start()
        self.status = SessionStatus.GAME_OVER
        self._clear_readiness()
        winner_id = overall_winner(self.players)
        scores = [{'id': p.id, 'score': p.score} for p in self.players]
        self.broadcaster.to_room(self.id, 'game:gameOver', {
            'overallWinnerId': winner_id,
            'playerScores': scores,
        })
        logger.info(f"[game-over] game={self.id} winner={winner_id or 'draw'} scores={scores}")

        self.registry.remove(self.id)
        if len(self.players) == 2 and self.rules.rematch_window_sec > 0:
            self.registry.retire(self)
            self._rematch_hold = self.scheduler.call_later(
                self.rules.rematch_window_sec, self._close_rematch_window, name=f'rematch:{self.id}'
            )

    def _close_rematch_window(self) -> None:
        self._rematch_hold = None
        if self.status == SessionStatus.GAME_OVER:
            self.registry.discard(self.id)
            logger.info(f"[rematch-expired] game={self.id}")

    def _teardown(self) -> None:
        self._stop_timer()
        self._cancel_pending_start()
        self._cancel_rematch_hold()
        self.registry.discard(self.id)

    # ---- departures ----
    def remove_player(self, player_id: str, reason: str = 'left') -> bool:
        """Drop a player who left or disconnected. Returns False if they were not in this game."""
        player = self.get_player(player_id)
        if player is None:
            return False
        self.players.remove(player)
        self.ready_players.discard(player_id)
        self.broadcaster.leave(player_id, self.id)
        logger.info(f"[player-{reason}] game={self.id} player={player_id} remaining={len(self.players)}")

        if not self.players:
            self._teardown()
            logger.info(f"[abandoned] game={self.id}")
            return True

        self._stop_timer()
        if reason == 'disconnected':
            message = f'{player.username} has disconnected. Game ended.'
        else:
            message = f'{player.username} has left the game.'
        self.broadcaster.to_room(self.id, 'game:opponentLeft', {
            'message': message,
            'leftPlayerId': player_id,
        })
        if self.status != SessionStatus.GAME_OVER:
            self.emit_game_over()
        else:
            # a rematch needs both players
            self._teardown()
        return True
