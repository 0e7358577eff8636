from dataclasses import dataclass


@dataclass(frozen=True)
class GameRules:
    """Tunable constants of a duel. Defaults are what clients expect."""

    max_rounds: int = 3
    round_time_seconds: int = 30
    base_points: int = 10
    penalty_per_fact: int = 2
    max_guess_attempts: int = 3
    match_start_delay_sec: float = 0.0
    rematch_window_sec: int = 120
    timer_heartbeat_sec: int = 0

    @classmethod
    def from_config(cls, config) -> 'GameRules':
        return cls(
            max_rounds=int(config.get('MAX_ROUNDS', cls.max_rounds)),
            round_time_seconds=int(config.get('ROUND_TIME_SECONDS', cls.round_time_seconds)),
            base_points=int(config.get('BASE_POINTS', cls.base_points)),
            penalty_per_fact=int(config.get('PENALTY_PER_FACT', cls.penalty_per_fact)),
            max_guess_attempts=int(config.get('MAX_GUESS_ATTEMPTS_PER_ROUND', cls.max_guess_attempts)),
            match_start_delay_sec=float(config.get('MATCH_START_DELAY_SEC', cls.match_start_delay_sec)),
            rematch_window_sec=int(config.get('REMATCH_WINDOW_SEC', cls.rematch_window_sec)),
            timer_heartbeat_sec=int(config.get('TIMER_HEARTBEAT_SEC', cls.timer_heartbeat_sec)),
        )
