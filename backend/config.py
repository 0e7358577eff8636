import os


def _origins(raw):
    return [o.strip() for o in raw.split(',') if o.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Frontend origin(s) allowed by CORS and the Socket.IO handshake
    CLIENT_URL = os.environ.get('CLIENT_URL', 'http://localhost:3000')
    CORS_ORIGINS = _origins(os.environ.get('CORS_ORIGINS', CLIENT_URL))
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    # Game rules (defaults are the client-visible contract)
    MAX_ROUNDS = int(os.environ.get('MAX_ROUNDS', '3'))
    ROUND_TIME_SECONDS = int(os.environ.get('ROUND_TIME_SECONDS', '30'))
    BASE_POINTS = int(os.environ.get('BASE_POINTS', '10'))
    PENALTY_PER_FACT = int(os.environ.get('PENALTY_PER_FACT', '2'))
    MAX_GUESS_ATTEMPTS_PER_ROUND = int(os.environ.get('MAX_GUESS_ATTEMPTS_PER_ROUND', '3'))
    # Pause between player:matched and the first round (seconds). 0 starts immediately.
    MATCH_START_DELAY_SEC = float(os.environ.get('MATCH_START_DELAY_SEC', '1'))
    # How long a finished two-player game stays reachable for a rematch (seconds)
    REMATCH_WINDOW_SEC = int(os.environ.get('REMATCH_WINDOW_SEC', '120'))
    # Optional path to a replacement country dataset (JSON list)
    COUNTRY_DATA_PATH = os.environ.get('COUNTRY_DATA_PATH') or None
    # Optional: heartbeat interval for round timer logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
