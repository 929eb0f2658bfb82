import os


def _env_float(name, default):
    value = os.environ.get(name)
    return float(value) if value else default


class Config:
    """Server settings; every value can be overridden from the environment"""
    SECRET_KEY = os.environ.get('SECRET_KEY', 'pacman_rooms_secret_key')
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '5000'))
    LOG_DIR = os.environ.get('LOG_DIR', 'logs')

    # Seconds between power-up drops while a round is running
    POWER_UP_INTERVAL = _env_float('POWER_UP_INTERVAL', 30.0)
    # Seconds a collected power-up stays active
    POWER_UP_DURATION = _env_float('POWER_UP_DURATION', 10.0)
    SHUTDOWN_GRACE_PERIOD = _env_float('SHUTDOWN_GRACE_PERIOD', 5.0)
    STATS_INTERVAL = _env_float('STATS_INTERVAL', 5.0)
