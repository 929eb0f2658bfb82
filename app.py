from flask import Flask, jsonify, request
from flask_socketio import SocketIO
import logging
import os
import signal
import sys
import threading
from datetime import datetime

from pacman_rooms.config import Config
from pacman_rooms.messages import (
    CreateRoom, JoinFailed, JoinGame, PlayerMove, ValidationError,
    describe_validation_error, parse_client_message,
)
from pacman_rooms.monitor import PerformanceMonitor
from pacman_rooms.room_manager import RoomManager
from pacman_rooms.transport import SocketIOTransport

app = Flask(__name__)
app.config.from_object(Config)

logger = logging.getLogger(__name__)

# Configure SocketIO with logging disabled for console
socketio = SocketIO(app, cors_allowed_origins="*", async_mode='threading', logger=False, engineio_logger=False)
transport = SocketIOTransport(socketio)

# One registry for the whole process
room_manager = RoomManager(
    transport,
    power_up_interval=app.config['POWER_UP_INTERVAL'],
    power_up_duration=app.config['POWER_UP_DURATION'],
)

perf_monitor = PerformanceMonitor(log_interval=app.config['STATS_INTERVAL'])

# Set once a fatal condition or signal starts the shutdown sequence
shutting_down = threading.Event()

# Events that answer the client with join_failed when something goes wrong
JOIN_EVENTS = ('join_game', 'create_room')


def configure_logging(logs_folder):
    """Detailed logs to a timestamped file, only the important bits on the console"""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    os.makedirs(logs_folder, exist_ok=True)
    log_filename = os.path.join(logs_folder, f"pacman_rooms_server_{timestamp}.log")

    file_handler = logging.FileHandler(log_filename)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)  # Only show warnings and errors in console
    console_handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))

    logging.basicConfig(
        level=logging.DEBUG,
        handlers=[file_handler, console_handler]
    )

    # Suppress SocketIO console logging completely
    logging.getLogger('socketio').setLevel(logging.ERROR)
    logging.getLogger('engineio').setLevel(logging.ERROR)
    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    server_console = logging.StreamHandler(sys.stdout)
    server_console.setLevel(logging.INFO)
    server_console.setFormatter(logging.Formatter('[SERVER] %(message)s'))
    logger.addHandler(server_console)
    logger.setLevel(logging.DEBUG)

    return log_filename


@app.route('/rooms')
def list_rooms():
    return jsonify([room.model_dump(by_alias=True) for room in room_manager.get_rooms_list()])


@app.route('/stats')
def stats():
    return jsonify(perf_monitor.get_stats())


@socketio.on('connect')
def on_connect(*args):
    if shutting_down.is_set():
        logger.warning(f'[SHUTDOWN] Refusing connection from {request.sid}')
        return False
    logger.info(f'Client {request.sid} connected')


@socketio.on('disconnect')
def on_disconnect(*args):
    logger.info(f'[DISCONNECT] Client {request.sid} disconnected')
    with perf_monitor.measure():
        room_manager.handle_disconnect(request.sid)


@socketio.on('join_game')
def on_join_game(data=None):
    logger.info(f'[JOIN] Received join_game event from {request.sid} with data: {data}')
    with perf_monitor.measure():
        try:
            message = parse_client_message(JoinGame, data)
        except ValidationError as e:
            reason = describe_validation_error(e)
            logger.info(f'[JOIN] Rejected join_game from {request.sid}: {reason}')
            transport.send(request.sid, JoinFailed(reason=reason))
            return
        room_manager.join_room_by_code(request.sid, message.name, message.room_code)


@socketio.on('create_room')
def on_create_room(data=None):
    logger.info(f'[ROOM] Received create_room event from {request.sid} with data: {data}')
    with perf_monitor.measure():
        try:
            message = parse_client_message(CreateRoom, data)
        except ValidationError as e:
            reason = describe_validation_error(e)
            logger.info(f'[ROOM] Rejected create_room from {request.sid}: {reason}')
            transport.send(request.sid, JoinFailed(reason=reason))
            return
        room_manager.create_room(request.sid, message.name, message.room_name)


@socketio.on('list_rooms')
def on_list_rooms(*args):
    with perf_monitor.measure():
        room_manager.send_rooms_list(request.sid)


@socketio.on('player_move')
def on_player_move(data=None):
    with perf_monitor.measure():
        try:
            message = parse_client_message(PlayerMove, data)
        except ValidationError:
            logger.debug(f'[MOVE] Dropped malformed player_move from {request.sid}: {data}')
            return
        room_manager.handle_player_move(request.sid, message.direction)


@socketio.on('start_game')
def on_start_game(*args):
    """Handle game start request from the room's pacman"""
    with perf_monitor.measure():
        if not room_manager.handle_start_game(request.sid):
            logger.debug(f'[START] Ignored start_game from {request.sid}')


@socketio.on('restart_game')
def on_restart_game(*args):
    """Handle pacman restarting the round"""
    with perf_monitor.measure():
        if not room_manager.handle_restart_game(request.sid):
            logger.debug(f'[RESTART] Ignored restart_game from {request.sid}')


@socketio.on('leave_game')
def on_leave_game(*args):
    with perf_monitor.measure():
        room_manager.leave_room(request.sid)


@socketio.on_error_default
def on_handler_error(e):
    event = request.event.get('message') if getattr(request, 'event', None) else None
    logger.error(f'[ERROR] Error while handling {event} from {request.sid}: {e}', exc_info=e)
    if event in JOIN_EVENTS:
        try:
            transport.send(request.sid, JoinFailed(reason='Internal server error'))
        except Exception as send_err:
            logger.error(f'[ERROR] Could not report failure to {request.sid}: {send_err}')


def stats_loop():
    """Sample process statistics once a second and log them periodically"""
    while not shutting_down.is_set():
        socketio.sleep(1)
        counts = room_manager.get_stats()
        perf_monitor.record_system_stats(counts['players'], counts['rooms'])
        if perf_monitor.should_log():
            perf_monitor.log_performance()


def graceful_shutdown(reason, exit_code=1):
    """Refuse new connections, stop room timers, and exit once the grace period is over

    Pending sends keep flowing on the open connections until the force-exit
    timer fires.
    """
    if shutting_down.is_set():
        return
    shutting_down.set()
    logger.critical(f'[SHUTDOWN] {reason}; no longer accepting connections')

    room_manager.shutdown()

    grace_period = app.config['SHUTDOWN_GRACE_PERIOD']
    force_exit = threading.Timer(grace_period, os._exit, args=(exit_code,))
    force_exit.daemon = True
    force_exit.start()
    return force_exit


def install_fatal_handlers():
    def on_uncaught(exc_type, exc_value, exc_traceback):
        logger.critical('[FATAL] Uncaught exception', exc_info=(exc_type, exc_value, exc_traceback))
        graceful_shutdown('Uncaught exception')

    def on_thread_exception(args):
        if args.exc_type is SystemExit:
            return
        logger.critical(f'[FATAL] Uncaught exception in thread {args.thread.name if args.thread else "?"}',
                        exc_info=(args.exc_type, args.exc_value, args.exc_traceback))
        graceful_shutdown('Uncaught exception in background thread')

    def on_signal(signum, frame):
        graceful_shutdown(f'Received {signal.Signals(signum).name}', exit_code=0)

    sys.excepthook = on_uncaught
    threading.excepthook = on_thread_exception
    signal.signal(signal.SIGTERM, on_signal)
    signal.signal(signal.SIGINT, on_signal)


def main():
    log_filename = configure_logging(app.config['LOG_DIR'])
    print(f"[STARTUP] Server logs: {log_filename}")
    print("[STARTUP] Starting Pac-Man rooms server...")
    print(f"[STARTUP] Listening on http://{app.config['HOST']}:{app.config['PORT']}")

    install_fatal_handlers()
    socketio.start_background_task(stats_loop)

    # No reloader: it would spawn a second process with its own rooms
    socketio.run(app, host=app.config['HOST'], port=app.config['PORT'],
                 debug=False, use_reloader=False, allow_unsafe_werkzeug=True)


if __name__ == '__main__':
    main()
