import logging
import time
from contextlib import contextmanager

import psutil

logger = logging.getLogger(__name__)


class PerformanceMonitor:
    """Rolling statistics about event handling cost and process load"""

    def __init__(self, log_interval=5.0, clock=time.time):
        self.clock = clock
        self.log_interval = log_interval
        self.event_times = []
        self.cpu_percentages = []
        self.memory_usage = []
        self.player_counts = []
        self.room_counts = []
        self.last_log_time = clock()
        self.event_count = 0

    def record_event_time(self, event_time):
        self.event_times.append(event_time)
        self.event_count += 1

        # Keep only last 100 measurements
        if len(self.event_times) > 100:
            self.event_times.pop(0)

    @contextmanager
    def measure(self):
        started = self.clock()
        try:
            yield
        finally:
            self.record_event_time(self.clock() - started)

    def record_system_stats(self, player_count, room_count):
        self.cpu_percentages.append(psutil.cpu_percent())
        self.memory_usage.append(psutil.Process().memory_info().rss / 1024 / 1024)  # MB
        self.player_counts.append(player_count)
        self.room_counts.append(room_count)

        # Keep only last 60 samples
        if len(self.cpu_percentages) > 60:
            self.cpu_percentages.pop(0)
            self.memory_usage.pop(0)
            self.player_counts.pop(0)
            self.room_counts.pop(0)

    def get_stats(self):
        stats = {
            'events_handled': self.event_count,
            'player_count': self.player_counts[-1] if self.player_counts else 0,
            'room_count': self.room_counts[-1] if self.room_counts else 0,
            'cpu_percent': round(sum(self.cpu_percentages) / len(self.cpu_percentages), 1) if self.cpu_percentages else 0,
            'memory_mb': round(sum(self.memory_usage) / len(self.memory_usage), 1) if self.memory_usage else 0,
        }
        if self.event_times:
            stats['avg_event_time'] = round(sum(self.event_times) / len(self.event_times) * 1000, 2)  # ms
            stats['max_event_time'] = round(max(self.event_times) * 1000, 2)  # ms
        else:
            stats['avg_event_time'] = 0
            stats['max_event_time'] = 0
        return stats

    def should_log(self):
        return self.clock() - self.last_log_time >= self.log_interval

    def log_performance(self):
        stats = self.get_stats()
        logger.info(f"[PERFORMANCE] Events: {stats['events_handled']}, "
                    f"Event Time: {stats['avg_event_time']}ms (max: {stats['max_event_time']}ms), "
                    f"CPU: {stats['cpu_percent']}%, Memory: {stats['memory_mb']}MB, "
                    f"Rooms: {stats['room_count']}, Players: {stats['player_count']}")
        self.last_log_time = self.clock()
