"""In-memory stand-ins used by the test suites"""
from collections import defaultdict


class RecordingTransport:
    """Collects every emitted event instead of sending it"""

    def __init__(self):
        self.sent = []  # (scope, target, event, payload)
        self.rooms = defaultdict(set)
        self.tasks = []

    def send(self, sid, message):
        self.sent.append(('to', sid, message.event, message.payload()))

    def broadcast(self, room, message):
        self.sent.append(('room', room, message.event, message.payload()))

    def broadcast_all(self, message):
        self.sent.append(('all', None, message.event, message.payload()))

    def join(self, sid, room):
        self.rooms[room].add(sid)

    def leave(self, sid, room):
        self.rooms[room].discard(sid)

    def start_background_task(self, target, *args, **kwargs):
        self.tasks.append(target)
        return target

    def sleep(self, seconds):
        pass

    def event_names(self):
        return [event for _, _, event, _ in self.sent]

    def payloads(self, event):
        return [payload for _, _, name, payload in self.sent if name == event]

    def last(self, event):
        payloads = self.payloads(event)
        return payloads[-1] if payloads else None

    def clear(self):
        self.sent.clear()


class ManualClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
