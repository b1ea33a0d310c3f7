# tests/utils.py
import collections
import functools
import queue
import threading

from threepc.cluster import ClusterView, Message
from threepc.doit import create_and_run


class MemoryNetwork:
    """Shared in-process message store for MemoryChannel instances."""

    def __init__(self):
        self.lock = threading.Lock()
        self.members = set()
        self.queues = collections.defaultdict(collections.deque)
        self.sent = []


class MemoryChannel:
    """Same primitives as threepc.channel.Channel, without redis."""

    def __init__(self, network=None):
        self.network = network if network is not None else MemoryNetwork()
        self.rank = None

    def _sources(self, source):
        if source is not None:
            return [source]
        return sorted(r for r in self.network.members if r != self.rank)

    def join(self, rank):
        with self.network.lock:
            self.network.members.add(rank)
        return rank

    def bind(self, rank):
        assert rank in self.network.members
        self.rank = rank

    def send(self, kind, recipient):
        msg = Message(kind, self.rank, recipient)
        with self.network.lock:
            self.network.queues[(self.rank, recipient, kind)].append(msg)
            self.network.sent.append(msg)

    def broadcast(self, kind, recipients):
        for recipient in recipients:
            self.send(kind, recipient)

    def probe(self, kind, source=None):
        with self.network.lock:
            return any(self.network.queues.get((s, self.rank, kind))
                       for s in self._sources(source))

    def receive(self, kind, source=None):
        with self.network.lock:
            for s in self._sources(source):
                pending = self.network.queues.get((s, self.rank, kind))
                if pending:
                    return pending.popleft()
        return None

    def deliver(self, kind, sender, recipient):
        """Inject a message as if `sender` had sent it."""
        with self.network.lock:
            self.network.members.update((sender, recipient))
            self.network.queues[(sender, recipient, kind)].append(
                Message(kind, sender, recipient))


def make_channel(rank, *peers):
    """A bound MemoryChannel for `rank` with `peers` already joined."""
    chan = MemoryChannel()
    for r in (rank,) + peers:
        chan.join(r)
    chan.bind(rank)
    return chan


def run_threads(participant_count, timeout, stall=None, refusing=()):
    """
    Run one transaction with every participant in its own thread.

    :return: dict rank -> (role, state, history)
    """
    network = MemoryNetwork()
    factory = functools.partial(MemoryChannel, network)
    start_bar = threading.Barrier(participant_count)
    stop_bar = threading.Barrier(participant_count)
    results = queue.Queue()

    threads = []
    for rank in range(participant_count):
        view = ClusterView(rank, participant_count)
        thread = threading.Thread(
            target=create_and_run,
            args=(factory, view, timeout, stall, tuple(refusing),
                  start_bar, stop_bar, results, None),
            daemon=True)
        threads.append(thread)
        thread.start()

    limit = 3 * timeout * participant_count + (stall[2] if stall else 0) + 5
    for thread in threads:
        thread.join(limit)

    outcome = {}
    while not results.empty():
        rank, role, state, history = results.get()
        outcome[rank] = (role, state, history)
    return outcome
