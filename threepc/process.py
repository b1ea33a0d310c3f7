import logging

from threepc.cluster import format_node
from threepc.const3PC import QUERY, STATES, TERMINAL_STATES, TIMEOUT


class Process:
    """
    Common run loop of coordinator and cohorts.

    A process owns its current state and advances it one step at a time
    until a terminal state is reached. States only ever move forward
    along QUERY, WAITING, PRECOMMIT, {COMMIT | ABORT}.
    """

    def __init__(self, chan, view, timeout=TIMEOUT, injector=None):
        self.channel = chan
        self.view = view
        self.timeout = timeout
        self.injector = injector
        self.state = None
        self.history = []
        self.logger = logging.getLogger("threepc." + type(self).__name__)
        self._handlers = {}  # state -> action, filled by subclasses

    def _mapid(self):
        return format_node(self.view.self_rank, self.state)

    def _enter_state(self, state):
        if self.state is not None:
            assert STATES.index(state) > STATES.index(self.state), \
                'State error: {} -> {}'.format(self.state, state)
        self.logger.info("{}: state transition => {}".format(
            self._mapid(), state))
        self.state = state
        self.history.append(state)

    def _step(self):
        self._handlers[self.state]()

    def init(self):
        self.channel.bind(self.view.self_rank)
        self._enter_state(QUERY)  # every process starts in QUERY

    def run(self):
        while self.state not in TERMINAL_STATES:
            if self.injector is not None:
                self.injector.check(self.view.self_rank, self.state)
            self._step()

        self.logger.info("{} {} terminated in state {}.".format(
            type(self).__name__, format_node(self.view.self_rank),
            self.state))
        return self.state
