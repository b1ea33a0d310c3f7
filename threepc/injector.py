import logging
import time

from threepc.const3PC import STATES, TERMINAL_STATES


class FailureInjector:
    """
    Stalls one designated process once it reaches a designated state.

    The stall happens before the process takes any action in that state,
    which from the outside looks like a crash followed by a late restart.
    """

    def __init__(self, rank, state, duration, sleep=time.sleep):
        if state not in STATES or state in TERMINAL_STATES:
            raise ValueError("cannot stall in state {}".format(state))
        self.rank = rank
        self.state = state
        self.duration = duration
        self.fired = False
        self._sleep = sleep
        self.logger = logging.getLogger("threepc.injector.FailureInjector")

    def check(self, rank, state):
        """Stall if (rank, state) is the designated one. Fires only once."""
        if self.fired or rank != self.rank or state != self.state:
            return False
        self.fired = True
        self.logger.warning("#{} [{}]: stalling for {:.2f}s."
                            .format(rank, state, self.duration))
        self._sleep(self.duration)
        self.logger.warning("#{} [{}]: resumed.".format(rank, state))
        return True
