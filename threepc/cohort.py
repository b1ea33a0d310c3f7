"""
Three-phase commit cohort.
"""

from threepc.const3PC import (ABORT, ACK, AGREED, COMMIT, COMMIT_REQUEST,
                              PRECOMMIT, PREPARE, QUERY, TIMED_OUT, TIMEOUT,
                              WAITING)
from threepc.process import Process
from threepc.waiting import await_message


def always_agree():
    return True


class Cohort(Process):
    """
    Votes on the coordinator's request and follows its decision.

    Every silence of the coordinator leads to ABORT, except in PRECOMMIT:
    reaching PRECOMMIT means all cohorts have already agreed, so a cohort
    that hears nothing there commits on its own. An explicit ABORT always
    wins.
    """

    def __init__(self, chan, view, timeout=TIMEOUT, injector=None,
                 vote=always_agree):
        super().__init__(chan, view, timeout=timeout, injector=injector)
        assert not view.is_coordinator, \
            'State error: rank {} is the coordinator'.format(view.self_rank)
        self.coordinator = view.coordinator_rank
        self._vote = vote
        self._handlers = {
            QUERY: self._query,
            WAITING: self._waiting,
            PRECOMMIT: self._precommit,
        }

    def _await(self, kind):
        return await_message(self.channel, kind, self.coordinator,
                             ABORT, self.coordinator, self.timeout)

    def _reply(self, kind):
        self.channel.send(kind, self.coordinator)

    def _query(self):
        msg = self._await(COMMIT_REQUEST)
        if msg != COMMIT_REQUEST:
            self.logger.info("{}: {} while waiting for {}".format(
                self._mapid(), msg, COMMIT_REQUEST))
            self._enter_state(ABORT)
        elif self._vote():
            self._reply(AGREED)
            self._enter_state(WAITING)
        else:
            # local decision is negative: vote abort and quit directly
            self._reply(ABORT)
            self._enter_state(ABORT)

    def _waiting(self):
        msg = self._await(PREPARE)
        if msg == PREPARE:
            self._reply(ACK)
            self._enter_state(PRECOMMIT)
        else:
            self.logger.info("{}: {} while waiting for {}".format(
                self._mapid(), msg, PREPARE))
            self._enter_state(ABORT)

    def _precommit(self):
        msg = self._await(COMMIT)
        if msg == COMMIT:
            self._enter_state(COMMIT)
        elif msg == TIMED_OUT:
            self.logger.warning("{}: coordinator silent for {}s, committing."
                                .format(self._mapid(), self.timeout))
            self._enter_state(COMMIT)
        else:
            self._enter_state(ABORT)
