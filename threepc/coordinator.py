"""
Three-phase commit coordinator.
"""

from threepc.const3PC import (ABORT, ACK, AGREED, COMMIT, COMMIT_REQUEST,
                              PRECOMMIT, PREPARE, QUERY, TIMEOUT, WAITING)
from threepc.process import Process
from threepc.waiting import collect_quorum


class Coordinator(Process):
    """
    Drives the transaction through its three phases.

    - QUERY: ask every cohort for its vote (COMMIT_REQUEST)
    - WAITING: collect AGREED from all cohorts, then PREPARE
    - PRECOMMIT: collect ACK from all cohorts, then COMMIT

    A single ABORT or a missing reply during either collection aborts the
    transaction for everybody. Failed phases are never retried.
    """

    def __init__(self, chan, view, timeout=TIMEOUT, injector=None):
        super().__init__(chan, view, timeout=timeout, injector=injector)
        assert view.is_coordinator, \
            'State error: rank {} is not the coordinator'.format(view.self_rank)
        self._handlers = {
            QUERY: self._query,
            WAITING: self._waiting,
            PRECOMMIT: self._precommit,
        }

    def _broadcast(self, kind):
        self.logger.debug("{}: broadcasting {} to {}".format(
            self._mapid(), kind, self.view.cohort_ranks))
        self.channel.broadcast(kind, self.view.cohort_ranks)

    def _collect(self, accept_kind):
        return collect_quorum(self.channel, self.view, accept_kind, ABORT,
                              self.view.quorum_deadline(self.timeout))

    def _abort(self):
        self._broadcast(ABORT)
        self._enter_state(ABORT)

    def _query(self):
        self._broadcast(COMMIT_REQUEST)
        self._enter_state(WAITING)

    def _waiting(self):
        if self._collect(AGREED):
            self._broadcast(PREPARE)
            self._enter_state(PRECOMMIT)
        else:
            self._abort()

    def _precommit(self):
        if self._collect(ACK):
            self._broadcast(COMMIT)
            self._enter_state(COMMIT)
        else:
            self._abort()
