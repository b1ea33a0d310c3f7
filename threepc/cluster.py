"""
Fixed per-process view of the cluster and the message record exchanged
over the channel.
"""

from collections import namedtuple

from threepc.const3PC import COORDINATOR, COHORT, COORDINATOR_RANK

Message = namedtuple('Message', ['kind', 'sender', 'recipient'])


class ClusterView(namedtuple('ClusterView',
                             ['self_rank', 'participant_count',
                              'coordinator_rank'])):
    """
    Read-only bootstrap information of one participant.

    Ranks run from 0 to participant_count - 1. Exactly one rank is the
    coordinator, every other rank is a cohort.
    """
    __slots__ = ()

    def __new__(cls, self_rank, participant_count,
                coordinator_rank=COORDINATOR_RANK):
        if participant_count < 2:
            raise ValueError("need at least 2 participants, got {}"
                             .format(participant_count))
        for rank in (self_rank, coordinator_rank):
            if not 0 <= rank < participant_count:
                raise ValueError("rank {} outside of 0..{}"
                                 .format(rank, participant_count - 1))
        return super().__new__(cls, self_rank, participant_count,
                               coordinator_rank)

    @property
    def role(self):
        return COORDINATOR if self.is_coordinator else COHORT

    @property
    def is_coordinator(self):
        return self.self_rank == self.coordinator_rank

    @property
    def cohort_ranks(self):
        return [r for r in range(self.participant_count)
                if r != self.coordinator_rank]

    def quorum_deadline(self, timeout):
        # collecting from more cohorts is allowed proportionally more time
        return timeout * (self.participant_count - 1)


def format_node(rank, state=None):
    if state is None:
        return "#{}".format(rank)
    return "#{} [{}]".format(rank, state)


def format_message(msg):
    return "{} {} -> {}".format(msg.kind, format_node(msg.sender),
                                format_node(msg.recipient))
