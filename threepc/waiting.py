"""
Bounded waiting on the channel.

Both primitives poll with a deadline instead of blocking, so a silent
peer can stall a process for at most one deadline.
"""

import logging
import time

from threepc.const3PC import POLL_INTERVAL, TIMED_OUT

logger = logging.getLogger("threepc.waiting")


def await_message(channel, kind, source, abort_kind, abort_source, deadline,
                  poll_interval=POLL_INTERVAL, clock=time.monotonic,
                  sleep=time.sleep):
    """
    Wait for one message of `kind` from `source` or of `abort_kind` from
    `abort_source`, whichever is pending first.

    The abort message is looked at first on every pass so it is never
    shadowed by a wanted message queued at the same time.

    :return: kind of the consumed message, or TIMED_OUT
    """
    start = clock()
    while True:
        if channel.probe(abort_kind, abort_source):
            return channel.receive(abort_kind, abort_source).kind
        if channel.probe(kind, source):
            return channel.receive(kind, source).kind
        if clock() - start >= deadline:
            return TIMED_OUT
        sleep(poll_interval)


def collect_quorum(channel, view, accept_kind, refuse_kind, deadline,
                   poll_interval=POLL_INTERVAL, clock=time.monotonic,
                   sleep=time.sleep):
    """
    Collect `accept_kind` from every cohort of `view`.

    Fails as soon as a single `refuse_kind` is pending, or once the
    deadline passes with acceptances missing.
    """
    expected = view.participant_count - 1
    accepted = []
    start = clock()
    while True:
        while channel.probe(accept_kind):
            msg = channel.receive(accept_kind)
            if msg.sender in accepted:
                # delivery is assumed exactly-once per cohort
                logger.warning("Duplicate {} from #{} counted."
                               .format(accept_kind, msg.sender))
            accepted.append(msg.sender)

        if channel.probe(refuse_kind):
            msg = channel.receive(refuse_kind)
            logger.info("{} from #{} after {} of {} {}."
                        .format(refuse_kind, msg.sender, len(accepted),
                                expected, accept_kind))
            return False

        if len(accepted) >= expected:
            return True
        if clock() - start >= deadline:
            logger.warning("Timed out with {} of {} {}."
                           .format(len(accepted), expected, accept_kind))
            return False
        sleep(poll_interval)
