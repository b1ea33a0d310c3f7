"""
Three-phase commit demo launcher.
- starts one coordinator (rank 0) and N-1 cohorts
- every participant runs in its own process
- processes talk through the redis channel only
- multiprocessing should work on unix and windows

Examples:
  python -m threepc -n 4
  python -m threepc -n 4 --refuse 2
  python -m threepc -n 4 --stall-rank 0 --stall-state PRECOMMIT
"""

import argparse
import functools
import logging
import multiprocessing as mp
import queue
import time

from threepc import logsetup
from threepc.channel import Channel
from threepc.cluster import ClusterView
from threepc.cohort import Cohort, always_agree
from threepc.const3PC import (COORDINATOR_RANK, NAMESPACE, REDIS_DB,
                              REDIS_HOST, REDIS_PORT, STATES,
                              TERMINAL_STATES, TIMEOUT)
from threepc.coordinator import Coordinator
from threepc.injector import FailureInjector

logger = logging.getLogger("threepc.doit")


def refuse():
    return False


def create_and_run(channel_factory, view, timeout, stall, refusing,
                   start_bar, stop_bar, results, log_level=logging.INFO,
                   barrier_timeout=None):
    """
    Create and run one participant (coordinator or cohort role)
    :param channel_factory: callable returning a fresh channel
    :param view: ClusterView of this participant
    :param timeout: single-message wait budget in seconds
    :param stall: (rank, state, seconds) for the failure injector, or None
    :param refusing: ranks of cohorts that vote ABORT
    :param start_bar: barrier syncing channel population
    :param stop_bar: barrier keeping the channel alive until all are done
    :param results: queue receiving (rank, role, terminal state, history)
    :param log_level: stream level for this process, None keeps the
        current logging setup
    :param barrier_timeout: seconds to wait on either barrier, None waits
        forever
    """
    if log_level is not None:
        logsetup.setup(stream_level=log_level)
    try:
        chan = channel_factory()
        chan.join(view.self_rank)

        injector = FailureInjector(*stall) if stall else None
        if view.is_coordinator:
            node = Coordinator(chan, view, timeout=timeout, injector=injector)
        else:
            vote = refuse if view.self_rank in refusing else always_agree
            node = Cohort(chan, view, timeout=timeout, injector=injector,
                          vote=vote)

        # wait for all participants to join the channel
        start_bar.wait(barrier_timeout)
        node.init()
        state = node.run()
        results.put((view.self_rank, view.role, state, list(node.history)))
        # nobody tears down while a peer may still send
        stop_bar.wait(barrier_timeout)
    except Exception:
        # release the peers waiting on us, they fail with BrokenBarrierError
        logger.exception("#{} failed.".format(view.self_rank))
        start_bar.abort()
        stop_bar.abort()
        raise
    return node


def _collect(results, children, limit):
    """Read one result per child, stop early once a child has failed."""
    deadline = time.monotonic() + limit
    outcome = []
    while len(outcome) < len(children):
        try:
            outcome.append(results.get(timeout=0.2))
        except queue.Empty:
            failed = [p.name for p in children if p.exitcode not in (None, 0)]
            if failed:
                raise RuntimeError("participant(s) {} failed"
                                   .format(", ".join(failed)))
            if time.monotonic() >= deadline:
                raise
    return outcome


def run_cluster(channel_factory, participant_count, timeout=TIMEOUT,
                stall=None, refusing=(), log_level=logging.INFO):
    """
    Run one transaction with participant_count processes.

    :return: list of (rank, role, state, history) sorted by rank
    """
    # every participant terminates within 3 x T x N plus an injected stall
    limit = 3 * timeout * participant_count + (stall[2] if stall else 0) + 10
    # we need to spawn processes for support of windows
    ctx = mp.get_context('spawn')
    start_bar = ctx.Barrier(participant_count)
    stop_bar = ctx.Barrier(participant_count)
    results = ctx.Queue()

    children = []
    for rank in range(participant_count):
        view = ClusterView(rank, participant_count, COORDINATOR_RANK)
        proc = ctx.Process(
            target=create_and_run,
            name="{}-{}".format(view.role.capitalize(), rank),
            args=(channel_factory, view, timeout, stall, tuple(refusing),
                  start_bar, stop_bar, results, log_level, limit))
        children.append(proc)
        proc.start()

    try:
        outcome = _collect(results, children, limit)
    except BaseException:
        # peers of a dead child may still sit on a barrier
        for proc in children:
            proc.terminate()
        raise
    finally:
        for proc in children:
            proc.join()
    return sorted(outcome)


def parse_args(argv=None):
    ap = argparse.ArgumentParser(
        prog='threepc', description='Run one three-phase commit transaction.')
    ap.add_argument('-n', '--participants', type=int, default=4,
                    help='number of processes incl. coordinator (default 4)')
    ap.add_argument('-t', '--timeout', type=float, default=TIMEOUT,
                    help='single-message wait budget in seconds')
    ap.add_argument('--refuse', type=int, action='append', default=[],
                    metavar='RANK', help='cohort that votes ABORT')
    ap.add_argument('--stall-rank', type=int, metavar='RANK')
    ap.add_argument('--stall-state', choices=[s for s in STATES
                                              if s not in TERMINAL_STATES])
    ap.add_argument('--stall-seconds', type=float,
                    help='default: longer than the quorum deadline')
    ap.add_argument('--redis-host', default=REDIS_HOST)
    ap.add_argument('--redis-port', type=int, default=REDIS_PORT)
    ap.add_argument('--redis-db', type=int, default=REDIS_DB)
    ap.add_argument('--namespace', default=NAMESPACE)
    ap.add_argument('--log-level', default='INFO',
                    choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    ap.add_argument('--log-file')
    args = ap.parse_args(argv)

    if args.participants < 2:
        ap.error('need at least 2 participants')
    for rank in args.refuse:
        if rank == COORDINATOR_RANK or not 0 <= rank < args.participants:
            ap.error('--refuse {} is not a cohort rank'.format(rank))
    if (args.stall_rank is None) != (args.stall_state is None):
        ap.error('--stall-rank and --stall-state go together')
    if args.stall_rank is not None and \
            not 0 <= args.stall_rank < args.participants:
        ap.error('--stall-rank {} out of range'.format(args.stall_rank))
    return args


def main(argv=None):
    args = parse_args(argv)
    log_level = getattr(logging, args.log_level)
    logsetup.setup(stream_level=log_level, log_file=args.log_file)

    channel_factory = functools.partial(
        Channel, host=args.redis_host, port=args.redis_port,
        db=args.redis_db, namespace=args.namespace)

    # Flush communication channel
    channel_factory().flush()

    stall = None
    if args.stall_rank is not None:
        seconds = args.stall_seconds
        if seconds is None:
            seconds = args.timeout * args.participants
        stall = (args.stall_rank, args.stall_state, seconds)

    logger.info("Starting {} participants, timeout {}s, stall {}, refusing {}."
                .format(args.participants, args.timeout, stall, args.refuse))
    outcome = run_cluster(channel_factory, args.participants,
                          timeout=args.timeout, stall=stall,
                          refusing=args.refuse, log_level=log_level)

    for rank, role, state, history in outcome:
        print("#{} {:<11} {:<6} {}".format(rank, role, state,
                                           ' -> '.join(history)))
    return 0
