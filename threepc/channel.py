"""
Redis backed message channel.

Every (sender, recipient, kind) triple owns one redis list, so a receiver
can filter by message kind and by sender without consuming anything else.
Lists preserve the send order per sender and recipient. Members of the
channel are kept in a redis set.

Key layout (with the default namespace):

    threepc:members                      set of joined ranks
    threepc:msg:<sender>:<recipient>:<kind>  list of pickled Message tuples
"""

import logging
import pickle

import redis

from threepc.cluster import Message, format_message
from threepc.const3PC import (MESSAGE_KINDS, NAMESPACE, REDIS_DB, REDIS_HOST,
                              REDIS_PORT)


class Channel:
    """Tagged point-to-point transport between ranked processes."""

    def __init__(self, host=REDIS_HOST, port=REDIS_PORT, db=REDIS_DB,
                 namespace=NAMESPACE, connection=None):
        if connection is None:
            connection = redis.StrictRedis(host=host, port=port, db=db)
        self.channel = connection
        self.namespace = namespace
        self.rank = None  # set by bind()
        self.logger = logging.getLogger("threepc.channel.Channel")

    def _members_key(self):
        return "{}:members".format(self.namespace)

    def _queue_key(self, sender, recipient, kind):
        return "{}:msg:{}:{}:{}".format(self.namespace, sender, recipient,
                                       kind)

    def _sources(self, source):
        if source is not None:
            return [source]
        return [r for r in self.members() if r != self.rank]

    def join(self, rank):
        self.channel.sadd(self._members_key(), str(rank))
        return rank

    def bind(self, rank):
        assert self.channel.sismember(self._members_key(), str(rank)), \
            'State error: rank {} has not joined the channel'.format(rank)
        self.rank = rank

    def leave(self, rank):
        self.channel.srem(self._members_key(), str(rank))
        if self.rank == rank:
            self.rank = None

    def members(self):
        return sorted(int(m) for m in self.channel.smembers(self._members_key()))

    def flush(self):
        """Drop every member and pending message of this namespace."""
        keys = list(self.channel.scan_iter(match=self.namespace + ":*"))
        if keys:
            self.channel.delete(*keys)
        self.logger.debug("Flushed {} keys of namespace {}."
                          .format(len(keys), self.namespace))

    def send(self, kind, recipient):
        assert self.rank is not None, 'State error: send on unbound channel'
        assert kind in MESSAGE_KINDS, 'Unknown message kind {}'.format(kind)
        msg = Message(kind, self.rank, recipient)
        self.channel.rpush(self._queue_key(self.rank, recipient, kind),
                           pickle.dumps(msg))
        self.logger.debug("sent {}".format(format_message(msg)))

    def broadcast(self, kind, recipients):
        for recipient in recipients:
            self.send(kind, recipient)

    def probe(self, kind, source=None):
        """Check for a pending message without consuming it."""
        assert self.rank is not None, 'State error: probe on unbound channel'
        for sender in self._sources(source):
            if self.channel.llen(self._queue_key(sender, self.rank, kind)):
                return True
        return False

    def receive(self, kind, source=None):
        """
        Consume one pending message of the given kind.

        Returns None if nothing is pending; callers probe first.
        """
        assert self.rank is not None, \
            'State error: receive on unbound channel'
        for sender in self._sources(source):
            raw = self.channel.lpop(self._queue_key(sender, self.rank, kind))
            if raw is not None:
                msg = pickle.loads(raw)
                self.logger.debug("received {}".format(format_message(msg)))
                return msg
        return None
