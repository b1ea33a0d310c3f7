"""
Constants shared by coordinator, cohorts, channel and launcher.
"""

# coordinator messages
COMMIT_REQUEST = 'COMMIT_REQUEST'
PREPARE = 'PREPARE'
COMMIT = 'COMMIT'
# cohort messages
AGREED = 'AGREED'
ACK = 'ACK'
# sent by both sides
ABORT = 'ABORT'

MESSAGE_KINDS = (COMMIT_REQUEST, AGREED, ABORT, PREPARE, ACK, COMMIT)

# protocol states (in protocol order)
QUERY = 'QUERY'
WAITING = 'WAITING'
PRECOMMIT = 'PRECOMMIT'
# COMMIT and ABORT double as terminal state names

STATES = (QUERY, WAITING, PRECOMMIT, COMMIT, ABORT)
TERMINAL_STATES = (COMMIT, ABORT)

# returned by a bounded wait that saw nothing
TIMED_OUT = 'TIMEOUT'

# node roles
COORDINATOR = 'COORDINATOR'
COHORT = 'COHORT'

COORDINATOR_RANK = 0

# misc constants
TIMEOUT = 5  # seconds, single-message wait budget
POLL_INTERVAL = 0.01  # seconds between two polls of the channel

# redis transport
REDIS_HOST = 'localhost'
REDIS_PORT = 6379
REDIS_DB = 0
NAMESPACE = 'threepc'
