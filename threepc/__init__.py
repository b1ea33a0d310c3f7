"""
Three-phase commit (3PC) between one coordinator and a fixed set of
cohort processes, communicating over a redis backed channel.
"""

__version__ = '0.1.0'
