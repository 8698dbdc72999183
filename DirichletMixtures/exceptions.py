# Author: Chariff Alkhassim <chariff.alkhassim@gmail.com>
# License: MIT

"""Exceptions raised by the cluster bookkeeping."""


class InvariantViolation(RuntimeError):
    """Raised when the bookkeeping of a chain is found to be inconsistent.

    This signals a programming error in the sampler driving the state (a
    label used before it was created, a cluster drained twice, parameters of
    different shapes compared...), not a recoverable input condition.
    """
