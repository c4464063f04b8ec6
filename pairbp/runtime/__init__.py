"""
Runtime module: message table, schedules and the message-passing engine.
"""

from pairbp.runtime.messages import MessageTable
from pairbp.runtime.schedule import Schedule, FixedOrder, RandomOrder, ResidualOrder
from pairbp.runtime.engine import PassReport, check_dimensions, pass_messages

__all__ = [
    "MessageTable",
    "Schedule",
    "FixedOrder",
    "RandomOrder",
    "ResidualOrder",
    "PassReport",
    "check_dimensions",
    "pass_messages",
]
