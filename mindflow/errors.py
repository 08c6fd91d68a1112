"""
Exceptions raised by MindFlow operations.
"""


class MindFlowError(Exception):
    """Base class for MindFlow errors."""


class ValidationError(MindFlowError, ValueError):
    """Malformed input rejected before any state is touched."""
