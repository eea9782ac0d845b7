"""
Template name constants.

Pure constants - no I/O or file system knowledge.
"""


class Template:
    """Template name constants. Use these instead of raw strings."""

    REPROMPT = "reprompt"
    CANCELLED = "cancelled"
    RETRY_EXHAUSTED = "retry_exhausted"
