"""
Exception types raised inside the parsing and matching core.

None of these escape the public parse/match operations: they are raised at the
collaborator seams (config, provider, retry, document conversion) and converted
to conservative defaults by the callers.
"""

from typing import Optional


class ResumeMatchError(Exception):
    """Base class for all core errors."""


class ConfigError(ResumeMatchError):
    """Configuration file is missing or malformed."""


class ExternalServiceError(ResumeMatchError):
    """The external text-completion capability failed or is not configured."""


class DocumentConversionError(ResumeMatchError):
    """A binary document could not be converted to text."""


class RetryExhausted(ResumeMatchError):
    """Raised by RetryPolicy after the last allowed attempt fails."""

    def __init__(self, key: str, attempts: int, last_error: Optional[BaseException] = None):
        self.key = key
        self.attempts = attempts
        self.last_error = last_error
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(f"Maximum retry attempts ({attempts}) exceeded for operation {key}{detail}")
