from __future__ import annotations
from typing import Optional


class AuroraError(Exception):
    """Base for every failure that ends a forecast run.

    `kind` is the stable tag callers switch on, `exit_code` is what the
    command line front end returns for it.
    """
    kind = 'error'
    exit_code = 1

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\n\n{self.hint}"
        return self.message


# Command line validation

class UsageError(AuroraError):
    kind = 'usage'
    exit_code = 20


class MissingArgumentError(AuroraError):
    kind = 'missing'
    exit_code = 21


class InvalidArgumentError(AuroraError):
    kind = 'invalid'
    exit_code = 22


class IncompatibleOptionsError(AuroraError):
    kind = 'incompatible'
    exit_code = 23


# Transport failures, raised by the fetcher and passed through untouched

class NetworkError(AuroraError):
    kind = 'network'
    exit_code = 30


class Timeout(AuroraError):
    kind = 'timeout'
    exit_code = 31


class Unavailable(AuroraError):
    kind = 'unavailable'
    exit_code = 32


class RateLimited(AuroraError):
    kind = 'rate_limited'
    exit_code = 33


# Pipeline failures

class GeocodingNotFound(AuroraError):
    kind = 'geocoding_not_found'
    exit_code = 34


class UpstreamInvalid(AuroraError):
    kind = 'upstream_invalid'
    exit_code = 40


class UpstreamEmpty(AuroraError):
    kind = 'upstream_empty'
    exit_code = 41


class ParseFailure(AuroraError):
    kind = 'parse_failure'
    exit_code = 42
