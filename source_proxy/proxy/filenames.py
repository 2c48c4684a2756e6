"""
FilenameNormalizer — derives the next sequential filename for an export.

The first run matched by the configured pattern (``[0-9]+`` by default) is
parsed as an integer, incremented by one and written back in place::

    report-007.csv  ->  report-008.csv
    batch-9.log     ->  batch-10.log
    readme.txt      ->  readme.txt

The result keeps the matched run's width when it was zero-padded and grows
naturally otherwise. Filenames with no match, or whose match is not an
integer under a custom pattern, pass through unchanged.

The compiled pattern is built once at startup and only read afterwards, so
one instance is shared by all requests without locking. Two concurrent
exports of the same name derive the same next filename; deduplication is
left to the storage backend.
"""
import re
from typing import Pattern

from source_proxy.errors import ConfigurationError

DEFAULT_MATCH_EXPRESSION = "[0-9]+"


class FilenameNormalizer:
    """Increment the first numeric run of a filename."""

    def __init__(self, pattern: Pattern[str]):
        self.pattern = pattern

    @classmethod
    def from_expression(cls, expression: str = DEFAULT_MATCH_EXPRESSION) -> "FilenameNormalizer":
        """Compile *expression*; raises ``ConfigurationError`` if it is not a valid regex."""
        try:
            pattern = re.compile(expression or DEFAULT_MATCH_EXPRESSION)
        except re.error as e:
            raise ConfigurationError(
                f"error compiling match expression of <{expression}>"
            ) from e
        return cls(pattern)

    def normalize(self, candidate: str) -> str:
        match = self.pattern.search(candidate)
        if match is None:
            return candidate

        run = match.group(0)
        if not run.isdigit() or not run.isascii():
            return candidate

        return candidate[: match.start()] + _increment_digits(run) + candidate[match.end():]


def _increment_digits(run: str) -> str:
    """Add one to an ASCII digit string, carrying by hand so run length is unbounded."""
    digits = list(run)
    i = len(digits) - 1
    while i >= 0 and digits[i] == "9":
        digits[i] = "0"
        i -= 1
    if i < 0:
        return "1" + "".join(digits)
    digits[i] = chr(ord(digits[i]) + 1)
    return "".join(digits)
