"""Template delimiter pairs.

A delimiter pair is the two literal markers that open and close a template
tag. One pair drives all three Jinja2 tag kinds: with ``("<%", "%>")``
statements are written ``<% if x %>``, expressions ``<%= x %>`` and
comments ``<%# note %>``.

The defaults avoid colliding with client-side templating that uses ``{{``
and ``}}``.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Self

from temple.exceptions import DelimiterError

DEFAULT_LEFT = "<%"
DEFAULT_RIGHT = "%>"

EXPRESSION_MARKER = "="
COMMENT_MARKER = "#"


@dataclass(slots=True, frozen=True)
class Delimiters:
    """An opening and closing marker pair.

    Attributes:
        left: Marker that opens a tag.
        right: Marker that closes a tag.
    """

    left: str
    right: str

    def __post_init__(self) -> None:
        if not self.left or not self.right:
            msg = "delimiters must be non-empty strings"
            raise DelimiterError(msg, delimiters=(self.left, self.right))

    @classmethod
    def from_sequence(cls, delimiters: Sequence[str]) -> Self:
        """Build a pair from exactly two strings.

        Raises:
            DelimiterError: If the sequence does not hold exactly two items.
        """
        if len(delimiters) != 2:  # noqa: PLR2004
            msg = f"there must be exactly 2 delimiters, got {len(delimiters)}"
            raise DelimiterError(msg, delimiters=delimiters)
        return cls(delimiters[0], delimiters[1])

    @property
    def environment_options(self) -> dict[str, str]:
        """Jinja2 Environment keyword arguments for this pair."""
        return {
            "block_start_string": self.left,
            "block_end_string": self.right,
            "variable_start_string": self.left + EXPRESSION_MARKER,
            "variable_end_string": self.right,
            "comment_start_string": self.left + COMMENT_MARKER,
            "comment_end_string": self.right,
        }

    def __iter__(self) -> Iterator[str]:
        yield self.left
        yield self.right


_default_delimiters = Delimiters(DEFAULT_LEFT, DEFAULT_RIGHT)


def get_default_delimiters() -> Delimiters:
    """Return the process-wide default delimiters."""
    return _default_delimiters


def set_default_delimiters(left: str, right: str) -> None:
    """Change the process-wide default delimiters.

    Only compiles started afterwards are affected; sets that are already
    compiled keep the delimiters they were built with.
    """
    global _default_delimiters  # noqa: PLW0603
    _default_delimiters = Delimiters(left, right)


def reset_default_delimiters() -> None:
    """Restore the process-wide defaults to ``<%`` and ``%>``."""
    set_default_delimiters(DEFAULT_LEFT, DEFAULT_RIGHT)
