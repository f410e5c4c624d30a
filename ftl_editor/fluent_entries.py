"""Single-entry access to the Fluent grammar library.

Wraps ``fluent.syntax`` so the rest of the package deals with one entry at a
time and gets a ``GrammarError`` instead of a ``Junk`` node when source text
does not parse.
"""
from enum import Enum
from typing import List, Optional, Union

from fluent.syntax import FluentParser, FluentSerializer, ast

Entry = Union[ast.Message, ast.Term]


class GrammarError(ValueError):
    """Raised when source text is not a valid Fluent message or term."""

    def __init__(self, message: str, source: str = '', annotations: Optional[List[ast.Annotation]] = None):
        super().__init__(message)
        self.message = message
        self.source = source
        self.annotations = annotations or []
        self.code = self.annotations[0].code if self.annotations else None


class EntryKind(Enum):
    MESSAGE = 'Message'
    TERM = 'Term'


class AttributeShape(Enum):
    # Exactly one attribute: the translation replaces that attribute's value.
    SINGLE = 'single'
    # Zero or several attributes: the translation replaces the entry value.
    VALUE = 'value'


def _describe_junk(junk: ast.Junk) -> str:
    details = [annotation.message for annotation in junk.annotations if annotation.message]
    if details:
        return '; '.join(details)
    return 'Unparsable content'


def parse_entry(source: str) -> Entry:
    """
    Parse the first message or term in ``source``.

    Leading comments are skipped and are not part of the result.

    Args:
        source: Fluent source text of a single entry.

    Returns:
        The parsed ``ast.Message`` or ``ast.Term``.

    Raises:
        GrammarError: If the source does not contain a valid message or term.
    """
    entry = FluentParser().parse_entry(source)
    if isinstance(entry, ast.Junk):
        raise GrammarError(
            f"Invalid Fluent entry: {_describe_junk(entry)}",
            source=source,
            annotations=list(entry.annotations),
        )
    if not isinstance(entry, (ast.Message, ast.Term)):
        raise GrammarError(
            f"Expected a message or term, found {type(entry).__name__}",
            source=source,
        )
    return entry


def serialize_entry(entry: Entry) -> str:
    """Render an entry in canonical Fluent form, terminated by a newline."""
    return FluentSerializer().serialize_entry(entry)


def entry_kind(entry: Entry) -> EntryKind:
    if isinstance(entry, ast.Term):
        return EntryKind.TERM
    return EntryKind.MESSAGE


def entry_key(entry: ast.BaseNode) -> Optional[str]:
    """
    Return the key an entry is addressed by in a resource.

    Terms keep their ``-`` sigil so that a message and a term sharing an
    identifier never collide. Comments and junk have no key.
    """
    if isinstance(entry, ast.Term):
        return f"-{entry.id.name}"
    if isinstance(entry, ast.Message):
        return entry.id.name
    return None


def attribute_shape(entry: Entry) -> AttributeShape:
    if entry.attributes and len(entry.attributes) == 1:
        return AttributeShape.SINGLE
    return AttributeShape.VALUE
