import logging

from ftl_editor.fluent_entries import (
    AttributeShape,
    EntryKind,
    attribute_shape,
    entry_kind,
    parse_entry,
    serialize_entry,
)

logger = logging.getLogger(__name__)

ATTRIBUTE_INDENT = ' ' * 4
ATTRIBUTE_BLOCK_INDENT = ' ' * 8
VALUE_BLOCK_INDENT = ' ' * 4


def reconstruct(original_source: str, translation: str) -> str:
    """
    Rebuild a Fluent entry around a plain-text translation.

    The identifier and kind of the original entry are kept. If the original
    has exactly one attribute, the translation becomes that attribute's value;
    otherwise it becomes the entry's value and any attributes are dropped.

    The entry is first written out as Fluent source, then parsed again and
    serialized, so the returned text is always in canonical form.

    Args:
        original_source: Fluent source of the original message or term.
        translation: The translated text. Line breaks produce a block value.

    Returns:
        The canonical Fluent source of the rebuilt entry.

    Raises:
        GrammarError: If the original does not parse, or if the rebuilt entry
            does not parse (for example, when the translation contains an
            unbalanced ``{``).
    """
    original = parse_entry(original_source)

    key = original.id.name
    # The parser strips the sigil from term identifiers.
    if entry_kind(original) == EntryKind.TERM:
        key = f"-{key}"

    is_multiline = '\n' in translation

    if attribute_shape(original) == AttributeShape.SINGLE:
        attribute = original.attributes[0].id.name
        if is_multiline:
            content = f"{key} =\n{ATTRIBUTE_INDENT}.{attribute} ="
            for line in translation.split('\n'):
                content += f"\n{ATTRIBUTE_BLOCK_INDENT}{line}"
        else:
            content = f"{key} =\n{ATTRIBUTE_INDENT}.{attribute} = {translation}"
    else:
        if is_multiline:
            content = f"{key} ="
            for line in translation.split('\n'):
                content += f"\n{VALUE_BLOCK_INDENT}{line}"
        else:
            content = f"{key} = {translation}"

    logger.debug("Reconstructed source for '%s': %r", key, content)

    # Reparse so the serializer, not the hand-built text, decides the layout.
    return serialize_entry(parse_entry(content))
