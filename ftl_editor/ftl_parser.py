from collections import Counter
from typing import Dict, List, Tuple

from fluent.syntax import FluentParser, FluentSerializer, ast

from ftl_editor.fluent_entries import entry_key, parse_entry, serialize_entry


def _line_number(content: str, offset: int) -> int:
    """Convert a character offset into a 1-based line number."""
    return content.count('\n', 0, offset) + 1


def parse_ftl_source(content: str) -> Tuple[ast.Resource, Dict[str, str]]:
    """
    Parse Fluent resource text.

    Args:
        content (str): The text of a .ftl file.

    Returns:
        Tuple[ast.Resource, Dict[str, str]]: The parsed resource and a dictionary
        mapping each entry key (terms keep their leading ``-``) to the canonical
        source of that entry. Comments and junk are not indexed.
    """
    resource = FluentParser().parse(content)
    entries = {}
    for entry in resource.body:
        key = entry_key(entry)
        if key is None:
            continue
        entries[key] = serialize_entry(entry)
    return resource, entries


def parse_ftl_file(file_path: str) -> Tuple[ast.Resource, Dict[str, str]]:
    """
    Parse a .ftl file.

    Args:
        file_path (str): The path to the .ftl file.

    Returns:
        Tuple[ast.Resource, Dict[str, str]]: The parsed resource and its entries by key.
    """
    with open(file_path, 'r', encoding='utf-8') as file:
        content = file.read()
    return parse_ftl_source(content)


def reassemble_file(resource: ast.Resource) -> str:
    """
    Reassemble the file content from a parsed resource.

    Junk is written back verbatim so no content is lost.

    Args:
        resource (ast.Resource): The parsed resource.

    Returns:
        str: The reassembled file content.
    """
    return FluentSerializer(with_junk=True).serialize(resource)


def replace_entry(resource: ast.Resource, key: str, entry_source: str) -> bool:
    """
    Replace the entry addressed by ``key`` with the entry in ``entry_source``.

    A comment attached to the old entry is moved to the new one. When no entry
    has that key, the new entry is appended to the resource.

    Returns:
        bool: True if an existing entry was replaced, False if it was appended.

    Raises:
        GrammarError: If ``entry_source`` does not parse.
    """
    new_entry = parse_entry(entry_source)
    for index, entry in enumerate(resource.body):
        if entry_key(entry) == key:
            new_entry.comment = entry.comment
            resource.body[index] = new_entry
            return True
    resource.body.append(new_entry)
    return False


def lint_ftl_file(file_path: str) -> List[str]:
    """
    Lints a .ftl file to check for syntax errors and duplicate keys.

    Args:
        file_path: The path to the .ftl file.

    Returns:
        A list of error messages. An empty list means no errors were found.
    """
    errors = []
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()
    except (IOError, OSError, UnicodeDecodeError) as e:
        errors.append(f"Linter Error: Could not read or process file {file_path}. Reason: {e}")
        return errors

    resource = FluentParser().parse(content)
    keys = []
    for entry in resource.body:
        if isinstance(entry, ast.Junk):
            line = _line_number(content, entry.span.start)
            messages = [annotation.message for annotation in entry.annotations if annotation.message]
            reason = '; '.join(messages) if messages else 'unparsable content'
            errors.append(f"Linter Error: Invalid Fluent syntax on line {line}: {reason}")
            continue
        key = entry_key(entry)
        if key is not None:
            keys.append(key)

    for key, count in Counter(keys).items():
        if count > 1:
            errors.append(f"Linter Error: Key '{key}' is defined {count} times.")

    return errors
