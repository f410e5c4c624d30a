from typing import List, Optional, Set, Tuple
import re

from fluent.syntax import ast
from fluent.syntax.visitor import Visitor

from ftl_editor.fluent_entries import entry_key, parse_entry
from ftl_editor.ftl_parser import parse_ftl_file, reassemble_file


class _VariableCollector(Visitor):
    def __init__(self):
        super().__init__()
        self.names: Set[str] = set()

    def visit_VariableReference(self, node):
        self.names.add(node.id.name)
        self.generic_visit(node)


def check_key_coverage(base_keys: Set[str], target_keys: Set[str]) -> Tuple[Set[str], Set[str]]:
    """
    Compares the keys in a target locale file against a base source-locale file.

    Args:
        base_keys: A set of keys from the base .ftl file.
        target_keys: A set of keys from the target locale .ftl file.

    Returns:
        A tuple containing two sets:
        - missing_keys: Keys present in the base file but missing from the target file.
        - extra_keys: Keys present in the target file but absent from the base file.
    """
    missing_keys = base_keys - target_keys
    extra_keys = target_keys - base_keys
    return missing_keys, extra_keys


def collect_variables(entry: ast.BaseNode) -> Set[str]:
    """Return the names of all ``$variables`` referenced by an entry."""
    collector = _VariableCollector()
    collector.visit(entry)
    return collector.names


def check_placeable_parity(base_source: str, target_source: str) -> bool:
    """
    Checks if a target entry references the same variables as the base entry.
    Variables are placeables like ``{ $count }``. Reordering and repetition are
    allowed since select expressions legitimately repeat variables per variant.

    Args:
        base_source: Fluent source of the base entry.
        target_source: Fluent source of the translated entry.

    Returns:
        True if both entries reference the same set of variables, False otherwise.

    Raises:
        GrammarError: If either source does not parse.
    """
    base_variables = collect_variables(parse_entry(base_source))
    target_variables = collect_variables(parse_entry(target_source))
    return base_variables == target_variables


def _insertion_index(body: List[ast.BaseNode], previous_key: Optional[str]) -> int:
    if previous_key is not None:
        for index, entry in enumerate(body):
            if entry_key(entry) == previous_key:
                return index + 1
    # No earlier source key in the target: place before the first message or term.
    for index, entry in enumerate(body):
        if entry_key(entry) is not None:
            return index
    return len(body)


def synchronize_keys(target_file_path: str, source_file_path: str) -> Tuple[Set[str], Set[str]]:
    """
    Synchronizes the keys in a target .ftl file with a source file.
    - Removes entries from the target whose keys are not in the source.
    - Adds entries to the target that are in the source but not the target,
      copying the source entry. Each one is placed after the nearest preceding
      source key that the target already has.

    Args:
        target_file_path: The path to the target locale file to be modified.
        source_file_path: The path to the source (e.g., en-US) file.

    Returns:
        The missing and extra key sets that were reconciled.
    """
    target_resource, target_entries = parse_ftl_file(target_file_path)
    source_resource, source_entries = parse_ftl_file(source_file_path)

    missing_keys, extra_keys = check_key_coverage(set(source_entries.keys()), set(target_entries.keys()))

    if not missing_keys and not extra_keys:
        return missing_keys, extra_keys

    body = [
        entry for entry in target_resource.body
        if entry_key(entry) not in extra_keys
    ]

    previous_key = None
    for source_entry in source_resource.body:
        key = entry_key(source_entry)
        if key is None:
            continue
        if key in missing_keys:
            body.insert(_insertion_index(body, previous_key), parse_entry(source_entries[key]))
        previous_key = key

    target_resource.body = body
    new_content = reassemble_file(target_resource)
    with open(target_file_path, 'w', encoding='utf-8') as f:
        f.write(new_content)

    return missing_keys, extra_keys


def check_encoding_and_mojibake(file_path: str) -> List[str]:
    """
    Checks a file for UTF-8 encoding and common mojibake patterns.

    Args:
        file_path: The path to the file to check.

    Returns:
        A list of string error messages. An empty list means the file is valid.
    """
    errors = []

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()
    except UnicodeDecodeError:
        errors.append(f"File '{file_path}' is not a valid UTF-8 file.")
        return errors
    except OSError as e:
        errors.append(f"Could not read file '{file_path}'. Reason: {e}")
        return errors

    # 'Ã' followed by a byte in 0x80-0xFF is UTF-8 text that was decoded as latin-1/cp1252.
    mojibake_pattern = re.compile(r'Ã[\x80-\xff]')
    if mojibake_pattern.search(content):
        errors.append(f"Potential mojibake detected in '{file_path}'. Found patterns like 'Ã¼', 'Ã¤', etc.")

    if '\uFFFD' in content:
        errors.append(f"File '{file_path}' contains the Unicode replacement character (\uFFFD), indicating a previous encoding/decoding error.")

    return errors
