import os
import tempfile
import textwrap
import unittest

from fluent.syntax import ast

from ftl_editor.fluent_entries import GrammarError
from ftl_editor.ftl_parser import (
    lint_ftl_file,
    parse_ftl_file,
    parse_ftl_source,
    reassemble_file,
    replace_entry,
)


class TestParseFtl(unittest.TestCase):

    def test_parse_ftl_file_indexes_messages_and_terms(self):
        content = textwrap.dedent("""\
            ### Resource comment

            # Shown on the start page
            greeting = Hello
            -brand-name = Firefox
            search-input =
                .placeholder = Search
        """)

        with tempfile.TemporaryDirectory() as temp_dir:
            temp_file_path = os.path.join(temp_dir, 'app.ftl')
            with open(temp_file_path, 'w', encoding='utf-8') as f:
                f.write(content)

            resource, entries = parse_ftl_file(temp_file_path)

        self.assertEqual(set(entries.keys()), {'greeting', '-brand-name', 'search-input'})
        self.assertEqual(entries['-brand-name'], "-brand-name = Firefox\n")
        self.assertEqual(entries['search-input'], "search-input =\n    .placeholder = Search\n")
        # The attached comment is part of the entry source.
        self.assertEqual(entries['greeting'], "# Shown on the start page\ngreeting = Hello\n")
        self.assertIsInstance(resource.body[0], ast.ResourceComment)

    def test_junk_is_not_indexed(self):
        _, entries = parse_ftl_source("good = Good\nbad Bad\n")
        self.assertEqual(list(entries.keys()), ['good'])

    def test_reassemble_single_entry_file(self):
        content = "greeting = Hello\n"
        resource, _ = parse_ftl_source(content)
        self.assertEqual(reassemble_file(resource), content)

    def test_reassemble_keeps_junk(self):
        resource, _ = parse_ftl_source("good = Good\nbad Bad\n")
        self.assertIn("bad Bad", reassemble_file(resource))

    def test_reassemble_keeps_entries(self):
        content = "a = A\n\n-b = B\n\nc =\n    .title = C\n"
        resource, entries = parse_ftl_source(content)
        _, reparsed_entries = parse_ftl_source(reassemble_file(resource))
        self.assertEqual(reparsed_entries, entries)


class TestReplaceEntry(unittest.TestCase):

    def test_replace_keeps_attached_comment(self):
        resource, _ = parse_ftl_source("# Shown on the start page\ngreeting = Hello\nbye = Bye\n")

        replaced = replace_entry(resource, 'greeting', "greeting = Hallo\n")

        self.assertTrue(replaced)
        content = reassemble_file(resource)
        self.assertIn("# Shown on the start page\ngreeting = Hallo\n", content)
        self.assertIn("bye = Bye", content)
        self.assertNotIn("Hello", content)

    def test_replace_term_by_sigil_key(self):
        resource, _ = parse_ftl_source("brand = Message\n-brand = Term\n")

        self.assertTrue(replace_entry(resource, '-brand', "-brand = Zorro\n"))

        _, entries = parse_ftl_source(reassemble_file(resource))
        self.assertEqual(entries['brand'], "brand = Message\n")
        self.assertEqual(entries['-brand'], "-brand = Zorro\n")

    def test_missing_key_is_appended(self):
        resource, _ = parse_ftl_source("greeting = Hello\n")

        replaced = replace_entry(resource, 'bye', "bye = Tschüss\n")

        self.assertFalse(replaced)
        self.assertEqual(resource.body[-1].id.name, 'bye')

    def test_invalid_entry_source_raises(self):
        resource, _ = parse_ftl_source("greeting = Hello\n")
        with self.assertRaises(GrammarError):
            replace_entry(resource, 'greeting', "greeting Hallo")
        self.assertEqual(reassemble_file(resource), "greeting = Hello\n")


class TestLintFtlFile(unittest.TestCase):

    def _lint(self, content):
        with tempfile.NamedTemporaryFile(mode='w', delete=False, suffix='.ftl', encoding='utf-8') as f:
            f.write(content)
            temp_path = f.name
        try:
            return lint_ftl_file(temp_path)
        finally:
            os.remove(temp_path)

    def test_valid_file_has_no_errors(self):
        self.assertEqual(self._lint("greeting = Hello\n-brand = Firefox\n"), [])

    def test_junk_is_reported_with_line_number(self):
        errors = self._lint("greeting = Hello\nbroken Hello\nbye = Bye\n")

        self.assertEqual(len(errors), 1)
        self.assertIn("line 2", errors[0])
        self.assertIn("Invalid Fluent syntax", errors[0])

    def test_duplicate_keys_are_reported(self):
        errors = self._lint("greeting = Hello\ngreeting = Hi\n")

        self.assertEqual(errors, ["Linter Error: Key 'greeting' is defined 2 times."])

    def test_message_and_term_with_same_name_are_not_duplicates(self):
        self.assertEqual(self._lint("brand = Message\n-brand = Term\n"), [])

    def test_unreadable_file(self):
        errors = lint_ftl_file('/nonexistent/path/app.ftl')
        self.assertEqual(len(errors), 1)
        self.assertIn("Could not read or process file", errors[0])


if __name__ == '__main__':
    unittest.main()
