import os

import pytest

from ftl_editor.app_config import AppConfig


@pytest.fixture
def write_file(tmp_path):
    """Factory fixture that writes UTF-8 text below tmp_path and returns the path."""
    def _write(relative_path: str, content: str) -> str:
        file_path = tmp_path / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding='utf-8')
        return str(file_path)
    return _write


@pytest.fixture
def locales_dir(tmp_path, write_file):
    """
    A locale tree with an en-US source file and a partially translated German file.
    """
    write_file('locales/en-US/app.ftl', (
        "-brand-name = Firefox\n"
        "greeting = Hello\n"
        "search-input =\n"
        "    .placeholder = Search\n"
        "emails = You have { $count } new emails\n"
        "welcome = Welcome to { -brand-name }\n"
    ))
    write_file('locales/de/app.ftl', (
        "-brand-name = Firefox\n"
        "greeting = Hallo\n"
    ))
    return str(tmp_path / 'locales')


@pytest.fixture
def app_config(tmp_path, locales_dir):
    return AppConfig(
        project_root=str(tmp_path),
        input_folder=locales_dir,
        translation_queue_file=os.path.join(str(tmp_path), 'translation_queue.yaml'),
        report_file_path=os.path.join(str(tmp_path), 'logs', 'skipped_files_report.log'),
        source_locale='en-US',
        dry_run=False,
        synchronize_keys=False,
        language_codes={"de": "German", "fr": "French"},
        name_to_code={"german": "de", "french": "fr"},
    )
