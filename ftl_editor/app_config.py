"""Configuration for the translation apply pipeline.

Settings come from a YAML file (``config.yaml`` in the project root, or the
file named by ``FTL_EDITOR_CONFIG_FILE``) with an optional ``.env`` file
loaded into the environment first. Problems with the YAML file never stop the
run: they are reported on stderr, before logging exists, and defaults apply.
"""
import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv

from ftl_editor.logging_config import setup_logger

CONFIG_FILE_ENV = 'FTL_EDITOR_CONFIG_FILE'
QUEUE_FILE_ENV = 'FTL_TRANSLATION_QUEUE'
DEFAULT_LOG_FILE = 'logs/ftl_editor.log'


@dataclass
class AppConfig:
    """Resolved settings for one pipeline run."""
    project_root: str
    # Holds one folder per locale: input_folder/<locale>/<name>.ftl
    input_folder: str
    translation_queue_file: str
    report_file_path: str
    source_locale: str
    dry_run: bool
    synchronize_keys: bool
    # code -> display name, and lower-cased display name -> code
    language_codes: Dict[str, str]
    name_to_code: Dict[str, str]


def _project_root() -> str:
    return os.path.dirname(os.path.dirname(os.path.realpath(__file__)))


def _warn(message: str) -> None:
    print(message, file=sys.stderr)


def _load_dotenv_file(project_root: str) -> Optional[str]:
    """Load ``<project_root>/.env`` if present and return its path."""
    dotenv_path = os.path.join(project_root, '.env')
    if not os.path.exists(dotenv_path):
        return None
    load_dotenv(dotenv_path)
    return dotenv_path


def _read_yaml_config(config_file: str) -> Dict[str, Any]:
    if not os.path.exists(config_file):
        _warn(f"Warning: Configuration file '{config_file}' not found. Using default configuration. "
              f"Create it or point {CONFIG_FILE_ENV} at another file.")
        return {}

    try:
        with open(config_file, 'r', encoding='utf-8') as stream:
            loaded = yaml.safe_load(stream)
    except yaml.YAMLError as e:
        _warn(f"Error: Invalid YAML in configuration file '{config_file}': {e}. Using default configuration.")
        return {}
    except OSError as e:
        _warn(f"Error: Could not read configuration file '{config_file}': {e}. Using default configuration.")
        return {}

    if loaded is None:
        _warn(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.")
        return {}
    if not isinstance(loaded, dict):
        _warn(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.")
        return {}
    return loaded


def _setup_logger_from_config(config: Dict[str, Any]) -> logging.Logger:
    log_config = config.get('logging') or {}
    return setup_logger(
        str(log_config.get('log_level', 'INFO')).upper(),
        log_config.get('log_file_path', DEFAULT_LOG_FILE),
        log_config.get('log_to_console', True),
    )


def _build_language_mappings(locales_list: List[Dict[str, str]]) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Index ``supported_locales`` both ways; entries without a code and a name are ignored."""
    complete = [(locale.get('code'), locale.get('name')) for locale in locales_list]
    complete = [(code, name) for code, name in complete if code and name]
    language_codes = {code: name for code, name in complete}
    name_to_code = {name.lower(): code for code, name in complete}
    return language_codes, name_to_code


def load_app_config() -> AppConfig:
    """
    Load the pipeline configuration and set up package logging.

    ``FTL_TRANSLATION_QUEUE`` in the environment (or ``.env``) overrides the
    queue file named in the YAML config.

    Returns:
        AppConfig: The loaded application configuration.
    """
    project_root = _project_root()
    dotenv_path = _load_dotenv_file(project_root)

    config_file = os.path.abspath(os.environ.get(CONFIG_FILE_ENV, os.path.join(project_root, 'config.yaml')))
    config = _read_yaml_config(config_file)

    logger = _setup_logger_from_config(config)
    if config:
        logger.info("Loaded configuration from: %s", config_file)
    if dotenv_path:
        logger.info("Loaded environment variables from: %s", dotenv_path)
    else:
        logger.info("No .env file in '%s'; using the process environment only.", project_root)

    language_codes, name_to_code = _build_language_mappings(config.get('supported_locales') or [])

    return AppConfig(
        project_root=project_root,
        input_folder=config.get('input_folder', os.path.join(project_root, 'locales')),
        translation_queue_file=os.environ.get(
            QUEUE_FILE_ENV,
            config.get('translation_queue_file', os.path.join(project_root, 'translation_queue.yaml'))
        ),
        report_file_path=config.get('report_file_path', os.path.join(project_root, 'logs', 'skipped_files_report.log')),
        source_locale=config.get('source_locale', 'en-US'),
        dry_run=config.get('dry_run', False),
        synchronize_keys=config.get('synchronize_keys', False),
        language_codes=language_codes,
        name_to_code=name_to_code,
    )
