import logging
import os
import sys
from typing import Dict, List, Optional, Tuple

import jsonschema
import yaml
from fluent.syntax import ast
from tqdm import tqdm

from ftl_editor.app_config import AppConfig, load_app_config
from ftl_editor.fluent_entries import GrammarError
from ftl_editor.ftl_parser import (
    lint_ftl_file,
    parse_ftl_file,
    parse_ftl_source,
    reassemble_file,
    replace_entry,
)
from ftl_editor.message_reconstructor import reconstruct
from ftl_editor.translation_validator import (
    check_encoding_and_mojibake,
    check_placeable_parity,
    synchronize_keys,
)

logger = logging.getLogger(__name__)

# The queue maps locale code -> .ftl file name -> entry key -> plain-text translation.
TRANSLATION_QUEUE_SCHEMA = {
    "type": "object",
    "additionalProperties": {
        "type": "object",
        "additionalProperties": {
            "type": "object",
            "additionalProperties": {"type": "string"}
        }
    }
}

TranslationQueue = Dict[str, Dict[str, Dict[str, str]]]


def load_translation_queue(queue_file_path: str) -> TranslationQueue:
    """
    Load the queue of committed translations from a YAML or JSON file.

    Args:
        queue_file_path (str): Path to the queue file.

    Returns:
        TranslationQueue: The validated queue, or an empty queue if the file is
        missing, unreadable or does not match the expected shape.
    """
    if not os.path.exists(queue_file_path):
        logger.error("Translation queue file '%s' not found.", queue_file_path)
        return {}
    try:
        with open(queue_file_path, 'r', encoding='utf-8') as f:
            queue = yaml.safe_load(f)
    except yaml.YAMLError as yaml_exc:
        logger.error("Error decoding translation queue file '%s': %s", queue_file_path, yaml_exc)
        return {}
    except OSError as os_exc:
        logger.error("Could not read translation queue file '%s': %s", queue_file_path, os_exc)
        return {}

    if queue is None:
        logger.warning("Translation queue file '%s' is empty.", queue_file_path)
        return {}

    try:
        jsonschema.validate(instance=queue, schema=TRANSLATION_QUEUE_SCHEMA)
    except jsonschema.ValidationError as schema_exc:
        logger.error("Translation queue file '%s' has an invalid structure: %s", queue_file_path, schema_exc.message)
        return {}
    return queue


def resolve_locale_code(locale: str, config: AppConfig) -> Optional[str]:
    """
    Resolve a queue locale, given either as a code ("de") or a language name
    ("German"), to a supported locale code.

    Args:
        locale (str): The locale as written in the translation queue.
        config (AppConfig): The configuration holding the supported locales.

    Returns:
        Optional[str]: The locale code if supported, else None.
    """
    if locale in config.language_codes:
        return locale
    return config.name_to_code.get(locale.lower(), None)


def validate_paths(input_folder: str, source_locale: str):
    """
    Validate that the input folder and the source locale folder exist and are accessible.

    Args:
        input_folder (str): Path to the folder holding one sub-folder per locale.
        source_locale (str): The locale code of the source strings.
    """
    source_folder = os.path.join(input_folder, source_locale)
    for path, name in [(input_folder, "Input Folder"),
                       (source_folder, "Source Locale Folder")]:
        if not os.path.exists(path):
            logger.error("%s '%s' does not exist.", name, path)
            raise FileNotFoundError(f"{name} '{path}' does not exist.")
        if not os.access(path, os.R_OK | os.W_OK):
            logger.error("%s '%s' is not accessible (read/write permissions needed).", name, path)
            raise PermissionError(f"{name} '{path}' is not accessible (read/write permissions needed).")
    logger.info("All critical paths are valid and accessible.")


def run_pre_translation_validation(target_file_path: str) -> List[str]:
    """
    Runs lint and encoding checks on an existing target .ftl file.

    Args:
        target_file_path: The absolute path to the target locale .ftl file.

    Returns:
        A list of validation error messages. An empty list indicates success.
    """
    filename = os.path.basename(target_file_path)
    logger.info("Running pre-translation validation for '%s'...", filename)

    errors = check_encoding_and_mojibake(target_file_path)
    if errors:
        # Linting a file that is not valid UTF-8 only repeats the read error.
        return errors

    errors.extend(lint_ftl_file(target_file_path))

    if not errors:
        logger.info("Pre-translation validation passed for '%s'.", filename)
    else:
        logger.error("Pre-translation validation failed for '%s'.", filename)
    return errors


def apply_file_translations(
        target_file_path: str,
        source_file_path: str,
        translations: Dict[str, str]
) -> Tuple[str, Dict[str, str]]:
    """
    Apply plain-text translations to the entries of one target .ftl file.

    Each entry is rebuilt with ``reconstruct`` from the target's current entry,
    or from the source entry when the key is not translated yet. Keys that
    cannot be rebuilt keep their current entry and are reported.

    Args:
        target_file_path: The target locale file. It may not exist yet.
        source_file_path: The source locale file with the same name.
        translations: Entry keys mapped to translated text.

    Returns:
        The new file content and a dictionary of rejected keys mapped to the reason.
    """
    _, source_entries = parse_ftl_file(source_file_path)
    if os.path.exists(target_file_path):
        target_resource, target_entries = parse_ftl_file(target_file_path)
    else:
        logger.info("Target file '%s' does not exist yet; it will be created.", target_file_path)
        target_resource, target_entries = ast.Resource([]), {}

    rejected: Dict[str, str] = {}
    filename = os.path.basename(target_file_path)
    for key, translation in tqdm(translations.items(), desc=f"Applying {filename}", unit="entry"):
        original_source = target_entries.get(key) or source_entries.get(key)
        if original_source is None:
            rejected[key] = f"Key '{key}' does not exist in the source file."
            logger.warning("Skipping unknown key '%s' in '%s'.", key, filename)
            continue
        try:
            new_source = reconstruct(original_source, translation)
        except GrammarError as grammar_exc:
            rejected[key] = f"Translation for key '{key}' is not valid Fluent: {grammar_exc.message}"
            logger.warning("Rejected translation for key '%s' in '%s': %s", key, filename, grammar_exc.message)
            continue
        replace_entry(target_resource, key, new_source)
        logger.debug("Integrated translation for key '%s': %r", key, new_source)

    return reassemble_file(target_resource), rejected


def run_post_translation_validation(
    final_content: str,
    source_entries: Dict[str, str],
    filename: str,
    keys: Optional[List[str]] = None
) -> bool:
    """
    Runs validation checks on the final file content.

    Args:
        final_content: The string content of the translated file.
        source_entries: The source locale entries by key.
        filename: The name of the file being validated.
        keys: The keys to check for placeable parity. Defaults to every key
            shared with the source.

    Returns:
        True if all checks pass, False otherwise.
    """
    is_valid = True
    logger.info("Running post-translation validation for '%s'...", filename)

    resource, final_entries = parse_ftl_source(final_content)
    if any(isinstance(entry, ast.Junk) for entry in resource.body):
        is_valid = False
        logger.error("Post-translation validation failed for '%s': content contains invalid Fluent syntax.", filename)

    if keys is None:
        keys = sorted(set(source_entries.keys()).intersection(final_entries.keys()))
    for key in keys:
        if key not in source_entries or key not in final_entries:
            continue
        if not check_placeable_parity(source_entries[key], final_entries[key]):
            is_valid = False
            logger.error("Post-translation validation failed for '%s': Placeable mismatch for key '%s'.", filename, key)

    if is_valid:
        logger.info("Post-translation validation passed for '%s'.", filename)
    else:
        logger.error("Post-translation validation failed for '%s'. The file will not be written.", filename)
    return is_valid


def process_translation_queue(
        config: AppConfig,
        queue: TranslationQueue
) -> Tuple[int, Dict[str, List[str]]]:
    """
    Apply every queued translation to the matching locale files.

    Args:
        config (AppConfig): The application configuration.
        queue (TranslationQueue): Locale codes mapped to files and translations.

    Returns:
        A tuple containing:
        - The number of files successfully written (or that would be written in dry-run mode).
        - A dictionary of skipped files, mapping "<locale>/<file>" to a list of error strings.
    """
    processed_files_count = 0
    skipped_files: Dict[str, List[str]] = {}

    for locale, files in queue.items():
        locale_code = resolve_locale_code(locale, config)
        if not locale_code:
            logger.warning("Skipping locale '%s': not listed in supported locales.", locale)
            continue
        language_name = config.language_codes[locale_code]

        for ftl_file, translations in files.items():
            report_key = f"{locale_code}/{ftl_file}"
            source_file_path = os.path.join(config.input_folder, config.source_locale, ftl_file)
            target_file_path = os.path.join(config.input_folder, locale_code, ftl_file)

            if not os.path.exists(source_file_path):
                logger.warning("Source file '%s' not found. Skipping.", source_file_path)
                skipped_files[report_key] = [f"Source file '{source_file_path}' not found."]
                continue

            source_errors = check_encoding_and_mojibake(source_file_path)
            if source_errors:
                logger.error("Skipping '%s': source file '%s' failed encoding checks.", report_key, source_file_path)
                skipped_files[report_key] = source_errors
                continue

            logger.info("Processing file '%s' for language '%s'...", ftl_file, language_name)

            if os.path.exists(target_file_path):
                validation_errors = run_pre_translation_validation(target_file_path)
                if validation_errors:
                    logger.error("Skipping '%s' due to pre-translation validation errors.", report_key)
                    for error in validation_errors:
                        logger.error("  - %s", error)
                    skipped_files[report_key] = validation_errors
                    continue

                if config.synchronize_keys and not config.dry_run:
                    try:
                        missing_keys, extra_keys = synchronize_keys(target_file_path, source_file_path)
                    except OSError as e:
                        logger.exception("Failed to synchronize keys for '%s'", report_key)
                        skipped_files[report_key] = [f"I/O error during key synchronization: {e}"]
                        continue
                    if missing_keys or extra_keys:
                        logger.info("Synchronized '%s': %d key(s) added, %d key(s) removed.",
                                    report_key, len(missing_keys), len(extra_keys))

            new_content, rejected = apply_file_translations(target_file_path, source_file_path, translations)
            if rejected:
                skipped_files[report_key] = list(rejected.values())

            _, source_entries = parse_ftl_file(source_file_path)
            applied_keys = [key for key in translations if key not in rejected]
            if not run_post_translation_validation(new_content, source_entries, report_key, applied_keys):
                skipped_files.setdefault(report_key, []).append("Post-translation validation failed; file not written.")
                continue

            if config.dry_run:
                logger.info("[Dry Run] Would write translated content to '%s'.", target_file_path)
            else:
                os.makedirs(os.path.dirname(target_file_path), exist_ok=True)
                with open(target_file_path, 'w', encoding='utf-8') as file:
                    file.write(new_content)
                logger.info("Translated file saved to '%s'.", target_file_path)

            processed_files_count += 1

    return processed_files_count, skipped_files


def write_skipped_report(report_path: str, skipped_files: Dict[str, List[str]]):
    """
    Write a markdown report of skipped files, or remove a stale one when nothing was skipped.
    """
    if not skipped_files:
        if os.path.exists(report_path):
            os.remove(report_path)
        return

    report_dir = os.path.dirname(report_path)
    if report_dir:
        os.makedirs(report_dir, exist_ok=True)
    with open(report_path, 'w', encoding='utf-8') as f:
        f.write("## Translation Apply Warnings\n\n")
        f.write("The following files or entries were skipped because they failed validation. "
                "These issues must be addressed manually.\n\n")
        for filename, errors in skipped_files.items():
            f.write(f"### `{filename}`\n")
            for error in errors:
                f.write(f"- {error}\n")
            f.write("\n")


def main(config: Optional[AppConfig] = None) -> int:
    """
    Apply the configured translation queue and report what was skipped.

    Returns:
        The process exit code: 0 when nothing was skipped, 1 otherwise.
    """
    if config is None:
        config = load_app_config()

    validate_paths(config.input_folder, config.source_locale)

    queue = load_translation_queue(config.translation_queue_file)
    if not queue:
        logger.info("No queued translations found. Exiting.")
        return 0

    processed_files_count, skipped_files = process_translation_queue(config, queue)
    if processed_files_count > 0:
        logger.info("Applied translations to %d file(s).", processed_files_count)
    else:
        logger.info("No files were updated.")

    if skipped_files:
        logger.info("Some files were skipped. Writing report to %s", config.report_file_path)
    write_skipped_report(config.report_file_path, skipped_files)

    return 1 if skipped_files else 0


if __name__ == "__main__":
    sys.exit(main())
