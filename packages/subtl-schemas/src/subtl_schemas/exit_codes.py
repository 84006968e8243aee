"""CLI exit code taxonomy and error-to-exit-code registry.

Exit code ranges:
- 0: Success
- 10-19: Client/input errors (config, validation)
- 20-29: Domain/processing errors (translation, ingest, export, job store)
- 30-39: External service errors (connection)
- 99: Unexpected runtime errors
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """CLI exit codes by failure category."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    VALIDATION_ERROR = 11
    TRANSLATION_ERROR = 20
    INGEST_ERROR = 21
    EXPORT_ERROR = 22
    JOB_STORE_ERROR = 23
    CONNECTION_ERROR = 30
    RUNTIME_ERROR = 99


# Domain error codes are qualified with a domain prefix to avoid collisions
# (e.g. "ingest.io_error" vs "export.io_error"). CLI-level codes are stored
# without a prefix.
ERROR_CODE_TO_EXIT_CODE: dict[str, ExitCode] = {
    # --- CLI-level codes (no prefix) ---
    "config_error": ExitCode.CONFIG_ERROR,
    "validation_error": ExitCode.VALIDATION_ERROR,
    "runtime_error": ExitCode.RUNTIME_ERROR,
    # --- Translation domain ---
    "translation.transport_error": ExitCode.CONNECTION_ERROR,
    "translation.bad_response": ExitCode.TRANSLATION_ERROR,
    "translation.parse_error": ExitCode.TRANSLATION_ERROR,
    "translation.incomplete_result": ExitCode.TRANSLATION_ERROR,
    # --- Ingest domain ---
    "ingest.encoding_error": ExitCode.INGEST_ERROR,
    "ingest.format_error": ExitCode.INGEST_ERROR,
    "ingest.io_error": ExitCode.INGEST_ERROR,
    # --- Export domain ---
    "export.count_mismatch": ExitCode.EXPORT_ERROR,
    "export.missing_translation": ExitCode.EXPORT_ERROR,
    "export.invalid_target": ExitCode.EXPORT_ERROR,
    "export.io_error": ExitCode.EXPORT_ERROR,
    # --- Job store domain ---
    "jobs.not_found": ExitCode.JOB_STORE_ERROR,
    "jobs.invalid_state": ExitCode.JOB_STORE_ERROR,
}

# Domain prefix for each error code enum (used by resolve_exit_code).
DOMAIN_PREFIXES: dict[str, str] = {
    "TranslationErrorCode": "translation",
    "IngestErrorCode": "ingest",
    "ExportErrorCode": "export",
    "JobStoreErrorCode": "jobs",
}


def resolve_exit_code(error_code: str, *, domain: str | None = None) -> ExitCode:
    """Resolve an error code string to its ExitCode.

    Args:
        error_code: The error code string (e.g. "validation_error",
            "format_error").
        domain: Optional domain prefix (e.g. "ingest", "translation").
            When provided, the lookup uses ``"{domain}.{error_code}"``
            first, falling back to an unqualified lookup.

    Returns:
        The matching ExitCode, or RUNTIME_ERROR if no mapping is found.
    """
    if domain:
        qualified = f"{domain}.{error_code}"
        if qualified in ERROR_CODE_TO_EXIT_CODE:
            return ERROR_CODE_TO_EXIT_CODE[qualified]

    if error_code in ERROR_CODE_TO_EXIT_CODE:
        return ERROR_CODE_TO_EXIT_CODE[error_code]

    return ExitCode.RUNTIME_ERROR
