"""
Structured logging for the record intake core.

structlog events and plain standard-library records share one processor
chain and are rendered once, by a ``ProcessorFormatter`` attached to each
handler. Identifiers that count as PHI in intake data (SSNs, NPIs, MRNs,
phone numbers, e-mail addresses, birth dates) are masked before rendering.
"""

import logging
import logging.handlers
import re
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from intake_core.config.settings import LogFormat, Settings, get_settings


# Order matters: NPIs are masked before the broader phone pattern sees them
PHI_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\b\d{3}-\d{2}-\d{4}\b"), "[SSN-MASKED]"),
    (re.compile(r"\bNPI[:\s]*[\d-]{10,12}\b", re.IGNORECASE), "[NPI-MASKED]"),
    (re.compile(r"\bMRN[:\s]*[A-Za-z0-9-]{6,10}\b", re.IGNORECASE), "[MRN-MASKED]"),
    (re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"), "[PHONE-MASKED]"),
    (re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"), "[EMAIL-MASKED]"),
    (re.compile(r"\b\d{2}/\d{2}/\d{4}\b(?=.*(?:dob|birth))", re.IGNORECASE), "[DOB-MASKED]"),
    (re.compile(r"\b\d{4}-\d{2}-\d{2}\b(?=.*(?:dob|birth))", re.IGNORECASE), "[DOB-MASKED]"),
]

CALLER_PARAMETERS = [
    structlog.processors.CallsiteParameter.MODULE,
    structlog.processors.CallsiteParameter.FUNC_NAME,
    structlog.processors.CallsiteParameter.LINENO,
]


def mask_text(text: str) -> str:
    """Apply every PHI pattern to a single string."""
    for pattern, replacement in PHI_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def _mask_value(value: Any) -> Any:
    if isinstance(value, str):
        return mask_text(value)
    if isinstance(value, dict):
        return {k: _mask_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_mask_value(item) for item in value)
    return value


def mask_phi(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """
    Mask PHI in every string value of an event, including nested ones.

    Skipped when ``HIPAA_PHI_MASKING_ENABLED`` is false. Keys starting
    with an underscore are processor metadata and pass through untouched.
    """
    if not get_settings().hipaa.phi_masking_enabled:
        return event_dict

    return {
        key: value if key.startswith("_") else _mask_value(value)
        for key, value in event_dict.items()
    }


def add_service_info(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag events with the service name, version and environment."""
    settings = get_settings()
    event_dict["service"] = settings.app_name
    event_dict["version"] = settings.app_version
    event_dict["environment"] = settings.app_env.value
    return event_dict


class PHIFilter(logging.Filter):
    """
    Mask PHI in plain standard-library records.

    structlog events reach handlers as dictionaries and are masked by
    ``mask_phi``; this filter covers string messages and their arguments.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not get_settings().hipaa.phi_masking_enabled:
            return True

        if isinstance(record.msg, str):
            record.msg = mask_text(record.msg)

        if isinstance(record.args, tuple):
            record.args = tuple(
                mask_text(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )

        return True


def shared_processors(settings: Settings) -> list[Processor]:
    """
    Processors applied to structlog events and stdlib records alike.

    Caller fields (module, function, line) are added only when
    ``LOG_INCLUDE_CALLER`` is set.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_service_info,
    ]

    if settings.logging.include_caller:
        processors.append(
            structlog.processors.CallsiteParameterAdder(CALLER_PARAMETERS)
        )

    processors.extend([
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        mask_phi,
    ])
    return processors


def get_renderer(settings: Settings) -> Processor:
    """Return the final renderer for the configured log format."""
    if settings.logging.format == LogFormat.JSON:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stdout.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def build_formatter(settings: Settings) -> structlog.stdlib.ProcessorFormatter:
    """Build the handler formatter that renders every record exactly once."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.ExtraAdder(),
            *shared_processors(settings),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            get_renderer(settings),
        ],
    )


def configure_logging(settings: Settings | None = None) -> None:
    """
    Configure structlog and the root standard-library logger.

    Installs a stdout handler and, when ``LOG_FILE_PATH`` is set, a
    rotating file handler. Existing root handlers are replaced.

    Args:
        settings: Settings to apply; defaults to the application settings.
    """
    settings = settings or get_settings()
    log_level = getattr(logging, settings.logging.level.value)

    structlog.configure(
        processors=[
            *shared_processors(settings),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = build_formatter(settings)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if settings.logging.file_path is not None:
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=str(settings.logging.file_path),
                maxBytes=settings.logging.file_max_size_mb * 1024 * 1024,
                backupCount=settings.logging.file_backup_count,
                encoding="utf-8",
            )
        )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        handler.addFilter(PHIFilter())
        root_logger.addHandler(handler)

    root_logger.setLevel(log_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
