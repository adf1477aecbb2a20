"""Logging setup and Windows-safe output handling.

Logging goes through loguru. The default sink is replaced by a compact
stderr sink whose level comes from SRCSCOPE_LOG_LEVEL (default WARNING),
so library code can log freely without cluttering CLI output.

Terminal helpers detect the output encoding and provide ASCII alternatives
for the Unicode glyphs used by the CLI on terminals without UTF-8 support.

Usage:
    from srcscope.utils.logger import logger
    logger.warning("Skipping unreadable file {}", path)
"""
import sys
import locale

from loguru import logger

from ..config import get_config


_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}:{function}:{line}</cyan> - "
    "<level>{message}</level>"
)

_handler_id = None


def configure_logging(level: str = None) -> None:
    """(Re)install the stderr sink at the given level.

    Args:
        level: Loguru level name. Defaults to the configured SRCSCOPE_LOG_LEVEL.
    """
    global _handler_id
    if level is None:
        level = get_config().log_level

    if _handler_id is not None:
        logger.remove(_handler_id)
    else:
        # Remove loguru's default handler the first time through
        logger.remove()

    _handler_id = logger.add(
        sys.stderr,
        level=level.upper(),
        format=_FORMAT,
        colorize=None,  # Auto-detect: colors if TTY, plain if piped
    )


configure_logging()


# Unicode to ASCII icon mapping for Windows compatibility
ICON_MAP = {
    '✓': '[OK]',
    '✔': '[OK]',
    '✗': '[FAIL]',
    '✘': '[FAIL]',
    '⚠': '[WARN]',
    '→': '->',
    '←': '<-',
    '⇒': '=>',
    '│': '|',
    '─': '-',
    '…': '...',
    '•': '*',
    '▸': '>',
    '▾': 'v',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding capability.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    if hasattr(sys.stdout, 'encoding') and sys.stdout.encoding:
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except Exception:
        pass

    return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 Unicode characters."""
    return detect_terminal_encoding() in ('utf-8', 'utf8', 'utf_8')


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode icons with ASCII equivalents if terminal doesn't support UTF-8.

    Args:
        text: Text potentially containing Unicode icons

    Returns:
        str: Sanitized text safe for current terminal
    """
    if is_utf8_capable():
        return text

    sanitized = text
    for unicode_char, ascii_replacement in ICON_MAP.items():
        sanitized = sanitized.replace(unicode_char, ascii_replacement)

    return sanitized
