"""Build defines loaded from an options file.

The options file is line oriented. Sections start with a line that is
exactly ``[Name]``; only the defines section (``CFLAGS_sort`` by default) is
read, and within it only ``-DNAME`` and ``-DNAME=value`` lines count:

    [CFLAGS_sort]
    -DBCMDBG
    -DWLC_MAXBSSCFG=4

A missing, unreadable or malformed file never raises; it yields whatever
could be parsed, usually an empty mapping.
"""
import re
from pathlib import Path
from typing import Dict, Iterable, Optional

from ..utils.logger import logger

DEFAULT_SECTION = 'CFLAGS_sort'

Defines = Dict[str, Optional[str]]

SECTION_PATTERN = re.compile(r'^\[(.+)\]$')
DEFINE_PATTERN = re.compile(r'^-D([A-Za-z_][A-Za-z0-9_]*)(?:=(.*))?$')

# Directives whose macro names get a status message
DIRECTIVE_PATTERN = re.compile(r'^#\s*(if|ifdef|ifndef)')


def parse_defines(lines: Iterable[str], section: str = DEFAULT_SECTION) -> Defines:
    """Collect -D flags from the given section.

    Args:
        lines: Lines of the options file
        section: Section name without brackets

    Returns:
        Mapping of macro name to value; None when defined without a value
    """
    defines: Defines = {}
    in_section = False

    for raw in lines:
        line = raw.rstrip()
        header = SECTION_PATTERN.match(line)
        if header:
            in_section = header.group(1) == section
            continue
        if not in_section:
            continue

        match = DEFINE_PATTERN.match(line.strip())
        if match:
            defines[match.group(1)] = match.group(2)

    return defines


def load_defines(path: str | Path, section: str = DEFAULT_SECTION) -> Defines:
    """Load the defines mapping from an options file.

    Returns:
        The parsed mapping; empty if the file is missing or unreadable
    """
    path = Path(path)
    if not path.is_file():
        logger.debug("No options file at {}", path)
        return {}

    try:
        text = path.read_text(encoding='utf-8', errors='replace')
    except OSError as exc:
        logger.warning("Cannot read options file {}: {}", path, exc)
        return {}

    defines = parse_defines(text.splitlines(), section)
    logger.debug("Loaded {} defines from {} [{}]", len(defines), path, section)
    return defines


def describe_macro(name: str, defines: Defines, source: str = f'[{DEFAULT_SECTION}]') -> str:
    """Describe whether a macro is defined, and with which value.

    Args:
        name: Macro name
        defines: Current defines mapping
        source: Where the defines came from, used in the "not defined" message
    """
    if name not in defines:
        return f"**{name}** is **NOT defined** in {source}"

    value = defines[name]
    if value is None:
        return f"**{name}** is **defined** (no explicit value)"
    return f"**{name}** is **defined** with value `{value}`"


def macro_at_directive(line_text: str, name: str, defines: Defines, source: str = f'[{DEFAULT_SECTION}]') -> Optional[str]:
    """Macro status for a name found on an ``#if``/``#ifdef``/``#ifndef`` line.

    Returns:
        The status text, or None when the line is not such a directive
    """
    if not name or not DIRECTIVE_PATTERN.match(line_text.lstrip()):
        return None
    return describe_macro(name, defines, source)
