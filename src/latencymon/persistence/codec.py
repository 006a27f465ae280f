"""
Line codec for persisted duration records.

Each record is one line of seven comma separated fields::

    category,threadId,methodName,startMs,endMs,root,errored\\n

``root`` and ``errored`` are the literals ``true``/``false``. A comma inside
the category or the thread id is escaped with a preceding backslash, and a
backslash in any text field is doubled. Method names keep their commas; they
are reassembled from the tokens between the thread id and the trailing fields.
"""

import logging
from typing import List, Optional

from ..models.duration import DurationIdentifier, DurationRecord
from ..validation import HistoryLoadError

logger = logging.getLogger(__name__)

FIELD_DELIMITER = ","
LINE_DELIMITER = "\n"
ESCAPE_CHAR = "\\"
FIELD_COUNT = 7

_BOOLEAN_LITERALS = {"true": True, "false": False}
_ESCAPABLE = (ESCAPE_CHAR, FIELD_DELIMITER)


def escape_field(value: str) -> str:
    """Escape backslashes and field delimiters inside a free-text field."""
    return escape_method_name(value).replace(FIELD_DELIMITER, ESCAPE_CHAR + FIELD_DELIMITER)


def escape_method_name(value: str) -> str:
    """Escape backslashes only; commas in method names are left as they are."""
    return value.replace(ESCAPE_CHAR, ESCAPE_CHAR + ESCAPE_CHAR)


def split_fields(line: str) -> List[str]:
    """
    Split a line on unescaped delimiters, unescaping ``\\,`` and ``\\\\`` in
    each token. A backslash before any other character is kept as is.
    """
    tokens: List[str] = []
    current: List[str] = []
    index = 0
    while index < len(line):
        char = line[index]
        if (
            char == ESCAPE_CHAR
            and index + 1 < len(line)
            and line[index + 1] in _ESCAPABLE
        ):
            current.append(line[index + 1])
            index += 2
            continue
        if char == FIELD_DELIMITER:
            tokens.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1
    tokens.append("".join(current))
    return tokens


def render_record(record: DurationRecord) -> str:
    """Render a closed record as one persisted line, including the newline."""
    fields = [
        escape_field(record.category),
        escape_field(record.thread_id),
        escape_method_name(record.method_name),
        str(record.start_ms),
        str(record.end_ms),
        "true" if record.root else "false",
        "true" if record.errored else "false",
    ]
    return FIELD_DELIMITER.join(fields) + LINE_DELIMITER


def _parse_millis(text: str, name: str, source: str, line_number: int) -> int:
    try:
        return int(text.strip())
    except ValueError:
        raise HistoryLoadError(
            f"Invalid {name} '{text}' in {source}, line {line_number}",
            path=source,
            line_number=line_number,
        )


def _parse_boolean(text: str, name: str, source: str, line_number: int) -> bool:
    value = _BOOLEAN_LITERALS.get(text.strip())
    if value is None:
        raise HistoryLoadError(
            f"Invalid {name} flag '{text}' in {source}, line {line_number}",
            path=source,
            line_number=line_number,
        )
    return value


def parse_record(line: str, source: str = "<memory>", line_number: int = 0) -> Optional[DurationRecord]:
    """
    Parse one persisted line.

    Lines missing any of category, thread id or method name are logged and
    skipped (None is returned). Missing or malformed start/end times and
    non-literal boolean flags raise HistoryLoadError.

    A method name containing an unescaped comma is reassembled from the
    tokens between the thread id and the four trailing fields.

    Args:
        line: The line without its trailing newline
        source: Description of where the line came from, for messages
        line_number: 1-based line number, for messages

    Returns:
        The parsed record, or None if the line was skipped

    Raises:
        HistoryLoadError: If a mandatory numeric or boolean field is unusable
    """
    tokens = split_fields(line.rstrip("\r\n"))

    if len(tokens) < 3:
        if not tokens[0]:
            missing = "category"
        elif len(tokens) == 1:
            missing = "thread id"
        else:
            missing = "method name"
        logger.warning(f"Skipping line {line_number} of {source}: missing {missing}")
        return None

    if len(tokens) < FIELD_COUNT:
        missing = ("start time", "end time", "root marker", "errored marker")[len(tokens) - 3]
        raise HistoryLoadError(
            f"Missing {missing} in {source}, line {line_number}",
            path=source,
            line_number=line_number,
        )

    category, thread_id = tokens[0], tokens[1]
    method_name = FIELD_DELIMITER.join(tokens[2:-4])
    start_text, end_text, root_text, errored_text = tokens[-4:]

    start_ms = _parse_millis(start_text, "start time", source, line_number)
    end_ms = _parse_millis(end_text, "end time", source, line_number)
    root = _parse_boolean(root_text, "root", source, line_number)
    errored = _parse_boolean(errored_text, "errored", source, line_number)

    return DurationRecord(
        identifier=DurationIdentifier(category, thread_id),
        method_name=method_name,
        start_ms=start_ms,
        end_ms=end_ms,
        root=root,
        errored=errored,
    )
