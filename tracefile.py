# tracefile.py
import logging
import re
from collections import namedtuple

from cache import ADDRESS_LENGTH

logger = logging.getLogger(__name__)

LOAD, STORE, MODIFY, INSTRUCTION = "L", "S", "M", "I"
DATA_OPERATIONS = (LOAD, STORE, MODIFY)

TraceRecord = namedtuple("TraceRecord", ["operation", "address", "size"])

# e.g. " L 7ff000398,8" or "I 0400d7d4,8"
_LINE_RE = re.compile(r"^\s*(\S)\s+(?:0[xX])?([0-9a-fA-F]+)\s*,\s*(\d+)\s*$")


class TraceFileError(OSError):
    pass


def parse_line(text):
    """Parse one trace line into a TraceRecord, or None if it is malformed."""
    match = _LINE_RE.match(text)
    if not match:
        return None
    operation, address, size = match.groups()
    address = int(address, 16)
    if address >> ADDRESS_LENGTH:
        return None  # wider than the address width
    return TraceRecord(operation, address, int(size))


def parse_trace(lines):
    """
    Yield TraceRecords from an iterable of text lines.
    Blank lines are skipped; the first malformed line ends the trace.
    """
    for lineno, text in enumerate(lines, start=1):
        if not text.strip():
            continue
        record = parse_line(text)
        if record is None:
            logger.warning("stopping at malformed trace line %d: %r", lineno, text.rstrip("\n"))
            return
        yield record


def read_trace(path):
    try:
        with open(path, "r") as f:
            records = list(parse_trace(f))
    except OSError as exc:
        raise TraceFileError("cannot read trace file %s: %s" % (path, exc.strerror or exc)) from exc
    logger.info("read %d records from %s", len(records), path)
    return records


def format_record(record):
    # data accesses are indented one space, instruction fetches are not
    prefix = " " if record.operation in DATA_OPERATIONS else ""
    return "%s%s %x,%d" % (prefix, record.operation, record.address, record.size)


def write_trace(records, path):
    with open(path, "w") as f:
        for record in records:
            f.write(format_record(record) + "\n")
