"""Process, time, file-system, byte-order and string helpers."""

from __future__ import annotations

import os
import re
import stat
import sys
import threading
import time
import traceback
from typing import IO, List, Optional

_DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_DEFAULT_TRIM = " \t\r\n"
_THREAD_NAME_MAX = 15

_UNRESERVED = frozenset(
    b"-.0123456789=ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz~"
)
_HEXDIGITS = "0123456789ABCDEF"
_HEX_VALUES = {ord(c): int(c, 16) for c in "0123456789abcdefABCDEF"}

_INT_PREFIX = re.compile(r"\s*([+-]?)(\d*)")
_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:inf(?:inity)?|nan|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))",
    re.IGNORECASE,
)

_U64 = 1 << 64
_ASCII_UPPER = str.maketrans(
    "abcdefghijklmnopqrstuvwxyz", "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
)
_ASCII_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)


# --- threads and clocks -----------------------------------------------------


def thread_id() -> int:
    """Return the operating-system id of the calling thread."""
    return threading.get_native_id()


def elapsed_ms() -> int:
    """Milliseconds on a monotonic clock."""
    return time.monotonic_ns() // 1_000_000


def current_ms() -> int:
    """Wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def current_us() -> int:
    """Wall-clock time in microseconds since the epoch."""
    return time.time_ns() // 1_000


def thread_name() -> str:
    """Name of the calling thread, at most 15 characters."""
    return threading.current_thread().name[:_THREAD_NAME_MAX]


def set_thread_name(name: str) -> None:
    """Rename the calling thread; names are cut to 15 characters."""
    threading.current_thread().name = name[:_THREAD_NAME_MAX]


def backtrace(size: int = 64, skip: int = 1) -> List[str]:
    """Return the call stack, innermost frame first.

    At most ``size`` frames are captured, then the ``skip`` innermost ones
    (this function itself counts as one) are dropped.
    """
    frames = traceback.extract_stack()[::-1][:size]
    return [f"{fs.name} ({fs.filename}:{fs.lineno})" for fs in frames[skip:]]


def backtrace_to_string(size: int = 64, skip: int = 2, prefix: str = "") -> str:
    """Return the call stack as text, one prefixed frame per line."""
    return "".join(f"{prefix}{line}\n" for line in backtrace(size, skip))


# --- text and time conversion ----------------------------------------------


def to_upper(name: str) -> str:
    """Upper-case the ASCII letters of ``name``."""
    return name.translate(_ASCII_UPPER)


def to_lower(name: str) -> str:
    """Lower-case the ASCII letters of ``name``."""
    return name.translate(_ASCII_LOWER)


def time_to_str(ts: Optional[float] = None, fmt: str = _DEFAULT_TIME_FORMAT) -> str:
    """Format a Unix timestamp (default: now) in local time."""
    if ts is None:
        ts = time.time()
    return time.strftime(fmt, time.localtime(ts))


def str_to_time(text: str, fmt: str = _DEFAULT_TIME_FORMAT) -> int:
    """Parse local time text into a Unix timestamp; 0 if it does not parse."""
    try:
        parsed = time.strptime(text, fmt)
        return int(time.mktime(tuple(parsed)[:8] + (0,)))
    except (ValueError, OverflowError):
        return 0


# --- byte order -------------------------------------------------------------


def byteswap(value: int, size: int) -> int:
    """Reverse the byte order of an unsigned integer of 2, 4 or 8 bytes."""
    if size not in (2, 4, 8):
        raise ValueError(f"unsupported integer size: {size}")
    mask = (1 << (size * 8)) - 1
    return int.from_bytes((value & mask).to_bytes(size, "little"), "big")


def byteswap_on_little_endian(value: int, size: int) -> int:
    """Swap bytes only when running on a little-endian machine."""
    return byteswap(value, size) if sys.byteorder == "little" else value


def byteswap_on_big_endian(value: int, size: int) -> int:
    """Swap bytes only when running on a big-endian machine."""
    return byteswap(value, size) if sys.byteorder == "big" else value


# --- file system ------------------------------------------------------------


def list_all_files(path: str, suffix: str = "") -> List[str]:
    """Recursively list regular files under ``path`` ending in ``suffix``."""
    files: List[str] = []
    if not os.path.exists(path):
        return files
    try:
        entries = list(os.scandir(path))
    except OSError:
        return files
    for entry in entries:
        full = f"{path}/{entry.name}"
        if entry.is_dir(follow_symlinks=False):
            files.extend(list_all_files(full, suffix))
        elif entry.is_file(follow_symlinks=False):
            if not suffix or entry.name.endswith(suffix):
                files.append(full)
    return files


def _mkdir_one(path: str) -> None:
    if os.access(path, os.F_OK):
        return
    os.mkdir(path, 0o775)


def mkdir_p(dirname: str) -> bool:
    """Create ``dirname`` and any missing parents; report success."""
    if os.path.lexists(dirname):
        return True
    cuts = [i for i, ch in enumerate(dirname) if ch == "/" and i > 0]
    try:
        for cut in cuts:
            _mkdir_one(dirname[:cut])
        _mkdir_one(dirname)
    except OSError:
        return False
    return True


def _leading_int(text: str) -> int:
    match = _INT_PREFIX.match(text)
    digits = match.group(2)
    if not digits:
        return 0
    value = int(digits)
    return -value if match.group(1) == "-" else value


def is_running_pidfile(pidfile: str) -> bool:
    """Whether the process whose pid is on the file's first line is alive."""
    if not os.path.lexists(pidfile):
        return False
    try:
        with open(pidfile, encoding="utf-8", errors="replace") as handle:
            line = handle.readline()
    except OSError:
        return False
    line = line.rstrip("\n")
    if not line:
        return False
    pid = _leading_int(line)
    if pid <= 1:
        return False
    try:
        os.kill(pid, 0)
    except (OSError, OverflowError):
        return False
    return True


def unlink(filename: str, exist: bool = False) -> bool:
    """Remove a file; a missing file counts as success unless ``exist``."""
    if not exist and not os.path.lexists(filename):
        return True
    try:
        os.unlink(filename)
    except OSError:
        return False
    return True


def rm(path: str) -> bool:
    """Remove a file or a directory tree; a missing path counts as success."""
    try:
        info = os.lstat(path)
    except OSError:
        return True
    if not stat.S_ISDIR(info.st_mode):
        return unlink(path)
    try:
        names = os.listdir(path)
    except OSError:
        return False
    ok = True
    for name in names:
        if not rm(f"{path}/{name}"):
            ok = False
    try:
        os.rmdir(path)
    except OSError:
        ok = False
    return ok


def mv(src: str, dst: str) -> bool:
    """Remove ``dst`` then rename ``src`` to it."""
    if not rm(dst):
        return False
    try:
        os.rename(src, dst)
    except OSError:
        return False
    return True


def realpath(path: str) -> str:
    """Absolute path with symlinks resolved; the path must exist."""
    if not os.path.lexists(path):
        raise FileNotFoundError(path)
    return os.path.realpath(path)


def symlink(src: str, dst: str) -> bool:
    """Remove ``dst`` then make it a symbolic link to ``src``."""
    if not rm(dst):
        return False
    try:
        os.symlink(src, dst)
    except OSError:
        return False
    return True


def dirname(filename: str) -> str:
    """Part of the path before the last '/'."""
    if not filename:
        return "."
    pos = filename.rfind("/")
    if pos == 0:
        return "/"
    if pos == -1:
        return "."
    return filename[:pos]


def basename(filename: str) -> str:
    """Part of the path after the last '/'."""
    return filename[filename.rfind("/") + 1:]


def _open(filename: str, mode: str) -> IO:
    if "b" in mode:
        return open(filename, mode)
    return open(filename, mode, encoding="utf-8")


def open_for_read(filename: str, mode: str = "r") -> IO:
    """Open a file for reading."""
    return _open(filename, mode)


def open_for_write(filename: str, mode: str = "w") -> IO:
    """Open a file for writing, creating its directory when missing."""
    try:
        return _open(filename, mode)
    except OSError:
        mkdir_p(dirname(filename))
        return _open(filename, mode)


# --- type conversion --------------------------------------------------------


def to_char(text: Optional[str]) -> int:
    """First byte of the text as a signed 8-bit value; 0 when empty."""
    if not text:
        return 0
    first = text.encode("utf-8")[0]
    return first - 256 if first > 127 else first


def atoi(text: Optional[str]) -> int:
    """Leading decimal integer of the text as a signed 64-bit value."""
    if not text:
        return 0
    match = _INT_PREFIX.match(text)
    digits = match.group(2)
    if not digits:
        return 0
    value = int(digits)
    if value >= _U64:
        value = _U64 - 1
    elif match.group(1) == "-":
        value = (-value) % _U64
    return value - _U64 if value >= (1 << 63) else value


def atof(text: Optional[str]) -> float:
    """Leading floating-point number of the text; 0.0 when there is none."""
    if not text:
        return 0.0
    match = _FLOAT_PREFIX.match(text)
    if not match:
        return 0.0
    return float(match.group(1))


# --- strings ----------------------------------------------------------------


def url_encode(text: str, space_as_plus: bool = True) -> str:
    """Percent-encode the text's UTF-8 bytes outside the unreserved set."""
    raw = text.encode("utf-8")
    if all(byte in _UNRESERVED for byte in raw):
        return text
    parts = []
    for byte in raw:
        if byte in _UNRESERVED:
            parts.append(chr(byte))
        elif byte == 0x20 and space_as_plus:
            parts.append("+")
        else:
            parts.append("%" + _HEXDIGITS[byte >> 4] + _HEXDIGITS[byte & 0xF])
    return "".join(parts)


def url_decode(text: str, space_as_plus: bool = True) -> str:
    """Decode percent escapes (and '+' as space when asked)."""
    raw = text.encode("utf-8")
    out = bytearray()
    changed = False
    i = 0
    while i < len(raw):
        byte = raw[i]
        if byte == 0x2B and space_as_plus:
            out.append(0x20)
            changed = True
        elif (
            byte == 0x25
            and i + 2 < len(raw)
            and raw[i + 1] in _HEX_VALUES
            and raw[i + 2] in _HEX_VALUES
        ):
            out.append(_HEX_VALUES[raw[i + 1]] << 4 | _HEX_VALUES[raw[i + 2]])
            changed = True
            i += 2
        else:
            out.append(byte)
        i += 1
    if not changed:
        return text
    return out.decode("utf-8", errors="replace")


def trim(text: str, delimit: str = _DEFAULT_TRIM) -> str:
    """Strip characters in ``delimit`` from both ends."""
    return text.strip(delimit)


def trim_left(text: str, delimit: str = _DEFAULT_TRIM) -> str:
    """Strip characters in ``delimit`` from the start."""
    return text.lstrip(delimit)


def trim_right(text: str, delimit: str = _DEFAULT_TRIM) -> str:
    """Cut the text just before its last character not in ``delimit``."""
    return text.rstrip(delimit)[:-1]