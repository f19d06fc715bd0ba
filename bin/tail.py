#!/usr/bin/env python3

"""
usage: tail.py [-h] [-q] [-c BYTES | -n LINES] FILE [FILE ...]

show just the trailing lines (or bytes) of each file

positional arguments:
  FILE                  a file to show the tail of, or "-" for stdin

options:
  -h, --help            show this help message and exit
  -q, --quiet           never print a "==> FILE <==" header above each file
  -c BYTES, --bytes BYTES
                        how many trailing bytes to show (default: count lines, not bytes)
  -n LINES, --lines LINES
                        how many trailing lines to show (default: 10)

quirks:
  takes a plain count such as "5" to mean "-5", the last 5 lines or bytes
  takes a count led by "+" as the line or byte to start at, counting up from 1
  takes "+0" to mean the whole file, and "0" or "-0" or "+1" of an empty file to mean nothing
  prints a "==> FILE <==" header above each file, when given more than one file
  reports each file it can't read, but keeps on going with the rest

unsurprising quirks:
  prompts for stdin, like mac bash "grep -R .", unlike bash "tail"
  soaks up all of stdin before writing any of it, when stdin can't seek
  takes "-" as meaning "/dev/stdin", like linux "tail -", unlike mac "tail -"
  copies out bytes, never decodes them, so never chokes on bytes that aren't utf-8
  doesn't implement "tail -f" follow, nor "tail -F" retry

examples:
  tail.py /dev/null
  tail.py tail.py
  tail.py -n 5 tail.py
  tail.py -n +40 tail.py  # akin to vim +40 tail.py
  tail.py -c 20 tail.py argdoc.py
  tail.py -q -n 1 tail.py argdoc.py
  python3 -c 'import this' |tail.py -n 3 -
"""


import collections
import contextlib
import io
import os
import re
import shutil
import sys

import argdoc


I64_MIN = -(2 ** 63)
I64_MAX = 2 ** 63 - 1


AllFromStart = collections.namedtuple("AllFromStart", list())
Signed = collections.namedtuple("Signed", "n")

ALL_FROM_START = AllFromStart()

TotalCounts = collections.namedtuple("TotalCounts", "lines bytes")
FileRecord = collections.namedtuple("FileRecord", "path incoming origin totals")


class CountError(ValueError):
    """Reject a count that doesn't parse, and quote it verbatim"""

    def __init__(self, text):
        super(CountError, self).__init__(text)
        self.text = text


def main(argv=None):
    """Run from the Command Line"""

    run_self_tests()

    alt_argv = sys.argv if (argv is None) else argv
    args = argdoc.parse_args(alt_argv[1:])

    # Take the count before touching any file

    bytewise = args.bytes is not None
    (unit, chars) = ("byte", args.bytes) if bytewise else ("line", args.lines)
    chars = "10" if (chars is None) else chars

    try:
        spec = parse_count(chars)
    except CountError as exc:
        stderr_print(argdoc.format_usage().rstrip())
        stderr_print("tail.py: error: illegal {} count -- {}".format(unit, exc.text))
        sys.exit(2)  # exit 2 from rejecting usage

    # Tail each file

    if "-" in args.files:
        prompt_tty_stdin()

    sink = sys.stdout.buffer
    failures = tail_paths(
        args.files, spec=spec, bytewise=bytewise, quiet=args.quiet, sink=sink
    )
    sink.flush()

    exit_status = 1 if failures else 0

    return exit_status


def run_self_tests():
    """Run some Self Tests, as part of every Launch"""

    _parse_count_test()
    _resolve_start_test()


#
# Parse the count of lines or bytes
#


def parse_count(chars):
    """
    Parse a count such as "5" or "-5" or "+5" or "+0"

    A plain count means as many as from the end, same as led by "-"
    A count led by "+" means start there, counting up from 1
    A "+0" means start at the start, unless empty
    """

    if chars == "+0":

        return ALL_FROM_START

    match = re.fullmatch(r"([+-]?)([0-9]+)", string=chars)
    if not match:

        raise CountError(chars)

    (sign, digits) = match.groups()
    magnitude = int(digits)

    # Negate the unsigned count, but never past the 64-bit range either way

    n = magnitude if (sign == "+") else -magnitude
    if not (I64_MIN <= n <= I64_MAX):

        raise CountError(chars)

    return Signed(n)


def _parse_count_test():

    assert parse_count("+0") == ALL_FROM_START
    assert parse_count("3") == Signed(-3)
    assert parse_count("-3") == Signed(-3)
    assert parse_count("+3") == Signed(3)
    assert parse_count("0") == Signed(0)
    assert parse_count("-9223372036854775808") == Signed(I64_MIN)
    assert parse_count("9223372036854775808") == Signed(I64_MIN)
    assert parse_count("+9223372036854775807") == Signed(I64_MAX)

    bad_counts = "3.14 abc + --3 1_000 +9223372036854775808".split()
    bad_counts.extend(["", " 3", "3\n"])

    for chars in bad_counts:
        try:
            parse_count(chars)
        except CountError as exc:
            assert exc.text == chars
        else:
            assert False, repr(chars)


#
# Pick the line or byte to start at
#


def resolve_start(spec, total):
    """Pick the 0-based index to start at, else None to mean show nothing"""

    if isinstance(spec, AllFromStart):

        return None if (total == 0) else 0

    n = spec.n

    if n == 0:

        return None

    if n > 0:

        return None if (n > total) else (n - 1)

    return max(0, total + n)


def _resolve_start_test():

    assert resolve_start(ALL_FROM_START, total=0) is None
    assert resolve_start(ALL_FROM_START, total=1) == 0
    assert resolve_start(Signed(0), total=1) is None
    assert resolve_start(Signed(1), total=0) is None
    assert resolve_start(Signed(2), total=1) is None
    assert resolve_start(Signed(3), total=10) == 2
    assert resolve_start(Signed(-3), total=10) == 7
    assert resolve_start(Signed(-11), total=10) == 0
    assert resolve_start(Signed(I64_MIN), total=10) == 0


#
# Count the lines and bytes, then copy out the tail
#


def count_lines_bytes(incoming):
    """Read the whole source once, to count its b"\\n" line-ends and its bytes"""

    lines = 0
    bytes_ = 0

    while True:
        chunk = incoming.read(io.DEFAULT_BUFFER_SIZE)
        if not chunk:
            break

        lines += chunk.count(b"\n")
        bytes_ += len(chunk)

    return TotalCounts(lines=lines, bytes=bytes_)


def copy_lines(incoming, start, sink, origin=0):
    """Copy each line out, after skipping the lines before the start"""

    if start is None:

        return

    incoming.seek(origin)

    for _ in range(start):
        if not incoming.readline():

            return

    for line in incoming:
        sink.write(line)


def copy_bytes(incoming, start, sink, origin=0):
    """Copy each byte out, from the start onwards"""

    if start is None:

        return

    incoming.seek(origin + start)
    shutil.copyfileobj(incoming, sink)


#
# Tail each file in order
#


def tail_paths(paths, spec, bytewise, quiet, sink):
    """Tail each file in order, and return how many of them failed"""

    headed = (not quiet) and (len(paths) > 1)

    failures = 0
    for (index, path) in enumerate(paths):
        last = index == (len(paths) - 1)

        try:
            with open_seekable(path) as incoming:
                origin = incoming.tell()  # stdin may begin past byte 0
                totals = count_lines_bytes(incoming)
                record = FileRecord(
                    path=path, incoming=incoming, origin=origin, totals=totals
                )

                if headed:
                    sink.write(b"==> " + os.fsencode(record.path) + b" <==\n")

                try:
                    tail_record(record, spec=spec, bytewise=bytewise, sink=sink)
                finally:
                    if headed and not last:
                        sink.write(b"\n")

        except BrokenPipeError:

            raise

        except OSError as exc:
            stderr_print("tail.py: {}: {}".format(path, exc.strerror or exc))
            failures += 1

    return failures


def tail_record(record, spec, bytewise, sink):
    """Copy out the tail of one file, counted in lines or in bytes"""

    if bytewise:
        start = resolve_start(spec, total=record.totals.bytes)
        copy_bytes(record.incoming, start=start, sink=sink, origin=record.origin)
    else:
        start = resolve_start(spec, total=record.totals.lines)
        copy_lines(record.incoming, start=start, sink=sink, origin=record.origin)


@contextlib.contextmanager
def open_seekable(path):
    """Open a file to read its bytes, and soak up the bytes if it can't seek"""

    readable = "/dev/stdin" if (path == "-") else path
    with open(readable, mode="rb") as incoming:
        if incoming.seekable():
            yield incoming
        else:
            sponge = incoming.read()
            yield io.BytesIO(sponge)


#
# Define some Python idioms
#


# deffed in many files  # missing from docs.python.org
def prompt_tty_stdin():
    if sys.stdin.isatty():
        stderr_print("Press ⌃D EOF to quit")


# deffed in many files  # missing from docs.python.org
def stderr_print(*args, **kwargs):
    sys.stdout.flush()
    print(*args, **kwargs, file=sys.stderr)
    sys.stderr.flush()  # esp. when kwargs["end"] != "\n"


# deffed in many files  # missing from docs.python.org
class BrokenPipeErrorSink(contextlib.ContextDecorator):
    """Cut unhandled BrokenPipeError down to sys.exit(1)

    Test with large Stdout cut sharply, such as:  tail.py -n +1 big.txt |head

    More narrowly than:  signal.signal(signal.SIGPIPE, handler=signal.SIG_DFL)
    As per https://docs.python.org/3/library/signal.html#note-on-sigpipe
    """

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        (exc_type, exc, exc_traceback) = exc_info
        if isinstance(exc, BrokenPipeError):  # catch this one

            null_fileno = os.open(os.devnull, flags=os.O_WRONLY)
            os.dup2(null_fileno, sys.stdout.fileno())  # avoid the next one

            sys.exit(1)


if __name__ == "__main__":
    with BrokenPipeErrorSink():
        sys.exit(main(sys.argv))
