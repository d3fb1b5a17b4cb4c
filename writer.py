#!/usr/bin/env python3
"""
Result Writer

Persists posts as a JSON array. Append mode merges with an existing file
(first occurrence of an id wins); overwrite mode replaces it. Files are
written to a temporary sibling and renamed into place so an interrupted run
never leaves a half-written document behind.
"""

import json
import logging
import os
import sys
import tempfile
from enum import Enum
from typing import Iterable, Optional, TextIO

from errors import ParseError, WriteError
from models import OutputDocument, Post

logger = logging.getLogger(__name__)

STDOUT_TARGETS = ('-', '/dev/stdout')


class WriteMode(str, Enum):
    OVERWRITE = 'overwrite'
    APPEND = 'append'


def is_stdout(destination: str) -> bool:
    return str(destination) in STDOUT_TARGETS


def _target_mode(destination: str) -> int:
    """Keep an existing file's permissions, otherwise use the umask default."""
    try:
        return os.stat(destination).st_mode & 0o777
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


class ResultWriter:
    """Writes the output document to a file or stdout."""

    def __init__(self, stdout: Optional[TextIO] = None):
        self.stdout = stdout

    def load(self, destination: str) -> OutputDocument:
        """Read an existing output document.

        A missing or blank file gives an empty document; anything else that
        is not a JSON array of posts raises ParseError.
        """
        try:
            with open(destination, 'rb') as f:
                raw = f.read()
        except FileNotFoundError:
            return OutputDocument()
        except OSError as e:
            raise WriteError(f"Cannot read existing output {destination}: {e}") from e

        try:
            contents = raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ParseError(f"existing output is not valid UTF-8 ({e}); refusing to overwrite",
                             source=str(destination)) from e

        if not contents.strip():
            return OutputDocument()

        try:
            payload = json.loads(contents)
        except ValueError as e:
            raise ParseError(f"existing output is not valid JSON ({e}); refusing to overwrite",
                             source=str(destination)) from e
        return OutputDocument.from_json(payload, source=str(destination))

    def write(self, posts: Iterable[Post], destination: str, mode: WriteMode = WriteMode.APPEND) -> int:
        """Write posts to destination. Returns the number of posts in the written document."""
        mode = WriteMode(mode)
        document = OutputDocument()

        if is_stdout(destination):
            document.replace(posts)
            try:
                self._dump(document, self.stdout or sys.stdout)
            except OSError as e:
                raise WriteError(f"Cannot write to stdout: {e}") from e
            return len(document.posts)

        if mode == WriteMode.APPEND:
            document = self.load(destination)
            existing = len(document.posts)
            added = document.merge(posts)
            logger.info(f"📚 Appending {added} new posts to {existing} existing posts in {destination}")
        else:
            document.replace(posts)

        self._write_atomic(document, destination)
        logger.info(f"💾 Wrote {len(document.posts)} posts to {destination}")
        return len(document.posts)

    def _write_atomic(self, document: OutputDocument, destination: str):
        directory = os.path.dirname(os.path.abspath(destination))
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile('w', encoding='utf-8', dir=directory,
                                             prefix='.happy-tweet-', suffix='.tmp',
                                             delete=False) as f:
                tmp_path = f.name
                self._dump(document, f)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, _target_mode(destination))
            os.replace(tmp_path, destination)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise WriteError(f"Cannot write {destination}: {e}") from e

    @staticmethod
    def _dump(document: OutputDocument, stream: TextIO):
        json.dump(document.to_json(), stream, indent=2, ensure_ascii=False)
        stream.write('\n')
        stream.flush()
