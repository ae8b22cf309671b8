# MIT License
# Copyright 2019-2023 BeamNG GmbH
#
# Permission is hereby granted, free of charge, to any person obtaining a copy of
# this software and associated documentation files (the "Software"), to deal in
# the Software without restriction, including without limitation the rights to
# use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies
# of the Software, and to permit persons to whom the Software is furnished to do
# so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""
Output directory handling

Each artifact is opened, written and closed before the next one. There is no
transaction across artifacts: a failing run leaves the files written so far.
"""

import logging
import os
from pathlib import Path

from .constants import ARTIFACT_EXTENSION, LOGGER_NAME
from .errors import ArtifactCollisionError, OutputDirectoryNotEmptyError, OutputError


class ArtifactWriter:
    def __init__(self, output_dir, extension=ARTIFACT_EXTENSION, logger=None):
        self.output_dir = Path(output_dir)
        self.extension = extension
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.written: list[str] = []

    # creates the directory, refuses a non-empty one unless clearing is allowed
    def prepare(self, force_clear: bool):
        if self.output_dir.exists() and not self.output_dir.is_dir():
            raise OutputError(self.output_dir, "not a directory")
        try:
            os.makedirs(self.output_dir, exist_ok=True)
            files = sorted(p for p in self.output_dir.iterdir() if p.is_file())
        except OSError as e:
            raise OutputError(self.output_dir, e.strerror or e) from e
        if files and not force_clear:
            raise OutputDirectoryNotEmptyError(self.output_dir, files)

        for path in files:
            if path.suffix == self.extension:
                try:
                    path.unlink()
                except OSError as e:
                    raise OutputError(path, e.strerror or e) from e
                self.logger.debug("removed %s", path)

    def path_for(self, name) -> Path:
        return self.output_dir / (name + self.extension)

    def write(self, name: str, text: str) -> Path:
        if name in self.written:
            raise ArtifactCollisionError(name)
        self.written.append(name)
        path = self.path_for(name)
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as f:
                f.write(text)
        except OSError as e:
            raise OutputError(path, e.strerror or e) from e
        self.logger.debug("wrote %s", path)
        return path
