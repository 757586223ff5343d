# Copyright 2025, Pulumi Corporation.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Source ranges and diagnostics for template documents.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import yaml


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Pos:
    line: int
    """1-based line number."""
    column: int
    """1-based column number."""


@dataclass(frozen=True)
class Range:
    filename: str
    start: Pos
    end: Pos

    @staticmethod
    def of(node: yaml.Node, filename: str) -> "Range":
        """The range a YAML node spans. PyYAML marks are 0-based."""
        return Range(
            filename=filename,
            start=Pos(node.start_mark.line + 1, node.start_mark.column + 1),
            end=Pos(node.end_mark.line + 1, node.end_mark.column + 1),
        )

    def __str__(self) -> str:
        return f"{self.filename}:{self.start.line}:{self.start.column}"


@dataclass
class Diagnostic:
    severity: Severity
    summary: str
    detail: str = ""
    subject: Optional[Range] = None

    def __str__(self) -> str:
        s = f"{self.severity.value}: {self.summary}"
        if self.subject is not None:
            s = f"{self.subject}: {s}"
        if self.detail:
            s += f"; {self.detail}"
        return s


class Diagnostics(List[Diagnostic]):
    """
    An append-only list of diagnostics. Passed by reference so visitors can
    add to it.
    """

    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self)

    def __str__(self) -> str:
        return "\n".join(str(d) for d in self)


def error(subject: Optional[Range], summary: str, detail: str = "") -> Diagnostic:
    return Diagnostic(Severity.ERROR, summary, detail, subject)


def warning(subject: Optional[Range], summary: str, detail: str = "") -> Diagnostic:
    return Diagnostic(Severity.WARNING, summary, detail, subject)
