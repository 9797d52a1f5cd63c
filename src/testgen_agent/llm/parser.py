"""Turns a raw completion into a GenerationResult.

The coverage figure is a rough signal derived from how many test constructs the
completion contains. It is not a measurement.
"""

from __future__ import annotations

import re
from typing import Tuple

from .types import CoverageEstimate, GenerationResult

IMPORT_PATTERN = re.compile(
    r"^[ \t]*(?:import[ \t]+\S.*?|from[ \t]+[\w.]+[ \t]+import[ \t]+\S.*?)[ \t]*;?[ \t]*$",
    re.MULTILINE,
)
COMMENT_PATTERN = re.compile(r"/\*[\s\S]*?\*/|//.*")
COMMENT_MARKERS = re.compile(r"^/\*|\*/$|^//")

COVERAGE_MARKERS = (
    re.compile(r"\bdescribe\("),
    re.compile(r"\bit\("),
    re.compile(r"\btest\("),
    re.compile(r"\bexpect\("),
    re.compile(r"\bassert\."),
    re.compile(r"\bshould\."),
)
COVERAGE_WEIGHT = 5


def extract_imports(text: str) -> Tuple[str, ...]:
    return tuple(match.group(0).strip() for match in IMPORT_PATTERN.finditer(text))


def strip_imports(text: str) -> str:
    return IMPORT_PATTERN.sub("", text).strip()


def extract_comments(text: str) -> str:
    comments = []
    for match in COMMENT_PATTERN.finditer(text):
        comments.append(COMMENT_MARKERS.sub("", match.group(0)).strip())
    return "\n".join(comments)


def estimate_coverage(text: str) -> int:
    total = sum(len(pattern.findall(text)) for pattern in COVERAGE_MARKERS)
    return max(0, min(100, total * COVERAGE_WEIGHT))


def parse_test_response(text: str) -> GenerationResult:
    return GenerationResult(
        test_code=strip_imports(text),
        explanation=extract_comments(text),
        suggested_imports=extract_imports(text),
        coverage=CoverageEstimate(estimated_coverage=estimate_coverage(text)),
    )
