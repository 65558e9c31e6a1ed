"""Collection and reporting of lint results for decK and OpenAPI files."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Iterable

import yaml

PLAIN_TEXT_FORMAT = "plain"


class Severity(IntEnum):
    """Severity of a lint rule, ordered from least to most serious."""

    HINT = 0
    INFO = 1
    WARN = 2
    ERROR = 3


_SEVERITY_NAMES = {"hint": Severity.HINT, "info": Severity.INFO, "warn": Severity.WARN, "error": Severity.ERROR}

_FIELDS = ("message", "severity", "line", "column", "character", "path")


@dataclass
class LintResult:
    """One violation of a lint rule."""

    message: str
    severity: str
    line: int = 0
    column: int = 0
    character: int = 0
    path: str = ""

    def _as_dict(self, capitalized: bool) -> dict[str, Any]:
        return {
            (name.capitalize() if capitalized else name): getattr(self, name) for name in _FIELDS
        }


def parse_severity(text: str) -> Severity:
    """Map a severity name to a Severity; unknown names count as warnings."""
    return _SEVERITY_NAMES.get(text, Severity.WARN)


def is_openapi_spec(data: bytes | str) -> bool:
    """Tell whether a YAML or JSON document is an OpenAPI specification."""
    try:
        contents = yaml.safe_load(data)
    except yaml.YAMLError:
        return False
    if not isinstance(contents, dict):
        return False
    return contents.get("openapi") is not None


def build_lint_report(
    results: Iterable[LintResult], fail_severity: str, only_failures: bool
) -> dict[str, Any]:
    """Count results and failures, optionally keeping only the failing ones."""
    threshold = parse_severity(fail_severity)
    kept: list[LintResult] = []
    failing = 0
    for result in results:
        severity = parse_severity(result.severity)
        if only_failures and severity < threshold:
            continue
        if severity >= threshold:
            failing += 1
        kept.append(result)
    return {"total_count": len(kept), "fail_count": failing, "results": kept}


def _serialize(report: dict[str, Any], as_json: bool) -> str:
    data = {
        "fail_count": report["fail_count"],
        "results": [result._as_dict(capitalized=as_json) for result in report["results"]],
        "total_count": report["total_count"],
    }
    if as_json:
        return json.dumps(data, indent=2) + "\n"
    return yaml.safe_dump(data, sort_keys=False)


def get_lint_output(report: dict[str, Any], output_format: str, output_filename: str = "-") -> bool:
    """Write a lint report in the given format; True when it holds failures.

    JSON and YAML go to ``output_filename`` ("-" for standard output);
    plain text always goes to standard output.
    """
    fmt = output_format.upper()
    total = report["total_count"]
    failing = report["fail_count"]

    if fmt in ("JSON", "YAML"):
        text = _serialize(report, as_json=fmt == "JSON")
        try:
            if output_filename == "-":
                sys.stdout.write(text)
            else:
                with open(output_filename, "w", encoding="utf-8") as handle:
                    handle.write(text)
        except OSError as exc:
            raise OSError(f"error writing lint results: {exc}") from exc
    elif fmt == PLAIN_TEXT_FORMAT.upper():
        if total > 0:
            print(f"Linting Violations: {total}")
            print(f"Failures: {failing}\n")
            for violation in report["results"]:
                print(
                    f"[{violation.severity}][{violation.line}:{violation.column}] "
                    f"{violation.message}"
                )
    else:
        raise ValueError(f"invalid output format: {output_format}")

    return failing > 0