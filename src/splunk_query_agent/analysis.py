"""
Context file analysis.

A stateless regex scanner that pulls Splunk-relevant signal out of source,
config, data and log files: function and log-statement patterns, logging
frameworks and format strings, field names, and imports. It never touches
the filesystem; the agent feeds it content obtained through read_file.
"""

import json
import logging
import os
import re
from typing import Any, Protocol

from splunk_query_agent.types import FileAnalysis

logger = logging.getLogger(__name__)

FILE_TYPES: dict[str, str] = {
    ".js": "javascript",
    ".ts": "typescript",
    ".py": "python",
    ".java": "java",
    ".json": "json",
    ".xml": "xml",
    ".csv": "csv",
    ".log": "log",
    ".txt": "text",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".config": "config",
    ".properties": "properties",
    ".ini": "ini",
}

JS_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("Function", re.compile(r"function\s+(\w+)")),
    ("Arrow Function", re.compile(r"const\s+(\w+)\s*=\s*\([^)]*\)\s*=>")),
    ("Log Statement", re.compile(r"console\.(log|error|warn|info|debug)\([^)]+\)")),
    ("API Endpoint", re.compile(r"(app|router)\.(get|post|put|delete|patch)\s*\(\s*['\"`]([^'\"`]+)['\"`]")),
]

PYTHON_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("Function", re.compile(r"def\s+(\w+)\s*\(")),
    ("Log Statement", re.compile(r"logging\.(debug|info|warning|error|critical)\([^)]+\)")),
    ("Print Statement", re.compile(r"print\([^)]+\)")),
]

JAVA_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("Method", re.compile(r"(public|private|protected)?\s*(static)?\s*\w+\s+(\w+)\s*\(")),
    ("Log Statement", re.compile(r"log(ger)?\.(debug|info|warn|error|trace)\([^)]+\)")),
]

LOGGING_FRAMEWORKS: list[re.Pattern[str]] = [
    re.compile(r"log4j|logback|slf4j", re.IGNORECASE),
    re.compile(r"winston|bunyan|pino", re.IGNORECASE),
    re.compile(r"logging\.basicConfig|logging\.getLogger", re.IGNORECASE),
    re.compile(r"console\.log|console\.error|console\.warn", re.IGNORECASE),
    re.compile(r"syslog|rsyslog", re.IGNORECASE),
]

FORMAT_STRING = re.compile(r"['\"`][^'\"`]*%[sd].*?['\"`]")
JS_OBJECT_PROPERTY = re.compile(r"(\w+):\s*['\"]")

ISO_DATE_LINE = re.compile(r"^\d{4}-\d{2}-\d{2}")
BRACKETED_LEVEL = re.compile(r"\[INFO\]|\[ERROR\]|\[WARN\]|\[DEBUG\]")
IPV4 = re.compile(r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}")
LOG_LINES_SCANNED = 50

JS_IMPORTS = [
    re.compile(r"import\s+.*?from\s+['\"`]([^'\"`]+)['\"`]"),
    re.compile(r"require\s*\(\s*['\"`]([^'\"`]+)['\"`]\s*\)"),
]
PYTHON_IMPORTS = re.compile(r"^(import|from)\s+[\w.]+", re.MULTILINE)
JAVA_IMPORTS = re.compile(r"import\s+[\w.]+;")


class Analyzer(Protocol):
    """What the agent needs from a file analyzer."""

    def analyze_file(self, file_path: str, content: str) -> FileAnalysis: ...


def _labelled(label: str, pattern: re.Pattern[str], content: str) -> list[str]:
    return [f"{label}: {match.group(0)}" for match in pattern.finditer(content)]


def _json_keys(data: Any, prefix: str = "") -> list[str]:
    keys: list[str] = []
    if isinstance(data, dict):
        items = data.items()
    elif isinstance(data, list):
        items = ((str(i), v) for i, v in enumerate(data))
    else:
        return keys
    for key, value in items:
        full_key = f"{prefix}.{key}" if prefix else key
        keys.append(f"JSON Key: {full_key}")
        keys.extend(_json_keys(value, full_key))
    return keys


def _json_field_names(data: Any, prefix: str = "") -> list[str]:
    fields: list[str] = []
    if not isinstance(data, dict):
        return fields
    for key, value in data.items():
        field_name = f"{prefix}.{key}" if prefix else key
        fields.append(field_name)
        fields.extend(_json_field_names(value, field_name))
    return fields


class CodeAnalyzer:
    """Regex-based extractor producing a FileAnalysis per file."""

    def analyze_file(self, file_path: str, content: str) -> FileAnalysis:
        logger.debug(f"Analyzing file: {file_path}")
        file_type = self.get_file_type(file_path)
        return FileAnalysis(
            file_path=file_path,
            file_type=file_type,
            patterns=self.extract_patterns(content, file_type),
            log_formats=self.extract_log_formats(content),
            data_fields=self.extract_data_fields(content, file_type),
            imports=self.extract_imports(content, file_type),
        )

    def get_file_type(self, file_path: str) -> str:
        extension = os.path.splitext(file_path)[1].lower()
        return FILE_TYPES.get(extension, "unknown")

    def extract_patterns(self, content: str, file_type: str) -> list[str]:
        if file_type in ("javascript", "typescript"):
            return self._apply(JS_PATTERNS, content)
        if file_type == "python":
            return self._apply(PYTHON_PATTERNS, content)
        if file_type == "java":
            return self._apply(JAVA_PATTERNS, content)
        if file_type == "json":
            data = self._load_json(content)
            return _json_keys(data) if data is not None else []
        if file_type == "log":
            return self._log_patterns(content)
        return []

    def extract_log_formats(self, content: str) -> list[str]:
        formats = [
            f"Logging Framework: {pattern.pattern}"
            for pattern in LOGGING_FRAMEWORKS
            if pattern.search(content)
        ]
        formats.extend(_labelled("Format String", FORMAT_STRING, content))
        return formats

    def extract_data_fields(self, content: str, file_type: str) -> list[str]:
        if file_type == "json":
            data = self._load_json(content)
            return _json_field_names(data) if data is not None else []
        if file_type == "csv":
            header = content.split("\n", 1)[0]
            if not header.strip():
                return []
            return [
                "CSV Field: " + re.sub(r"['\"]", "", column.strip())
                for column in header.split(",")
            ]
        if file_type in ("javascript", "typescript"):
            return [
                f"Object Property: {match.group(1)}"
                for match in JS_OBJECT_PROPERTY.finditer(content)
            ]
        return []

    def extract_imports(self, content: str, file_type: str) -> list[str]:
        if file_type in ("javascript", "typescript"):
            imports: list[str] = []
            for pattern in JS_IMPORTS:
                imports.extend(match.group(0) for match in pattern.finditer(content))
            return imports
        if file_type == "python":
            return [match.group(0) for match in PYTHON_IMPORTS.finditer(content)]
        if file_type == "java":
            return [match.group(0) for match in JAVA_IMPORTS.finditer(content)]
        return []

    def _apply(self, patterns: list[tuple[str, re.Pattern[str]]], content: str) -> list[str]:
        found: list[str] = []
        for label, pattern in patterns:
            found.extend(_labelled(label, pattern, content))
        return found

    def _log_patterns(self, content: str) -> list[str]:
        found: dict[str, None] = {}
        for line in content.split("\n")[:LOG_LINES_SCANNED]:
            if not line.strip():
                continue
            if ISO_DATE_LINE.search(line):
                found["Log Format: ISO Date"] = None
            if BRACKETED_LEVEL.search(line):
                found["Log Format: Bracketed Level"] = None
            if IPV4.search(line):
                found["Log Format: Contains IP"] = None
        return list(found)

    def _load_json(self, content: str) -> Any | None:
        try:
            return json.loads(content)
        except json.JSONDecodeError:
            logger.warning("Failed to parse JSON content for pattern extraction")
            return None
