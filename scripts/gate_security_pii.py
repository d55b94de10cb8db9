#!/usr/bin/env python3
"""PII gate for runtime code under src/.

Fails when:
- print( appears in runtime code
- a logger call names a sender number, message text or credential on the
  same line without going through the redaction helpers

Usage:
    python scripts/gate_security_pii.py [src_dir]
"""

import re
import sys
from pathlib import Path

SENSITIVE_KEYWORDS = (
    "message.body",
    "message.sender",
    "routed.text",
    "to_phone",
    "from_phone",
    "api_key",
    "auth_token",
    "payload",
    "answer",
)

PRINT_PATTERN = re.compile(r"\bprint\s*\(")

LOGGER_CALL_PATTERN = re.compile(
    r"logger\.(debug|info|warning|error|critical|exception)\s*\("
)

REDACTION_PATTERNS = (
    "safe_log_context",
    "redact_value",
    "redact_string",
    "hash_identifier",
)


def check_line(line: str) -> list[str]:
    """Violations found on one source line."""
    code = line.split("#", 1)[0]
    if not code.strip():
        return []

    problems = []
    if PRINT_PATTERN.search(code):
        problems.append("print() not allowed in runtime code")

    if LOGGER_CALL_PATTERN.search(code):
        lowered = code.lower()
        redacted = any(p in code for p in REDACTION_PATTERNS)
        for keyword in SENSITIVE_KEYWORDS:
            if keyword in lowered and not redacted:
                problems.append(f"logger call with '{keyword}' must use redaction")
    return problems


def check_file(filepath: Path) -> list[str]:
    try:
        lines = filepath.read_text(encoding="utf-8").splitlines()
    except UnicodeDecodeError:
        return []
    return [
        f"{filepath}:{lineno}: {problem}"
        for lineno, line in enumerate(lines, start=1)
        for problem in check_line(line)
    ]


def scan(src_dir: Path) -> list[str]:
    errors: list[str] = []
    for pyfile in sorted(src_dir.rglob("*.py")):
        errors.extend(check_file(pyfile))
    return errors


def main(argv: list[str]) -> int:
    src_dir = Path(argv[1]) if len(argv) > 1 else Path(__file__).resolve().parent.parent / "src"
    if not src_dir.exists():
        sys.stderr.write(f"Error: {src_dir} not found\n")
        return 1

    errors = scan(src_dir)
    if errors:
        sys.stderr.write("PII gate FAILED:\n")
        for err in errors:
            sys.stderr.write(f"  {err}\n")
        return 1

    sys.stdout.write("PII gate passed\n")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
