"""Runs the PII gate over src/ and checks its detection rules."""

from pathlib import Path

from scripts.gate_security_pii import check_line, scan

SRC_DIR = Path(__file__).resolve().parent.parent / "src"


def test_src_passes_gate():
    assert scan(SRC_DIR) == []


class TestCheckLine:
    def test_print_flagged(self):
        assert check_line('    print("debug")') == ["print() not allowed in runtime code"]

    def test_commented_print_ignored(self):
        assert check_line('    # print("debug")') == []

    def test_unredacted_sensitive_log(self):
        problems = check_line('    logger.info("got %s", message.body)')
        assert problems == ["logger call with 'message.body' must use redaction"]

    def test_redacted_log_allowed(self):
        line = '    logger.info("x", extra={"extra_fields": safe_log_context(to_phone=to_phone)})'
        assert check_line(line) == []

    def test_plain_log_allowed(self):
        assert check_line('    logger.info("webhook processed")') == []
