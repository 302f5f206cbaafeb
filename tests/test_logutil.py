import logging

from vaultline_api.logutil import RedactingFilter, redact


def test_redacts_credentials_in_urls():
    msg = "Cmd('git') failed: git clone https://ghp_secret123@github.com/o/r.git /tmp/vault-1"
    out = redact(msg)
    assert "ghp_secret123" not in out
    assert "https://***@github.com/o/r.git" in out


def test_redacts_signature_and_token_pairs():
    out = redact("x-line-signature: abc123 token=xyz")
    assert "abc123" not in out and "xyz" not in out


def test_filter_rewrites_formatted_record():
    record = logging.LogRecord(
        "vaultline_api", logging.WARNING, __file__, 1,
        "push failed: %s", ("https://tok@example.com/v.git",), None,
    )
    assert RedactingFilter().filter(record)
    assert record.getMessage() == "push failed: https://***@example.com/v.git"


def test_filter_redacts_tracebacks():
    try:
        raise RuntimeError("git push https://tok@example.com/v.git rejected")
    except RuntimeError:
        import sys

        record = logging.LogRecord(
            "vaultline_api", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
        )
    RedactingFilter().filter(record)
    formatted = logging.Formatter().format(record)
    assert "tok@" not in formatted
    assert "https://***@example.com" in formatted
