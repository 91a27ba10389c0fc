"""Tests for command tokenization and risk classification."""

import pytest

from shellgate.exec.safety import (
    analyze_command,
    describe_reasons,
    tokenize,
)


# ── tokenize ────────────────────────────────────────────────────────


class TestTokenize:
    def test_whitespace_split(self):
        assert tokenize("ls -la  /tmp") == ["ls", "-la", "/tmp"]

    def test_double_quotes_group(self):
        assert tokenize('say "hello world" now') == ["say", "hello world", "now"]

    def test_single_quotes_literal(self):
        assert tokenize("echo '$HOME and \"x\"'") == ["echo", '$HOME and "x"']

    def test_escaped_space(self):
        assert tokenize(r"cat my\ file.txt") == ["cat", "my file.txt"]

    def test_escape_inside_quotes(self):
        assert tokenize(r'echo "say \"hi\""') == ["echo", 'say "hi"']

    def test_opening_quote_flushes_current_token(self):
        assert tokenize('abc"def"') == ["abc", "def"]

    def test_unterminated_quote_is_flushed(self):
        assert tokenize('echo "unterminated text') == ["echo", "unterminated text"]

    def test_trailing_backslash_tolerated(self):
        assert tokenize("echo foo\\") == ["echo", "foo"]

    def test_empty_quotes_dropped(self):
        assert tokenize('echo ""') == ["echo"]

    def test_empty_input(self):
        assert tokenize("") == []
        assert tokenize("   \t ") == []

    def test_tabs_and_newlines(self):
        assert tokenize("a\tb\nc") == ["a", "b", "c"]


# ── analyze_command ─────────────────────────────────────────────────


class TestAnalyzeCommand:
    @pytest.mark.parametrize(
        "command",
        [
            "ls -la",
            "echo hi",
            "cat README.md | grep shell",
            "git status",
            "git log --oneline",
            "npm test",
            "pip list",
            "docker ps",
            "python -c 'print(1)'",
            "echo install",
        ],
    )
    def test_low_risk(self, command):
        analysis = analyze_command(command)
        assert analysis.risk.level == "low"
        assert analysis.risk.reasons == frozenset()

    @pytest.mark.parametrize(
        "command,expected",
        [
            ("curl https://example.com", {"network", "url-detected"}),
            ("wget http://example.com/file", {"network", "url-detected"}),
            ("ssh user@host", {"network"}),
            ("ping -c 1 localhost", {"network"}),
            ("npm install lodash", {"package-manager"}),
            ("pip3 upgrade requests", {"package-manager"}),
            ("yarn add react", {"package-manager"}),
            ("apt-get update", {"package-manager"}),
            ("git clone repo", {"remote-source-control"}),
            ("git push origin main", {"remote-source-control"}),
            ("hg pull", {"remote-source-control"}),
            ("docker run alpine", {"container-runtime"}),
            ("kubectl login", {"container-runtime"}),
            ("podman build .", {"container-runtime"}),
            ("echo HTTPS://EXAMPLE.COM", {"url-detected"}),
            ("cp sftp://host/file .", {"remote-filesystem"}),
            ("open scp://host/file", {"remote-filesystem"}),
        ],
    )
    def test_external_reasons(self, command, expected):
        analysis = analyze_command(command)
        assert analysis.risk.level == "external"
        assert analysis.risk.reasons == frozenset(expected)

    def test_reasons_accumulate(self):
        analysis = analyze_command("git clone https://github.com/x/y && npm install && docker pull redis")
        assert analysis.risk.reasons == frozenset({
            "remote-source-control",
            "url-detected",
            "package-manager",
            "container-runtime",
        })

    def test_subcommand_must_follow_immediately(self):
        analysis = analyze_command("npm --global install lodash")
        assert "package-manager" not in analysis.risk.reasons

    def test_keyword_in_quotes_still_a_token(self):
        analysis = analyze_command("echo 'curl'")
        assert "network" in analysis.risk.reasons

    def test_keyword_as_substring_not_matched(self):
        assert analyze_command("mycurl --help").risk.level == "low"

    def test_sanitized_command_is_trimmed(self):
        analysis = analyze_command("  echo hi  \n")
        assert analysis.command == "  echo hi  \n"
        assert analysis.sanitized_command == "echo hi"
        assert analysis.tokens == ("echo", "hi")

    def test_whitespace_only_is_low(self):
        analysis = analyze_command("   ")
        assert analysis.risk.level == "low"
        assert analysis.tokens == ()

    def test_deterministic(self):
        assert analyze_command("curl https://x") == analyze_command("curl https://x")


# ── describe_reasons ────────────────────────────────────────────────


class TestDescribeReasons:
    def test_empty(self):
        assert describe_reasons(frozenset()) == "no external access detected"

    def test_sorted_labels(self):
        text = describe_reasons(frozenset({"url-detected", "network"}))
        assert text == "uses a network tool, contains a URL"
