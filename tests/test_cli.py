import io
import json
from unittest.mock import MagicMock, patch

import pytest
from session_distill import __version__
from session_distill.cli import _dispatch, build_parser, main
from session_distill.server import create_app


def _args(*argv):
    return build_parser().parse_args(list(argv))


@pytest.fixture
def tty_stdin():
    """Pretend stdin is an interactive terminal so auto-detection runs."""
    with patch("session_distill.cli.is_stdin", return_value=False):
        yield


@pytest.fixture
def app():
    return create_app(threshold=0.6, min_session_count=2, min_confidence=0.6, session_limit=20)


class TestParser:
    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert capsys.readouterr().out.strip() == __version__

    def test_help(self, capsys):
        with pytest.raises(SystemExit):
            main(["--help"])
        out = capsys.readouterr().out
        assert "session-distill" in out
        assert "usage:" in out

    def test_rejects_unknown_adapter(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--adapter", "cursor"])


class TestDispatch:
    def test_json_output_shape(self, claude_projects, app, tty_stdin, capsys):
        _dispatch(_args("--json", "--adapter", "claude-code", "--project", str(claude_projects)), app)
        parsed = json.loads(capsys.readouterr().out)
        assert parsed["sessions_analyzed"] == 2
        assert parsed["no_sessions"] is False
        assert isinstance(parsed["patterns"], list)
        assert "claude_md" in parsed
        texts = [p["text"] for p in parsed["patterns"]]
        assert "always use typescript" in texts
        assert set(parsed["patterns"][0]) == {"text", "sessionCount", "totalSessions", "confidence", "pattern"}

    def test_top_limits_lines(self, claude_projects, app, tty_stdin, capsys):
        _dispatch(_args("--top", "1", "--adapter", "claude-code", "--project", str(claude_projects)), app)
        out = capsys.readouterr().out
        numbered = [line for line in out.splitlines() if line.strip()[:2] == "1."]
        assert out.startswith("top 1 recurring patterns (2 sessions analyzed)")
        assert len(numbered) == 1
        assert "2. " not in out

    def test_default_prints_document(self, claude_projects, app, tty_stdin, capsys):
        _dispatch(_args("--adapter", "claude-code", "--project", str(claude_projects)), app)
        out = capsys.readouterr().out
        assert out.startswith("# CLAUDE.md")
        assert "always use typescript" in out

    def test_out_writes_file(self, claude_projects, app, tty_stdin, tmp_path, capsys):
        target = tmp_path / "CLAUDE.md"
        _dispatch(_args("--adapter", "claude-code", "--project", str(claude_projects), "--out", str(target)), app)
        assert "written to" in capsys.readouterr().out
        assert "always use typescript" in target.read_text()

    def test_merge_appends(self, claude_projects, app, tty_stdin, tmp_path, capsys):
        target = tmp_path / "CLAUDE.md"
        target.write_text("# Hand written\n")
        _dispatch(_args(
            "--adapter", "claude-code", "--project", str(claude_projects),
            "--out", str(target), "--merge",
        ), app)
        assert "merged into" in capsys.readouterr().out
        content = target.read_text()
        assert content.startswith("# Hand written\n\n# CLAUDE.md")

    def test_diff_reports_changes_then_none(self, claude_projects, app, tty_stdin, tmp_path, capsys):
        target = tmp_path / "CLAUDE.md"
        argv = ("--adapter", "claude-code", "--project", str(claude_projects), "--out", str(target))
        _dispatch(_args(*argv, "--diff"), app)
        assert "would generate" in capsys.readouterr().out
        assert not target.exists()

        _dispatch(_args(*argv), app)
        capsys.readouterr()
        _dispatch(_args(*argv, "--diff"), app)
        assert capsys.readouterr().out.strip() == "no changes."

    def test_no_sessions_hint(self, app, capsys):
        app.resolve_source = MagicMock(return_value=None)
        with patch("session_distill.cli.is_stdin", return_value=False):
            _dispatch(_args(), app)
        assert "no agent sessions found" in capsys.readouterr().err

    def test_no_sessions_json(self, app, capsys):
        app.resolve_source = MagicMock(return_value=None)
        with patch("session_distill.cli.is_stdin", return_value=False):
            _dispatch(_args("--json"), app)
        parsed = json.loads(capsys.readouterr().out)
        assert parsed == {
            "sessions_analyzed": 0,
            "no_sessions": True,
            "patterns": [],
            "filtered_patterns": [],
            "claude_md": "",
        }

    def test_from_files_reads_structured_stdin(self, app, capsys, monkeypatch):
        data = "## Rules\n- always use typescript\n## Safety\n- always use typescript\n"
        monkeypatch.setattr("sys.stdin", io.StringIO(data))
        _dispatch(_args("--from-files", "--top", "5"), app)
        out = capsys.readouterr().out
        assert "always use typescript (2/2 sessions, explicit-instruction)" in out

    def test_piped_stdin_without_adapter(self, app, capsys, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        _dispatch(_args("--json"), app)
        assert json.loads(capsys.readouterr().out)["no_sessions"] is True


class TestMain:
    def test_errors_reported_and_exit_zero(self, tmp_path, capsys):
        with patch("session_distill.cli.is_stdin", return_value=False):
            code = main(["--adapter", "markdown", "--project", str(tmp_path / "missing.md")])
        assert code == 0
        assert "missing.md" in capsys.readouterr().err

    def test_serve_runs_server(self):
        with patch("session_distill.server.main") as server_main:
            assert main(["serve"]) == 0
        server_main.assert_called_once()
