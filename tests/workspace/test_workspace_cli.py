from __future__ import annotations

from magic_mock.workspace import cli


def test_init_creates_workspace_from_env(tmp_path, capsys, monkeypatch):
    target = tmp_path / "workspace"
    monkeypatch.setenv("MAGIC_MOCK_DATA_HOME", str(target))

    code = cli.main([])

    out = capsys.readouterr().out
    assert code == 0
    assert f"Workspace ready at {target} (created)" in out
    assert "history" in out
    assert (target / "history").is_dir()


def test_init_reports_existing_directories(tmp_path, capsys):
    target = tmp_path / "again"
    cli.main(["--path", str(target), "--quiet"])

    code = cli.main(["--path", str(target)])

    out = capsys.readouterr().out
    assert code == 0
    assert "(exists)" in out
    assert "(created)" not in out


def test_init_quiet_mode(tmp_path, capsys):
    code = cli.main(["--path", str(tmp_path / "quiet"), "--quiet"])

    assert code == 0
    assert capsys.readouterr().out == ""


def test_init_fails_when_path_is_a_file(tmp_path, capsys):
    target = tmp_path / "file"
    target.write_text("x", encoding="utf-8")

    code = cli.main(["--path", str(target)])

    assert code == 1
    assert "Error:" in capsys.readouterr().err
