from typer.testing import CliRunner
from handlefs.cli.app import app

runner = CliRunner()

def test_cli_help_runs():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "Usage" in result.stdout
    for command in ("ls", "cat", "write", "mkdir", "rm", "rmdir", "stat"):
        assert command in result.stdout
