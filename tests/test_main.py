# =============================================================================
# DUA CLI TESTS
# =============================================================================
# Tests for the typer command line: argument handling, exit codes and the
# end-to-end lifecycle on a scratch project.
# =============================================================================

from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from conftest import FakeHasher, setup_region, snapshot, unit_section
from dua.main import app, main

runner = CliRunner()


@pytest.fixture
def cli(project):
    """Invoke the app against the scratch project with a fake hasher."""
    hasher = FakeHasher()

    def invoke(*args, env=None):
        with patch("dua.main.resolve_hasher", return_value=hasher):
            return runner.invoke(app, ["--root", str(project), *args], env=env)

    invoke.hasher = hasher
    return invoke


def dockerfile(project, target="x86-dev"):
    return project / "docker" / f"container-{target}" / "Dockerfile"


class TestCreateCommand:
    """Test dua create."""

    def test_create(self, cli, project):
        result = cli("create", "myproj", "x86-dev", "secret")
        assert result.exit_code == 0, result.output
        assert dockerfile(project).is_file()
        assert cli.hasher.calls == [("secret", None)]

    def test_create_with_units(self, cli, project):
        result = cli("create", "-a", "lidar,camera", "myproj", "x86-dev")
        assert result.exit_code == 0, result.output
        region = setup_region(dockerfile(project).read_text())
        assert region == unit_section("lidar") + unit_section("camera")

    def test_default_password(self, cli):
        cli("create", "myproj", "x86-dev")
        assert cli.hasher.calls[0][0] == "dua"

    def test_password_with_spaces_hashed_unchanged(self, cli):
        result = cli("create", "myproj", "x86-dev", " pw ")
        assert result.exit_code == 0, result.output
        assert cli.hasher.calls[0][0] == " pw "

    def test_password_from_env(self, cli):
        cli("create", "myproj", "x86-dev", env={"DUA_PASSWORD": "from-env"})
        assert cli.hasher.calls[0][0] == "from-env"

    def test_missing_arguments_prints_usage(self, cli, project):
        before = snapshot(project)
        result = cli("create", "myproj")
        assert result.exit_code == 1
        assert "Usage" in result.output
        assert snapshot(project) == before

    def test_invalid_target(self, cli, project):
        before = snapshot(project)
        result = cli("create", "myproj", "nonexistent-target")
        assert result.exit_code == 1
        assert "Invalid target" in result.output
        assert snapshot(project) == before

    def test_existing_target(self, cli):
        cli("create", "myproj", "x86-dev")
        result = cli("create", "myproj", "x86-dev")
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_empty_unit_list(self, cli, project):
        result = cli("create", "-a", ",", "myproj", "x86-dev")
        assert result.exit_code == 1
        assert not dockerfile(project).exists()

    def test_missing_unit(self, cli, project):
        result = cli("create", "-a", "ghost", "myproj", "x86-dev")
        assert result.exit_code == 1
        assert not dockerfile(project).parent.exists()

    def test_missing_hashing_tool(self, project):
        from dua.core.passwords import PasswordHashError

        with patch("dua.main.resolve_hasher", side_effect=PasswordHashError("No password hashing tool found")):
            result = runner.invoke(app, ["--root", str(project), "create", "myproj", "x86-dev"])
        assert result.exit_code == 1
        assert not dockerfile(project).parent.exists()

    def test_not_a_project_root(self, tmp_path):
        with patch("dua.main.resolve_hasher", return_value=FakeHasher()):
            result = runner.invoke(app, ["--root", str(tmp_path), "create", "p", "x86-dev"])
        assert result.exit_code == 1


class TestModifyCommand:
    """Test dua modify."""

    @pytest.fixture(autouse=True)
    def created(self, cli):
        assert cli("create", "-a", "lidar", "myproj", "x86-dev").exit_code == 0

    def test_add(self, cli, project):
        result = cli("modify", "-a", "camera", "x86-dev")
        assert result.exit_code == 0, result.output
        region = setup_region(dockerfile(project).read_text())
        assert region == unit_section("lidar") + unit_section("camera")

    def test_remove(self, cli, project):
        result = cli("modify", "-r", "lidar", "x86-dev")
        assert result.exit_code == 0, result.output
        assert setup_region(dockerfile(project).read_text()) == ""

    def test_no_options(self, cli):
        result = cli("modify", "x86-dev")
        assert result.exit_code == 1
        assert "Usage" in result.output

    def test_missing_target_directory(self, cli):
        result = cli("modify", "-a", "lidar", "armv8-dev")
        assert result.exit_code == 1

    def test_invalid_target_no_mutation(self, cli, project):
        before = snapshot(project)
        result = cli("modify", "-a", "camera", "x86")
        assert result.exit_code == 1
        assert snapshot(project) == before


class TestClearDeleteCommands:
    """Test dua clear and dua delete."""

    def test_clear(self, cli, project):
        cli("create", "-a", "lidar,camera", "myproj", "x86-dev")
        result = cli("clear", "x86-dev")
        assert result.exit_code == 0, result.output
        assert setup_region(dockerfile(project).read_text()) == ""

    def test_delete(self, cli, project):
        cli("create", "myproj", "x86-dev")
        result = cli("delete", "x86-dev")
        assert result.exit_code == 0, result.output
        assert not dockerfile(project).parent.exists()

    def test_delete_without_target(self, cli):
        result = cli("delete")
        assert result.exit_code == 1
        assert "Usage" in result.output

    def test_delete_invalid_target(self, cli, project):
        cli("create", "myproj", "x86-dev")
        before = snapshot(project)
        result = cli("delete", "nonexistent-target")
        assert result.exit_code == 1
        assert snapshot(project) == before


class TestTargetsCommand:
    """Test dua targets."""

    def test_lists_targets(self, cli):
        cli("create", "-a", "lidar", "myproj", "x86-dev")
        result = cli("targets")
        assert result.exit_code == 0, result.output
        assert "x86-dev" in result.output
        assert "jetson5c7" in result.output
        assert "lidar" in result.output

    def test_config_file_whitelist(self, cli, project):
        (project / "dua.yaml").write_text("target_revision: jetpack\n")
        result = cli("targets")
        assert "jetson6" in result.output
        assert "jetson5c7" not in result.output

    def test_malformed_config_exits_1(self, cli, project):
        (project / "dua.yaml").write_text("target_revision: [unclosed\n")
        result = cli("targets")
        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert "Invalid configuration file" in result.output
        assert "Usage" not in result.output

    def test_bad_config_value_is_not_a_usage_error(self, cli, project):
        (project / "dua.yaml").write_text("target_revision: jetson\n")
        result = cli("delete", "x86-dev")
        assert result.exit_code == 1
        assert "Invalid configuration file" in result.output
        assert "Usage" not in result.output


class TestDockerCommands:
    """Test dua build and dua compose."""

    def test_build(self, cli, project):
        cli("create", "myproj", "x86-dev")
        with patch("dua.main.DockerProvider") as provider_cls:
            result = cli("build", "x86-dev")
        assert result.exit_code == 0, result.output
        provider_cls.return_value.build_target.assert_called_once_with(
            dockerfile(project.resolve()).parent, "myproj-x86-dev:latest"
        )

    def test_build_missing_target(self, cli):
        with patch("dua.main.DockerProvider") as provider_cls:
            result = cli("build", "x86-dev")
        assert result.exit_code == 1
        provider_cls.assert_not_called()

    def test_compose_passes_arguments(self, cli, project):
        cli("create", "myproj", "x86-dev")
        with patch("dua.main.run_compose", return_value=0) as run:
            result = cli("compose", "x86-dev", "up", "-d")
        assert result.exit_code == 0, result.output
        run.assert_called_once_with(
            dockerfile(project.resolve()).parent / "docker-compose.yml", ["up", "-d"]
        )

    def test_compose_exit_code(self, cli):
        cli("create", "myproj", "x86-dev")
        with patch("dua.main.run_compose", return_value=2):
            result = cli("compose", "x86-dev", "ps")
        assert result.exit_code == 2


class TestGitCommands:
    """Test dua subtree and dua submod."""

    def test_subtree_add(self, cli, project):
        with patch("dua.main.GitProvider") as provider_cls:
            result = cli("subtree", "add", "git@host:radar.git", "src/radar", "main")
        assert result.exit_code == 0, result.output
        provider_cls.assert_called_once_with(project.resolve())
        provider_cls.return_value.subtree_add.assert_called_once_with(
            "git@host:radar.git", "src/radar", "main"
        )

    def test_git_error_exits_1(self, cli):
        from dua.infra.git_client import GitError

        provider = MagicMock()
        provider.submodule_update.side_effect = GitError("Git command failed: fatal")
        with patch("dua.main.GitProvider", return_value=provider):
            result = cli("submod", "update")
        assert result.exit_code == 1
        assert "fatal" in result.output


class TestEntryPoint:
    """Test the console script wrapper."""

    def test_success_exits_0(self, project):
        with patch("sys.argv", ["dua", "--root", str(project), "targets"]):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 0

    def test_unknown_option_exits_1(self, project):
        with patch("sys.argv", ["dua", "--root", str(project), "clear", "--bogus"]):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 1

    def test_invalid_target_exits_1(self, project):
        with patch("sys.argv", ["dua", "--root", str(project), "delete", "nonexistent-target"]):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 1

    def test_unknown_option_reports_on_stderr(self, project, capsys):
        """Parse errors print a readable message rather than a traceback."""
        with patch("sys.argv", ["dua", "--root", str(project), "clear", "--bogus"]):
            with pytest.raises(SystemExit):
                main()
        captured = capsys.readouterr()
        assert "bogus" in captured.err
        assert "Traceback" not in captured.err

    def test_missing_required_argument_exits_1(self, project):
        with patch("sys.argv", ["dua", "--root", str(project), "build"]):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 1

    def test_other_exit_codes_pass_through(self, project):
        with patch("sys.argv", ["dua", "--root", str(project), "compose", "x86-dev", "ps"]), \
                patch("dua.main.TargetManager") as manager_cls, \
                patch("dua.main.run_compose", return_value=3):
            manager_cls.return_value.require_target.return_value = project
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 3
