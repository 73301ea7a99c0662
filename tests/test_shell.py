import io
import os
from unittest import mock

import pytest

from minishell.backends import Platform, Verb
from minishell.models import GenericRequest
from minishell.shell import Shell


@pytest.fixture
def shell(make_dispatcher):
    dispatcher, runner = make_dispatcher("apt", "snap")
    sh = Shell(dispatcher, stdout=io.StringIO())
    sh.runner = runner
    return sh


def output(sh):
    return sh.stdout.getvalue()


# ------------------------
# Built-ins
# ------------------------


def test_mkdir_touch_ls_cat_rm(shell, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert shell.execute("mkdir a/b/c") == 0
    assert (tmp_path / "a" / "b" / "c").is_dir()

    assert shell.execute("touch notes.txt") == 0
    (tmp_path / "notes.txt").write_text("hello\n")
    assert shell.execute("cat notes.txt") == 0
    assert "hello\n" in output(shell)

    assert shell.execute("ls") == 0
    assert "a/" in output(shell)
    assert "notes.txt" in output(shell)

    assert shell.execute("rm a") == 1
    assert "Is a directory" in output(shell)
    assert shell.execute("rm -rf a notes.txt") == 0
    assert list(tmp_path.iterdir()) == []


def test_rm_force_hides_missing_files(shell, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert shell.execute("rm missing") == 1
    assert shell.execute("rm -f missing") == 0


def test_cd_and_pwd(shell, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "sub").mkdir()

    assert shell.execute("cd sub") == 0
    assert os.path.samefile(os.getcwd(), tmp_path / "sub")

    assert shell.execute("cd does-not-exist") == 1
    assert "cd: does-not-exist" in output(shell)

    shell.execute("pwd")
    assert os.path.samefile(output(shell).splitlines()[-1], tmp_path / "sub")


def test_cd_without_args_goes_home(shell, tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    monkeypatch.chdir(tmp_path.parent)
    assert shell.execute("cd") == 0
    assert os.path.samefile(os.getcwd(), tmp_path)


def test_missing_operands(shell):
    for cmd in ("mkdir", "rm", "cat", "touch"):
        assert shell.execute(cmd) == 1
        assert f"{cmd}: missing operand" in output(shell)


def test_echo_and_blank_line(shell):
    assert shell.execute("echo hello   world") == 0
    assert output(shell) == "hello world\n"
    shell.last_status = 5
    assert shell.execute("   ") == 5


def test_exit(shell):
    assert shell.execute("exit 3") == 3
    assert not shell.running


def test_exit_rejects_non_numeric(shell):
    assert shell.execute("exit soon") == 2
    assert shell.running


def test_help(shell):
    assert shell.execute("help") == 0
    assert "pkg install <package>" in output(shell)


@mock.patch("minishell.shell.subprocess.run")
def test_unknown_commands_go_to_the_system_shell(mock_run, shell):
    mock_run.return_value = mock.Mock(returncode=3)
    assert shell.execute("grep foo bar.txt") == 3
    argv = mock_run.call_args.args[0]
    assert argv[-1] == "grep foo bar.txt"
    assert "non-zero status code: 3" in output(shell)


# ------------------------
# pkg
# ------------------------


def test_pkg_without_subcommand_prints_usage(shell):
    assert shell.execute("pkg") == 2
    assert "Usage: pkg" in output(shell)


@pytest.mark.parametrize(
    "line, expected",
    [
        ("pkg install curl", GenericRequest(Verb.INSTALL, "curl")),
        ("pkg i curl", GenericRequest(Verb.INSTALL, "curl")),
        ("package search vim", GenericRequest(Verb.SEARCH, "vim")),
        ("pkg s vim -b snap", GenericRequest(Verb.SEARCH, "vim", backend="snap")),
        ("pkg update", GenericRequest(Verb.UPDATE)),
        ("pkg upgrade git", GenericRequest(Verb.UPDATE, "git")),
        ("pkg u --backend apt", GenericRequest(Verb.UPDATE, backend="apt")),
        ("pkg list", GenericRequest(Verb.LIST)),
        ("pkg ls", GenericRequest(Verb.LIST)),
    ],
)
def test_pkg_lines_become_generic_requests(shell, line, expected):
    with mock.patch.object(shell.dispatcher, "dispatch", wraps=shell.dispatcher.dispatch) as dispatch:
        shell.execute(line)
    dispatch.assert_called_once_with(expected)


@pytest.mark.parametrize("line", ["pkg install", "pkg search", "pkg frobnicate x", "pkg list extra", "pkg install a b"])
def test_pkg_usage_errors_do_not_leave_the_shell(shell, line):
    assert shell.execute(line) == 2
    assert shell.running
    assert shell.runner.calls == []


def test_pkg_install_reports_and_propagates_exit_code(make_dispatcher):
    dispatcher, runner = make_dispatcher("apt", "snap", responses={"apt": (100, "", "E: Unable to locate package nope\n")})
    sh = Shell(dispatcher, stdout=io.StringIO())

    assert sh.execute("pkg install nope") == 100
    assert runner.backends_called == ["apt"]
    assert "E: Unable to locate package nope" in output(sh)


def test_pkg_list_partial_success_exit_code(make_dispatcher):
    dispatcher, runner = make_dispatcher("apt", "snap", responses={"snap": (1, "", "snap broke\n")})
    sh = Shell(dispatcher, stdout=io.StringIO())
    assert sh.execute("pkg list") == 1
    assert "snap broke" in output(sh)


def test_pkg_with_no_backends(make_dispatcher):
    dispatcher, runner = make_dispatcher(platform=Platform.WINDOWS)
    sh = Shell(dispatcher, stdout=io.StringIO())
    assert sh.execute("pkg update") == 2
    assert "Chocolatey" in output(sh)
    assert "chocolatey, winget, or scoop" in output(sh)
    assert runner.calls == []


def test_pkg_unknown_backend(shell):
    assert shell.execute("pkg install foo -b emerge") == 1
    assert shell.runner.calls == []


def test_pkg_managers(shell):
    assert shell.execute("pkg managers") == 0
    text = output(shell)
    assert "APT" in text and "(installed)" in text
    assert "DNF" in text and "(not installed)" in text
    assert shell.runner.calls == []


def test_pkg_install_rejects_option_like_package(shell):
    assert shell.execute("pkg install -- --reinstall") == 2
    assert shell.running
    assert shell.runner.calls == []


def test_pkg_output_to_a_file_has_no_colour_even_from_a_terminal(shell, monkeypatch):
    terminal = mock.MagicMock()
    terminal.isatty.return_value = True
    monkeypatch.setattr("sys.stdout", terminal)

    shell.execute("pkg list")
    shell.execute("pkg managers")
    assert "\033[" not in output(shell)
