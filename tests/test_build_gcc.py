"""End-to-end tests of the command line, with every external command faked."""

import json
import os
import shlex

import pytest

import build_gcc


def run(work_dir: str, *args: str) -> int:
    return build_gcc.main(["--home", work_dir, "--no-sudo", *args])


class TestExplicitVersion:
    def test_full_run(self, fake_runner, work_dir) -> None:
        assert run(work_dir, "--version", "13.2.0") == 0
        steps = [command.split()[0:2] for command in fake_runner.commands]
        assert steps == [
            ["git", "clone"],
            ["git", "-C"],
            ["./contrib/download_prerequisites"],
            [os.path.join(work_dir, "gcc", "configure"), "-v"],
            ["make", "-j"],
            ["make", "install-strip"],
        ]
        assert fake_runner.ran("checkout releases/gcc-13.2.0")
        assert fake_runner.ran(f"--prefix={os.path.join(work_dir, 'gcc-13.2.0')}")
        assert os.path.isdir(os.path.join(work_dir, "build"))

    def test_short_option(self, fake_runner, work_dir) -> None:
        assert run(work_dir, "-v", "12.2.0") == 0
        assert fake_runner.ran("--program-suffix=-12.2.0")

    def test_prints_usage_instructions(self, fake_runner, work_dir, capsys) -> None:
        run(work_dir, "--version", "13.2.0")
        out = capsys.readouterr().out
        assert f"export PATH={os.path.join(work_dir, 'gcc-13.2.0', 'bin')}:$PATH" in out
        assert "gcc-13.2.0 --version" in out
        assert "Time summary" in out

    @pytest.mark.parametrize("version", ["14.1", "14.1.0.1", ""])
    def test_invalid_version_has_no_side_effects(self, fake_runner, work_dir, capsys, version: str) -> None:
        assert run(work_dir, "--version", version) == 1
        assert fake_runner.commands == []
        assert os.listdir(work_dir) == []
        assert "Invalid version format" in capsys.readouterr().out


def test_latest_release_is_used_by_default(fake_runner, work_dir) -> None:
    assert run(work_dir) == 0
    assert fake_runner.ran("checkout releases/gcc-13.2.0")
    assert fake_runner.ran("--program-suffix=-13.2.0")


def test_rerun_updates_instead_of_cloning(fake_runner, work_dir) -> None:
    assert run(work_dir, "--version", "13.2.0") == 0
    fake_runner.commands.clear()
    assert run(work_dir, "--version", "13.2.0") == 0
    assert not fake_runner.ran("git clone")
    assert fake_runner.ran(" fetch --all --tags")


def test_checkout_failure_stops_before_build(fake_runner, work_dir, capsys) -> None:
    fake_runner.fail(" checkout releases/")
    assert run(work_dir, "--version", "99.1.0") == 1
    assert not os.path.exists(os.path.join(work_dir, "build"))
    assert not fake_runner.ran("download_prerequisites")
    out = capsys.readouterr().out
    assert "releases/gcc-99.1.0" in out
    assert "releases/gcc-13.2.0" in out


def test_checkout_failure_keeps_existing_build_dir(fake_runner, work_dir) -> None:
    build_dir = os.path.join(work_dir, "build")
    os.makedirs(build_dir)
    marker = os.path.join(build_dir, "Makefile")
    open(marker, "w").close()
    fake_runner.fail(" checkout releases/")
    assert run(work_dir, "--version", "99.1.0") == 1
    assert os.path.exists(marker)


def test_no_release_tag(fake_runner, work_dir, capsys) -> None:
    fake_runner.answer("tag --list", "releases/gcc-15.0.0-RC1\n")
    assert run(work_dir) == 1
    assert "Cannot find any release tag" in capsys.readouterr().out


def test_test_suite_failure_keeps_exit_code(fake_runner, work_dir) -> None:
    fake_runner.fail("make -k check")
    assert run(work_dir, "--version", "13.2.0", "--run-tests") == 0
    assert fake_runner.ran("make -k check")


def test_build_failure_changes_exit_code(fake_runner, work_dir, capsys) -> None:
    fake_runner.fail("make -j")
    assert run(work_dir, "--version", "13.2.0", "--run-tests") == 1
    assert not fake_runner.ran("install-strip")
    assert not fake_runner.ran("make -k check")
    assert 'Phase "build" failed' in capsys.readouterr().out


def test_build_options(fake_runner, work_dir) -> None:
    args = ["--version", "13.2.0", "--languages", "c", "c++", "--no-bootstrap", "--jobs", "3", "--configure-option=--enable-lto"]
    assert run(work_dir, *args) == 0
    assert fake_runner.ran("--enable-languages=c,c++ --disable-multilib --disable-bootstrap --enable-lto")
    assert "make -j 3" in fake_runner.commands


def test_sudo_install(fake_runner, work_dir) -> None:
    assert build_gcc.main(["--home", work_dir, "--sudo", "--version", "13.2.0"]) == 0
    assert "sudo make install-strip" in fake_runner.commands


def test_non_empty_directory_warning(fake_runner, work_dir, capsys) -> None:
    open(os.path.join(work_dir, "notes.txt"), "w").close()
    run(work_dir, "--version", "13.2.0")
    assert "is not empty" in capsys.readouterr().out


def test_unknown_option_is_a_usage_error(fake_runner, work_dir) -> None:
    with pytest.raises(SystemExit) as info:
        run(work_dir, "--frobnicate")
    assert info.value.code == 2
    assert fake_runner.commands == []


def test_unknown_language_is_a_usage_error(fake_runner, work_dir) -> None:
    with pytest.raises(SystemExit) as info:
        run(work_dir, "--languages", "cobol")
    assert info.value.code == 2


def test_missing_home(fake_runner, tmp_path) -> None:
    assert build_gcc.main(["--home", str(tmp_path / "missing"), "--version", "13.2.0"]) == 1
    assert fake_runner.commands == []


def test_system_packages(fake_runner, work_dir, capsys) -> None:
    assert run(work_dir, "--system") == 0
    assert "build-essential" in capsys.readouterr().out
    assert fake_runner.commands == []


def test_export_and_import_settings(fake_runner, work_dir, tmp_path_factory) -> None:
    settings = str(tmp_path_factory.mktemp("settings") / "settings.json")
    assert run(work_dir, "--version", "13.2.0", "--jobs", "5", "--export", settings) == 0
    with open(settings) as file:
        exported = json.load(file)
    assert exported["jobs"] == 5
    assert exported["home"] == work_dir

    fake_runner.commands.clear()
    assert run(work_dir, "--version", "13.2.0", "--import", settings) == 0
    assert "make -j 5" in fake_runner.commands


def test_invalid_import_file(fake_runner, work_dir, tmp_path_factory) -> None:
    settings = tmp_path_factory.mktemp("settings") / "settings.json"
    settings.write_text("[1, 2]")
    assert run(work_dir, "--version", "13.2.0", "--import", str(settings)) == 1
    assert fake_runner.commands == []


@pytest.mark.parametrize(
    "settings, message",
    [
        ({"git_remote": "gitlab"}, "gitlab"),
        ({"clone_type": "sparse"}, "sparse"),
        ({"languages": []}, "At least one language"),
        ({"languages": ["cobol"]}, "Unknown language"),
        ({"jobs": "8"}, "Invalid jobs"),
        ({"jobs": 0}, "Invalid jobs"),
        ({"retry": None, "network_try_times": True}, "Invalid network try times"),
        ({"shallow_clone_depth": 1.5}, "Invalid shallow clone depth"),
        ({"build": "x86_64"}, "Illegal triplet"),
        ({"bootstrap": "no"}, "Invalid bootstrap"),
        ({"configure_options": "--enable-lto"}, "Invalid configure options"),
    ],
)
def test_imported_settings_are_validated_before_any_command(
    fake_runner, work_dir, tmp_path_factory, capsys, settings: dict, message: str
) -> None:
    path = tmp_path_factory.mktemp("settings") / "settings.json"
    path.write_text(json.dumps(settings))
    assert run(work_dir, "--version", "13.2.0", "--import", str(path)) == 1
    assert fake_runner.commands == []
    assert os.listdir(work_dir) == []
    out = capsys.readouterr().out
    assert "[gcc_builder] Error:" in out
    assert message in out


def test_home_with_spaces(fake_runner, tmp_path) -> None:
    home = tmp_path / "my work"
    home.mkdir()
    assert run(str(home), "--version", "13.2.0") == 0
    configure_argv = shlex.split(next(command for command in fake_runner.commands if "--enable-checking" in command))
    assert configure_argv[0] == str(home / "gcc" / "configure")
    assert f"--prefix={home / 'gcc-13.2.0'}" in configure_argv
    assert shlex.split(fake_runner.commands[1])[:3] == ["git", "-C", str(home / "gcc")]
