#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import os
import sys
import argparse
import common
import gcc_source
from gcc_configure import default_language_list, default_triplet, language_list, make_configuration
from gcc_runner import build_runner, get_default_jobs, need_sudo
from gcc_source import git_clone_type, git_prefer_remote
from gcc_version import gcc_version
from run_report import run_report


class configure(common.basic_configure):
    build: str  # 构建平台，与host和target相同
    languages: list[str]  # 启用的语言前端
    bootstrap: bool  # 是否进行三阶段自举
    configure_options: list[str]  # 额外的configure选项
    jobs: int  # 并发数
    sudo: bool  # 安装时是否使用sudo
    git_remote: str  # 克隆gcc时使用的远程仓库
    clone_type: str  # 克隆类型
    shallow_clone_depth: int  # 浅克隆深度
    network_try_times: int  # 进行网络操作时尝试的次数
    reset: bool  # 更新时是否硬重置到远程默认分支

    def __init__(
        self,
        home: str = os.getcwd(),
        build: str = default_triplet,
        languages: list[str] | None = None,
        bootstrap: bool = True,
        configure_options: list[str] | None = None,
        jobs: int = get_default_jobs(),
        sudo: bool = need_sudo(),
        remote: str = git_prefer_remote.native,
        clone_type: str = git_clone_type.partial,
        depth: int = 1,
        retry: int = 2,
        reset: bool = True,
    ) -> None:
        super().__init__(home)
        self.build = build
        self.languages = list(languages or default_language_list)
        self.bootstrap = bootstrap
        self.configure_options = list(configure_options or [])
        self.jobs = jobs
        self.sudo = sudo
        self.git_remote = git_prefer_remote(remote)
        self.clone_type = git_clone_type(clone_type)
        self.shallow_clone_depth = depth
        self.network_try_times = retry + 1
        self.reset = reset

    def check(self) -> None:
        """检查合并配置后的环境是否正确

        Raises:
            common.build_error: 配置错误时抛出异常
        """
        if not isinstance(self.home, str) or not os.path.isdir(self.home):
            raise common.build_error(f'The home dir "{self.home}" does not exist.')
        if not isinstance(self.build, str):
            raise common.build_error(f'Illegal triplet "{self.build}"')
        # 从配置文件导入的值未经argparse检查，需要在产生任何副作用前校验
        try:
            common.check_triplet(self.build)
            self.git_remote = git_prefer_remote(self.git_remote)
            self.clone_type = git_clone_type(self.clone_type)
        except ValueError as e:
            raise common.build_error(str(e))
        if not isinstance(self.languages, list) or not self.languages:
            raise common.build_error("At least one language should be enabled.")
        for language in self.languages:
            if language not in language_list:
                raise common.build_error(f'Unknown language "{language}".')
        if not isinstance(self.configure_options, list) or not all(isinstance(option, str) for option in self.configure_options):
            raise common.build_error(f"Invalid configure options: {self.configure_options}.")
        for name in ("bootstrap", "sudo", "reset"):
            if not isinstance(getattr(self, name), bool):
                raise common.build_error(f"Invalid {name}: {getattr(self, name)}.")
        for name, minimum in (("jobs", 1), ("shallow_clone_depth", 1), ("network_try_times", 1)):
            value = getattr(self, name)
            # bool是int的子类，需要单独排除
            if type(value) is not int or value < minimum:
                raise common.build_error(f"Invalid {name.replace('_', ' ')}: {value}.")

    @property
    def build_dir(self) -> str:
        return os.path.join(self.home, "build")


def _warn_if_not_empty(config: configure) -> None:
    """工作目录中存在无关文件时给出警告"""
    if os.path.exists(gcc_source.get_source_dir(config)):
        return
    unknown_list = [item for item in os.listdir(config.home) if item != "build" and not item.startswith("gcc")]
    if unknown_list:
        common.warning(f'The directory "{config.home}" is not empty. It is recommended to run this tool in an empty folder.')


def build(config: configure, version: str | None = None, run_tests: bool = False) -> run_report:
    """获取源代码并构建安装指定版本的gcc

    Args:
        config (configure): 构建配置
        version (str | None, optional): 要构建的版本号，为None时构建最新的正式发布版本. 默认为None.
        run_tests (bool, optional): 是否运行测试套件. 默认不运行.

    Raises:
        common.build_error: 任意阶段失败时抛出异常，测试失败除外

    Returns:
        run_report: 各阶段耗时
    """
    report = run_report()
    # 在产生任何副作用前校验用户输入的版本号
    requested = gcc_version.parse(version) if version is not None else None
    if requested:
        print(f"[gcc_builder] Version number is valid: {requested}")
    print(f"[gcc_builder] You have {config.jobs} core(s)/thread(s) available.")
    _warn_if_not_empty(config)

    with report.phase("clone/update"):
        gcc_source.ensure_repository(config)
    release = requested or gcc_source.resolve_latest(config)
    gcc_source.checkout(config, release)
    with report.phase("prerequisites"):
        gcc_source.download_prerequisites(config)

    print(f"[gcc_builder] The version that will be built: {release}")
    build_config = make_configuration(release, config.home, config.build, config.languages, config.bootstrap, config.configure_options)
    runner = build_runner(gcc_source.get_source_dir(config), config.build_dir, build_config, config.jobs, config.sudo, report)
    runner.run(run_tests)
    report.finish()

    print("[gcc_builder] GCC build and installation complete!")
    print(f"[gcc_builder] You can find the installed GCC binaries in: {build_config.bin_dir}")
    print(f"[gcc_builder] Use them directly, e.g. gcc{build_config.program_suffix} --version, or add them to PATH:")
    print(f"export PATH={build_config.bin_dir}:$PATH")
    report.dump()
    return report


def make_parser(default_config: configure) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fetch, configure, build and install a native GCC toolchain from the upstream git repository.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    configure.add_argument(parser)
    parser.add_argument(
        "--version", "-v", dest="version", type=str, help="The GCC version to build, like 14.1.0. Use the latest release by default."
    )
    parser.add_argument(
        "--run-tests", action=argparse.BooleanOptionalAction, help="Whether to run the test suite after installing.", default=False
    )
    parser.add_argument("--build", type=str, help="The build, host and target platform of the GCC toolchain.", default=default_config.build)
    parser.add_argument(
        "--languages",
        action="extend",
        nargs="+",
        help="The language front-ends to enable.",
        choices=language_list,
    )
    parser.add_argument(
        "--bootstrap", action=argparse.BooleanOptionalAction, help="Whether to do a full 3-stage bootstrap.", default=default_config.bootstrap
    )
    parser.add_argument(
        "--configure-option",
        dest="configure_options",
        action="append",
        help="Extra option passed to configure, use like --configure-option=--enable-lto. Can be given multiple times.",
    )
    parser.add_argument("--jobs", type=int, help="Number of concurrent jobs at build time. Use cpu cores by default.", default=default_config.jobs)
    parser.add_argument(
        "--sudo", action=argparse.BooleanOptionalAction, help="Whether to install with sudo.", default=default_config.sudo
    )
    parser.add_argument(
        "--remote",
        type=str,
        help="The git remote to clone GCC from.",
        default=default_config.git_remote,
        choices=git_prefer_remote,
    )
    parser.add_argument(
        "--clone-type",
        type=str,
        help="How to clone the git repository.",
        default=default_config.clone_type,
        choices=git_clone_type,
    )
    parser.add_argument("--depth", type=int, help="The depth of shallow clone.", default=default_config.shallow_clone_depth)
    parser.add_argument(
        "--retry", type=int, help="The number of retries when a network operation failed.", default=default_config.network_try_times - 1
    )
    parser.add_argument(
        "--reset",
        action=argparse.BooleanOptionalAction,
        help="Whether to hard reset an existing repository to the remote default branch before checkout.",
        default=default_config.reset,
    )
    parser.add_argument("--system", action="store_true", help="Print needy system packages and exit.")
    return parser


def main(argv: list[str] | None = None) -> int:
    default_config = configure()
    parser = make_parser(default_config)
    args = parser.parse_args(argv)

    if args.system:
        print(f"Please install following system packages: {' '.join(gcc_source.get_system_package_list())}")
        return 0

    try:
        if not os.path.isdir(args.home):
            raise common.build_error(f'The home dir "{args.home}" does not exist.')
        current_config = configure.parse_args(args)
        current_config.load_config(args)
        current_config.check()
        build(current_config, args.version, args.run_tests)
        current_config.save_config(args)
    except common.build_error as e:
        print(f"[gcc_builder] Error: {e}")
        print("[gcc_builder] Exiting.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
