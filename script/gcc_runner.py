import os
import shlex
import psutil
import common
from gcc_configure import build_configuration
from run_report import run_report


def get_default_jobs() -> int:
    """并发数默认为逻辑cpu核心数"""
    return psutil.cpu_count() or 1


def need_sudo() -> bool:
    """非root用户安装时需要sudo"""
    return os.geteuid() != 0


class build_runner:
    """在独立的构建目录中配置、编译、安装和测试gcc"""

    source_dir: str  # 源代码目录
    build_dir: str  # 构建目录
    config: build_configuration  # 构建配置
    jobs: int  # 编译所用线程数
    sudo: bool  # 安装时是否使用sudo
    report: run_report  # 耗时记录

    def __init__(self, source_dir: str, build_dir: str, config: build_configuration, jobs: int, sudo: bool, report: run_report) -> None:
        assert jobs > 0, f"Invalid jobs: {jobs}."
        self.source_dir = source_dir
        self.build_dir = build_dir
        self.config = config
        self.jobs = jobs
        self.sudo = sudo
        self.report = report

    def _run(self, command: str, phase: str) -> None:
        result = common.run_command(command, ignore_error=True, cwd=self.build_dir, phase=phase)
        if not common.succeeded(result):
            assert result
            raise common.external_tool_failure(phase, command, result.returncode)

    def prepare_build_dir(self) -> None:
        """删除并重新创建构建目录"""
        if os.path.exists(self.build_dir):
            common.warning(f'The build directory "{self.build_dir}" and everything in it will be removed.')
        common.mkdir(self.build_dir)

    def configure(self) -> None:
        print("[gcc_builder] Configuring GCC build...")
        command = shlex.join([os.path.join(self.source_dir, "configure"), *self.config.get_configure_options()])
        with self.report.phase("configure"):
            self._run(command, "configure")

    def make(self) -> None:
        print(f"[gcc_builder] Building GCC with {self.jobs} jobs...")
        with self.report.phase("build"):
            self._run(f"make -j {self.jobs}", "build")

    def install(self) -> None:
        """安装并剥离调试符号"""
        print("[gcc_builder] Installing GCC...")
        with self.report.phase("install"):
            self._run(f"{'sudo ' if self.sudo else ''}make install-strip", "install")

    def check(self) -> bool:
        """运行测试套件，测试失败只给出警告

        Returns:
            bool: 测试是否全部通过
        """
        print("[gcc_builder] Running the test suite...")
        with self.report.phase("test"):
            result = common.run_command(f"make -k check -j {self.jobs}", ignore_error=True, cwd=self.build_dir, phase="test")
        if not common.succeeded(result):
            assert result
            common.warning(f"The test suite failed with errno={result.returncode}. The installed toolchain is kept.")
            return False
        return True

    def run(self, run_tests: bool = False) -> bool:
        """依次执行构建的各个阶段

        Args:
            run_tests (bool, optional): 是否运行测试套件. 默认不运行.

        Returns:
            bool: 测试是否通过，不运行测试时为True
        """
        self.prepare_build_dir()
        self.configure()
        self.make()
        self.install()
        return self.check() if run_tests else True


__all__ = ["get_default_jobs", "need_sudo", "build_runner"]
