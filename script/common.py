import functools
import os
import shutil
import json
import argparse
import inspect
import itertools
import subprocess
from collections.abc import Callable
from typing import ParamSpec, TypeVar


class build_error(RuntimeError):
    """构建过程中所有可报告错误的基类"""


class invalid_version_format(build_error):
    """用户输入的版本号格式错误"""

    text: str  # 用户输入的版本号

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f'Invalid version format: "{text}". You must input a version like 14.1.0 (i.e., X.Y.Z).')


class no_release_tag_found(build_error):
    """仓库中没有任何正式发布的tag"""

    def __init__(self, pattern: str) -> None:
        super().__init__(f'Cannot find any release tag matching "{pattern}".')


class tag_not_found(build_error):
    """检出指定tag失败"""

    tag: str  # 检出失败的tag
    recent_tags: list[str]  # 最近的有效tag，用于提示用户

    def __init__(self, tag: str, recent_tags: list[str]) -> None:
        self.tag = tag
        self.recent_tags = recent_tags
        message = f"Failed to check out tag {tag}. Please ensure it's a valid GCC version."
        if recent_tags:
            message += f" Recent releases: {', '.join(recent_tags)}"
        super().__init__(message)


class external_tool_failure(build_error):
    """外部命令执行失败"""

    phase: str  # 失败的阶段
    command: str  # 失败的命令
    returncode: int  # 命令返回值

    def __init__(self, phase: str, command: str, returncode: int) -> None:
        self.phase = phase
        self.command = command
        self.returncode = returncode
        super().__init__(f'Phase "{phase}" failed: command "{command}" exited with errno={returncode}.')


class command_dry_run:
    """是否只显示命令而不实际执行"""

    _dry_run: bool = False

    @classmethod
    def get(cls) -> bool:
        return cls._dry_run

    @classmethod
    def set(cls, dry_run: bool) -> None:
        cls._dry_run = dry_run


P = ParamSpec("P")
R = TypeVar("R")


def _support_dry_run(echo_fn: Callable[..., str | None] | None = None) -> Callable[[Callable[P, R]], Callable[P, R | None]]:
    """根据dry_run参数和command_dry_run中的全局状态确定是否只回显命令而不执行，若fn没有dry_run参数则只会使用全局状态

    Args:
        echo_fn (Callable[..., str | None] | None, optional): 回调函数，返回要显示的命令字符串或None，无回调或返回None时不显示命令，所有参数需要能在主函数的参数列表中找到，默认为无回调.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R | None]:
        signature = inspect.signature(fn)

        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R | None:
            bound_args = signature.bind(*args, **kwargs)
            bound_args.apply_defaults()
            if echo_fn:
                param_list: list = []
                for key in inspect.signature(echo_fn).parameters.keys():
                    assert (
                        key in bound_args.arguments
                    ), f"The param {key} of echo_fn is not in the param list of fn. Every param of echo_fn should be able to find in the param list of fn."
                    param_list.append(bound_args.arguments[key])
                echo = echo_fn(*param_list)
                if echo is not None:
                    print(echo)
            dry_run: bool | None = bound_args.arguments.get("dry_run")
            assert isinstance(dry_run, bool | None), f"The param dry_run must be a bool or None."
            if dry_run is None and command_dry_run.get() or dry_run:
                return
            return fn(*bound_args.args, **bound_args.kwargs)

        return wrapper

    return decorator


def _command_echo(command: str, cwd: str | None, echo: bool) -> str | None:
    if not echo:
        return None
    return f"[gcc_builder] Run command: {command}" + (f" (in {cwd})" if cwd else "")


@_support_dry_run(_command_echo)
def run_command(
    command: str,
    ignore_error: bool = False,
    capture: bool = False,
    echo: bool = True,
    cwd: str | None = None,
    phase: str = "command",
    dry_run: bool | None = None,
) -> subprocess.CompletedProcess[str] | None:
    """在指定目录下运行命令, 若不忽略错误, 则在命令执行出错时抛出external_tool_failure, 反之返回带有错误码的执行结果由调用者检查

    Args:
        command (str): 要运行的命令
        ignore_error (bool, optional): 是否忽略错误. 默认不忽略错误.
        capture (bool, optional): 是否捕获命令输出，默认为不捕获.
        echo (bool, optional): 是否回显信息，设置为False将不回显任何信息，包括错误提示，默认为回显.
        cwd (str | None, optional): 命令的工作目录，默认为None即当前进程的工作目录.
        phase (str, optional): 命令所属的阶段，用于错误报告. 默认为"command".
        dry_run (bool | None, optional): 是否只回显命令而不执行，默认为None.

    Raises:
        external_tool_failure: 命令执行失败且ignore_error为False时抛出异常

    Returns:
        None | subprocess.CompletedProcess[str]: 命令的执行结果，dry run时返回None
    """

    if capture:
        pipe = subprocess.PIPE  # capture为True，不论是否回显都需要捕获输出
    elif echo:
        pipe = None  # 回显而不捕获输出则正常输出
    else:
        pipe = subprocess.DEVNULL  # 不回显又不捕获输出则丢弃输出
    result = subprocess.run(command, stdout=pipe, stderr=pipe, shell=True, text=True, cwd=cwd)
    if result.returncode != 0:
        if not ignore_error:
            raise external_tool_failure(phase, command, result.returncode)
        elif echo:
            print(f'[gcc_builder] Command "{command}" failed with errno={result.returncode}.')
    return result


def succeeded(result: subprocess.CompletedProcess[str] | None) -> bool:
    """判断命令是否执行成功，dry run时没有执行结果，视为成功

    Args:
        result (subprocess.CompletedProcess[str] | None): run_command的返回值

    Returns:
        bool: 命令是否执行成功
    """
    return result is None or result.returncode == 0


@_support_dry_run(lambda path: f"[gcc_builder] Create directory {path}.")
def mkdir(path: str, remove_if_exist=True, dry_run: bool | None = None) -> None:
    """创建目录

    Args:
        path (str): 要创建的目录
        remove_if_exist (bool, optional): 是否先删除已存在的同名目录. 默认先删除已存在的同名目录.
        dry_run (bool | None, optional): 是否只回显命令而不执行，默认为None.
    """
    if remove_if_exist and os.path.exists(path):
        shutil.rmtree(path)
    os.makedirs(path, exist_ok=True)


@_support_dry_run(lambda path: f"[gcc_builder] Remove {path}.")
def remove(path: str, dry_run: bool | None = None) -> None:
    """删除指定路径

    Args:
        path (str): 要删除的路径
        dry_run (bool | None, optional): 是否只回显命令而不执行，默认为None.
    """
    if os.path.isdir(path):
        shutil.rmtree(path)
    else:
        os.remove(path)


@_support_dry_run(lambda path: f"[gcc_builder] Remove {path} if path exists.")
def remove_if_exists(path: str, dry_run: bool | None = None) -> None:
    """如果指定路径存在则删除指定路径

    Args:
        path (str): 要删除的路径
        dry_run (bool | None, optional): 是否只回显命令而不执行，默认为None.
    """
    if os.path.exists(path):
        remove(path)


def warning(message: str) -> None:
    """打印警告信息"""
    print(f"[gcc_builder] Warning: {message}")


def check_triplet(triplet: str) -> None:
    """检查平台名称是否为arch-os-abi或arch-vendor-os-abi的形式

    Args:
        triplet (str): 输入平台名称

    Raises:
        ValueError: 平台名称不合法
    """
    field = triplet.split("-")
    if len(field) not in (3, 4) or "" in field:
        raise ValueError(f'Illegal triplet "{triplet}"')


def _check_home(home: str) -> None:
    assert os.path.exists(home), f'The home dir "{home}" does not exist.'


class basic_configure:
    home: str  # 工作目录，源代码、构建目录和安装目录均位于其中

    def __init__(self, home: str = os.getcwd()) -> None:
        self.home = os.path.abspath(home)

    @staticmethod
    def add_argument(parser: argparse.ArgumentParser) -> None:
        """为argparse添加--home、--export、--import和--dry-run选项

        Args:
            parser (argparse.ArgumentParser): 命令行解析器
        """
        parser.add_argument(
            "--home", type=str, help="The work directory holding the source, build and install directories.", default=os.getcwd()
        )
        parser.add_argument("--export", dest="export_file", type=str, help="Export settings to specific file.")
        parser.add_argument("--import", dest="import_file", type=str, help="Import settings from specific file.")
        parser.add_argument(
            "--dry-run",
            dest="dry_run",
            action=argparse.BooleanOptionalAction,
            help="Preview the commands without actually executing them.",
            default=False,
        )

    @classmethod
    def parse_args(cls, args: argparse.Namespace):
        _check_home(args.home)
        command_dry_run.set(args.dry_run)
        args_list = vars(args)
        parma_list: list = []
        for parma in itertools.islice(inspect.signature(cls.__init__).parameters.keys(), 1, None):
            assert parma in args_list, f"The parma {parma} is not in args. Every parma except self should be able to find in args."
            parma_list.append(args_list[parma])
        return cls(*parma_list)

    def save_config(self, args: argparse.Namespace) -> None:
        """将配置保存到文件，使用json格式

        Args:
            args (argparse.Namespace): 用户输入参数

        Raises:
            build_error: 保存失败抛出异常
        """
        export_file: str | None = args.export_file
        if export_file:
            try:
                with open(export_file, "w") as file:
                    json.dump(vars(self), file, indent=4)
                print(f'[gcc_builder] Settings have been written to file "{export_file}"')
            except OSError as e:
                raise build_error(f"Export settings failed: {e}")

    def load_config(self, args: argparse.Namespace) -> None:
        """从配置文件中加载配置，然后合并加载的配置和用户输入的配置

        Args:
            args (argparse.Namespace): 用户输入参数

        Raises:
            build_error: 加载失败抛出异常
        """
        import_file: str | None = args.import_file
        if import_file:
            try:
                with open(import_file) as file:
                    import_config_list = json.load(file)
            except (OSError, ValueError) as e:
                raise build_error(f'Import file "{import_file}" failed: {e}')
            if not isinstance(import_config_list, dict):
                raise build_error(f'Invalid configure file "{import_file}".')
            current_config_list = vars(self)
            default_config_list = vars(type(self)())
            self.__dict__ = {
                # 若import_config中没有则使用default_config中的值，以便在配置类更新后原配置文件可以正确加载
                key: (import_config_list.get(key, default_config_list[key]) if value == default_config_list[key] else value)
                for key, value in current_config_list.items()
            }


assert __name__ != "__main__", "Import this file instead of running it directly."
