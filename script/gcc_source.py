import enum
import os
import shlex
import typing
import common
from gcc_version import gcc_version, is_release_tag, tag_prefix


class git_clone_type(enum.StrEnum):
    """git克隆类型"""

    partial = "partial"  # 部分克隆
    shallow = "shallow"  # 浅克隆
    full = "full"  # 完全克隆

    def get_clone_option(self, depth: int) -> str:
        match (self):
            case git_clone_type.partial:
                return "--filter=blob:none"
            case git_clone_type.shallow:
                return f"--depth={depth} --no-single-branch"
            case git_clone_type.full:
                return ""


class git_url:
    remote: str  # 托管平台
    path: str  # git路径
    default_protocol: str  # 默认的网络协议

    def __init__(self, remote: str, path: str, default_protocol: str = "https") -> None:
        self.remote = remote
        self.path = path
        self.default_protocol = default_protocol

    def get_url(self) -> str:
        """获取git仓库的url"""
        return f"{self.default_protocol}://{self.remote}/{self.path}"


class git_prefer_remote(enum.StrEnum):
    """git远程托管平台"""

    native = "native"
    github = "github"


gcc_url_list: typing.Final[dict[git_prefer_remote, git_url]] = {
    git_prefer_remote.native: git_url("gcc.gnu.org", "git/gcc.git", "git"),
    git_prefer_remote.github: git_url("github.com", "gcc-mirror/gcc.git"),
}

# 构建gcc前需要通过包管理器安装的系统包
system_package_list: typing.Final[list[str]] = ["git", "bzip2", "flex", "build-essential"]

default_branch: typing.Final[str] = "origin/master"  # 更新时重置到的远程分支


class source_configure(typing.Protocol):
    """源代码管理所需的配置项"""

    home: str
    git_remote: str
    clone_type: str
    shallow_clone_depth: int
    network_try_times: int
    reset: bool


def get_source_dir(config: source_configure) -> str:
    """gcc源代码目录"""
    return os.path.join(config.home, "gcc")


def _retry_command(config: source_configure, command: str, phase: str, cwd: str | None = None) -> None:
    """运行网络相关命令，失败时重试

    Args:
        config (source_configure): 源代码配置
        command (str): 要运行的命令
        phase (str): 命令所属阶段
        cwd (str | None, optional): 命令的工作目录. 默认为None.

    Raises:
        common.external_tool_failure: 重试全部失败后抛出异常
    """
    for attempt in range(config.network_try_times):
        result = common.run_command(command, ignore_error=True, cwd=cwd, phase=phase)
        if common.succeeded(result):
            return
        if attempt + 1 < config.network_try_times:
            print(f"[gcc_builder] {phase.capitalize()} failed, retrying.")
    assert result
    raise common.external_tool_failure(phase, command, result.returncode)


def clone(config: source_configure) -> None:
    """克隆gcc仓库，失败时删除不完整的仓库后重试

    Args:
        config (source_configure): 源代码配置
    """
    source_dir = get_source_dir(config)
    url = gcc_url_list[git_prefer_remote(config.git_remote)].get_url()
    clone_option = git_clone_type(config.clone_type).get_clone_option(config.shallow_clone_depth)
    command = " ".join(filter(None, ("git clone", clone_option, shlex.quote(url), shlex.quote(source_dir))))
    for attempt in range(config.network_try_times):
        result = common.run_command(command, ignore_error=True, phase="clone")
        if common.succeeded(result):
            return
        common.remove_if_exists(source_dir)
        if attempt + 1 < config.network_try_times:
            print("[gcc_builder] Clone gcc failed, retrying.")
    assert result
    raise common.external_tool_failure("clone", command, result.returncode)


def update(config: source_configure) -> None:
    """拉取远程更新，并根据配置硬重置到远程默认分支

    Args:
        config (source_configure): 源代码配置
    """
    source_dir = shlex.quote(get_source_dir(config))
    _retry_command(config, f"git -C {source_dir} fetch --all --tags", "fetch")
    if config.reset:
        common.run_command(f"git -C {source_dir} reset --hard {default_branch}", phase="reset")


def ensure_repository(config: source_configure) -> str:
    """确保本地存在最新的gcc仓库，不存在时克隆，存在时更新

    Args:
        config (source_configure): 源代码配置

    Returns:
        str: 执行的操作，"clone"或"update"
    """
    if os.path.exists(get_source_dir(config)):
        print("[gcc_builder] GCC repository already exists. Updating the repository...")
        update(config)
        return "update"
    else:
        print("[gcc_builder] Cloning GCC repository...")
        clone(config)
        return "clone"


def list_release_tags(config: source_configure) -> list[str]:
    """列出仓库中所有以releases/gcc-开头的tag，包括预发布版本

    Args:
        config (source_configure): 源代码配置

    Returns:
        list[str]: tag列表，仓库不存在时为空
    """
    source_dir = get_source_dir(config)
    if not os.path.exists(source_dir):
        return []
    # 只读操作，dry run时也需要执行
    result = common.run_command(
        f"git -C {shlex.quote(source_dir)} tag --list '{tag_prefix}*'", capture=True, echo=False, phase="list tags", dry_run=False
    )
    assert result
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]


def select_latest_release(tags: typing.Iterable[str]) -> gcc_version:
    """从tag列表中选出最新的正式发布版本

    Args:
        tags (typing.Iterable[str]): tag列表

    Raises:
        common.no_release_tag_found: 不存在正式发布版本

    Returns:
        gcc_version: 最新版本号
    """
    release_list = [gcc_version.from_tag(tag) for tag in tags if is_release_tag(tag)]
    if not release_list:
        raise common.no_release_tag_found(f"{tag_prefix}X.Y.Z")
    return max(release_list)


def recent_release_tags(tags: typing.Iterable[str], count: int = 5) -> list[str]:
    """获取最新的若干个正式发布tag，按从新到旧排序

    Args:
        tags (typing.Iterable[str]): tag列表
        count (int, optional): 返回的tag数. 默认为5.
    """
    release_list = sorted((gcc_version.from_tag(tag) for tag in tags if is_release_tag(tag)), reverse=True)
    return [release.tag for release in release_list[:count]]


def resolve_latest(config: source_configure) -> gcc_version:
    """解析仓库中最新的正式发布版本

    Args:
        config (source_configure): 源代码配置
    """
    latest = select_latest_release(list_release_tags(config))
    print(f"[gcc_builder] Latest release: {latest}")
    return latest


def checkout(config: source_configure, release: gcc_version) -> None:
    """检出指定版本对应的tag

    Args:
        config (source_configure): 源代码配置
        release (gcc_version): 要检出的版本

    Raises:
        common.tag_not_found: 检出失败，异常中附带最近的有效tag
    """
    source_dir = get_source_dir(config)
    print(f"[gcc_builder] Checking out tag: {release.tag}")
    result = common.run_command(f"git -C {shlex.quote(source_dir)} checkout {release.tag}", ignore_error=True, phase="checkout")
    if not common.succeeded(result):
        raise common.tag_not_found(release.tag, recent_release_tags(list_release_tags(config)))


def download_prerequisites(config: source_configure) -> None:
    """运行gcc自带的脚本下载gmp、mpfr、mpc、isl等依赖源代码

    Args:
        config (source_configure): 源代码配置
    """
    print("[gcc_builder] Downloading prerequisites...")
    _retry_command(config, "./contrib/download_prerequisites", "prerequisites", get_source_dir(config))


def get_system_package_list() -> list[str]:
    """获取系统包列表

    Returns:
        list[str]: 系统包列表
    """
    return system_package_list


__all__ = [
    "git_clone_type",
    "git_prefer_remote",
    "get_source_dir",
    "ensure_repository",
    "list_release_tags",
    "select_latest_release",
    "recent_release_tags",
    "resolve_latest",
    "checkout",
    "download_prerequisites",
    "get_system_package_list",
]
