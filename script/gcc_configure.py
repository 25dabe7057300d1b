import dataclasses
import os
import typing
import common
from gcc_version import gcc_version

default_triplet: typing.Final[str] = "x86_64-linux-gnu"

# gcc支持的语言前端
language_list: typing.Final[tuple[str, ...]] = ("c", "c++", "objc", "obj-c++", "fortran", "ada", "go", "d", "m2", "rust", "jit", "lto")
default_language_list: typing.Final[tuple[str, ...]] = ("c", "c++", "objc", "fortran", "ada", "go", "d")


@dataclasses.dataclass(frozen=True)
class build_configuration:
    """一次本地工具链构建的配置，构造后不可修改"""

    version: gcc_version
    build: str
    host: str
    target: str
    prefix: str  # 安装目录
    program_suffix: str  # 可执行文件后缀，用于多个版本共存
    languages: tuple[str, ...]
    multilib: bool = False
    bootstrap: bool = True
    checking: str = "release"
    extra_options: tuple[str, ...] = ()

    @property
    def bin_dir(self) -> str:
        return os.path.join(self.prefix, "bin")

    def get_configure_options(self) -> list[str]:
        """生成传递给configure脚本的选项列表"""
        option_list = [
            "-v",
            f"--build={self.build}",
            f"--host={self.host}",
            f"--target={self.target}",
            f"--prefix={self.prefix}",
            f"--program-suffix={self.program_suffix}",
            f"--enable-checking={self.checking}",
            f"--enable-languages={','.join(self.languages)}",
            "--enable-multilib" if self.multilib else "--disable-multilib",
        ]
        if not self.bootstrap:
            option_list.append("--disable-bootstrap")
        option_list += self.extra_options
        return option_list


def get_prefix(home: str, version: gcc_version) -> str:
    """安装目录，与源代码目录和构建目录位于同一目录下"""
    return os.path.join(home, f"gcc-{version}")


def make_configuration(
    version: gcc_version,
    home: str,
    build: str = default_triplet,
    languages: typing.Iterable[str] = default_language_list,
    bootstrap: bool = True,
    extra_options: typing.Iterable[str] = (),
) -> build_configuration:
    """构造本地工具链的构建配置，build、host和target相同

    Args:
        version (gcc_version): 要构建的版本
        home (str): 工作目录
        build (str, optional): 构建平台. 默认为x86_64-linux-gnu.
        languages (typing.Iterable[str], optional): 启用的语言前端. 默认为c,c++,objc,fortran,ada,go,d.
        bootstrap (bool, optional): 是否进行三阶段自举. 默认自举.
        extra_options (typing.Iterable[str], optional): 额外的configure选项. 默认为空.
    """
    common.check_triplet(build)
    language_tuple = tuple(dict.fromkeys(languages))
    assert language_tuple, "At least one language should be enabled."
    for language in language_tuple:
        assert language in language_list, f'Unknown language "{language}".'
    return build_configuration(
        version=version,
        build=build,
        host=build,
        target=build,
        prefix=get_prefix(os.path.abspath(home), version),
        program_suffix=f"-{version}",
        languages=language_tuple,
        bootstrap=bootstrap,
        extra_options=tuple(extra_options),
    )


__all__ = ["default_triplet", "language_list", "default_language_list", "build_configuration", "get_prefix", "make_configuration"]
