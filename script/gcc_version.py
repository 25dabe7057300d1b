import functools
import packaging.version as version
import typing
import common

tag_prefix: typing.Final[str] = "releases/gcc-"  # 正式发布tag的前缀


@functools.total_ordering
class gcc_version:
    """三段式的gcc版本号，如14.1.0"""

    major: int  # 主版本号
    minor: int  # 次版本号
    patch: int  # 修订号

    def __init__(self, major: int, minor: int, patch: int) -> None:
        assert min(major, minor, patch) >= 0, f"Invalid version {major}.{minor}.{patch}"
        self.major = major
        self.minor = minor
        self.patch = patch

    @classmethod
    def parse(cls, text: str) -> "gcc_version":
        """解析并校验版本号字符串，要求恰好包含两个"."且三个字段均为非负整数

        Args:
            text (str): 用户输入的版本号

        Raises:
            common.invalid_version_format: 版本号格式错误

        Returns:
            gcc_version: 解析后的版本号
        """
        field = text.strip().split(".")
        if len(field) != 3 or not all(item.isdecimal() and item.isascii() for item in field):
            raise common.invalid_version_format(text)
        return cls(*(int(item) for item in field))

    @classmethod
    def from_tag(cls, tag: str) -> "gcc_version":
        """从形如releases/gcc-X.Y.Z的tag中解析版本号

        Args:
            tag (str): git tag

        Raises:
            common.invalid_version_format: tag不是正式发布版本
        """
        if not tag.startswith(tag_prefix):
            raise common.invalid_version_format(tag)
        return cls.parse(tag[len(tag_prefix) :])

    @property
    def tag(self) -> str:
        """该版本对应的git tag"""
        return f"{tag_prefix}{self}"

    def to_packaging(self) -> version.Version:
        return version.Version(str(self))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def __repr__(self) -> str:
        return f"gcc_version({self.major}, {self.minor}, {self.patch})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, gcc_version):
            return NotImplemented
        return self.to_packaging() == other.to_packaging()

    def __lt__(self, other: "gcc_version") -> bool:
        return self.to_packaging() < other.to_packaging()

    def __hash__(self) -> int:
        return hash((self.major, self.minor, self.patch))


def is_release_tag(tag: str) -> bool:
    """检查tag是否为正式发布版本，预发布和快照版本返回False"""
    try:
        gcc_version.from_tag(tag)
    except common.invalid_version_format:
        return False
    return True


__all__ = ["tag_prefix", "gcc_version", "is_release_tag"]
