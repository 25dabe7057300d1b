import pytest

import common
from gcc_version import gcc_version, is_release_tag


@pytest.mark.parametrize("text", ["14.1.0", "0.0.0", "4.8.5", " 13.2.0\n"])
def test_parse_accepts_three_components(text: str) -> None:
    version = gcc_version.parse(text)
    assert str(version) == text.strip()


@pytest.mark.parametrize("text", ["14.1", "14.1.0.1", "", "14..0", ".1.0", "14.1.", "14.a.0", "-1.2.3", "14,1,0"])
def test_parse_rejects_malformed(text: str) -> None:
    with pytest.raises(common.invalid_version_format):
        gcc_version.parse(text)


def test_invalid_version_is_a_build_error() -> None:
    with pytest.raises(common.build_error, match="X.Y.Z"):
        gcc_version.parse("14")


def test_tag() -> None:
    assert gcc_version.parse("13.2.0").tag == "releases/gcc-13.2.0"


def test_from_tag() -> None:
    assert gcc_version.from_tag("releases/gcc-12.2.0") == gcc_version(12, 2, 0)


def test_ordering_is_numeric() -> None:
    assert gcc_version.parse("9.5.0") < gcc_version.parse("10.1.0")
    assert max(gcc_version.parse(v) for v in ("13.1.0", "13.10.0", "13.2.0")) == gcc_version(13, 10, 0)


@pytest.mark.parametrize(
    "tag, expected",
    [
        ("releases/gcc-13.2.0", True),
        ("releases/gcc-13.1.0-RC1", False),
        ("releases/gcc-3.4", False),
        ("basepoints/gcc-14", False),
        ("releases/gcc-13.2.0-20230101", False),
    ],
)
def test_is_release_tag(tag: str, expected: bool) -> None:
    assert is_release_tag(tag) is expected
