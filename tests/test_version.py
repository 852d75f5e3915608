import pytest

from git_link_auth.version import MINIMUM_GIT_VERSION, GitVersion


@pytest.mark.parametrize(
    "text, expected",
    [
        ("git version 2.39.2", "2.39.2"),
        ("git version 2.18", "2.18"),
        ("git version 2.30.1.windows.1", "2.30.1"),
        ("2.9", "2.9"),
    ],
)
def test_parse_extracts_first_version(text, expected):
    version = GitVersion.parse(text)

    assert version.is_valid()
    assert str(version) == expected


@pytest.mark.parametrize("text", ["", "git version", "version two", "2", "v2-18"])
def test_parse_without_version_is_invalid(text):
    version = GitVersion.parse(text)

    assert not version.is_valid()
    assert str(version) == ""


def test_constructor_requires_exact_version():
    assert not GitVersion("git version 2.18").is_valid()
    assert not GitVersion("2.18.1.2").is_valid()
    assert GitVersion("2.18.1").patch == 1


def test_components_compare_numerically():
    assert GitVersion("2.9") < GitVersion("2.18")
    assert GitVersion("2.18.1") > GitVersion("2.18")
    assert GitVersion("2.18.0") == GitVersion("2.18")
    assert sorted([GitVersion("10.0"), GitVersion("2.18"), GitVersion("2.9.5")]) == [
        GitVersion("2.9.5"),
        GitVersion("2.18"),
        GitVersion("10.0"),
    ]


def test_comparing_invalid_version_raises():
    with pytest.raises(ValueError):
        GitVersion() < GitVersion("2.18")


@pytest.mark.parametrize(
    "probed, minimum, satisfied",
    [
        ("2.18", "2.18", True),
        ("2.18.0", "2.18", True),
        ("2.39.2", "2.18", True),
        ("3.0", "2.18", True),
        ("2.9.3", "2.18", False),
        ("2.17.9", "2.18", False),
        ("1.99", "2.18", False),
        ("2.18.1", "2.18.2", False),
        ("2.18.3", "2.18.2", True),
        # No patch component: satisfies any patch with the same major.minor.
        ("2.18", "2.18.5", True),
    ],
)
def test_check_minimum(probed, minimum, satisfied):
    assert GitVersion(probed).check_minimum(GitVersion(minimum)) is satisfied


def test_invalid_version_fails_minimum():
    assert GitVersion.parse("not a version").check_minimum(MINIMUM_GIT_VERSION) is False


def test_invalid_minimum_raises():
    with pytest.raises(ValueError):
        GitVersion("2.18").check_minimum(GitVersion())


def test_minimum_git_version():
    assert str(MINIMUM_GIT_VERSION) == "2.18"


def test_invalid_versions_compare_equal_and_hash():
    assert GitVersion() == GitVersion.parse("unknown")
    assert GitVersion() != GitVersion("2.18")
    assert hash(GitVersion()) == hash(GitVersion("not a version"))
    assert len({GitVersion(), GitVersion("2.18"), GitVersion("2.18.0")}) == 2
