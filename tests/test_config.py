import pytest
from pydantic import ValidationError

from ah_cli_manager.models.config import ManagerConfig


def test_defaults():
    config = ManagerConfig()

    assert config.project_folder == "./"
    assert config.api_version is None
    assert config.namespace_prefix == ""
    assert config.compress_files is False
    assert config.sort_order is None
    assert config.allow_concurrence is False
    assert config.resolved_ignore_file == "./.ahignore.json"


@pytest.mark.parametrize("value, expected", [(58, "58.0"), ("58", "58.0"), (57.0, "57.0"), ("", None)])
def test_api_version_is_normalized(value, expected):
    assert ManagerConfig(api_version=value).api_version == expected


@pytest.mark.parametrize("value", ["abc", True, [58]])
def test_invalid_api_version(value):
    with pytest.raises(ValidationError):
        ManagerConfig(api_version=value)


def test_sort_order_must_be_known():
    assert ManagerConfig(sort_order="alphabetAsc").sort_order == "alphabetAsc"
    with pytest.raises(ValidationError):
        ManagerConfig(sort_order="random")


def test_assignment_is_validated():
    config = ManagerConfig()
    with pytest.raises(ValidationError):
        config.sort_order = "random"


def test_ignore_file_follows_project_folder_until_set(tmp_path):
    config = ManagerConfig(project_folder=tmp_path)
    assert config.resolved_ignore_file == f"{tmp_path}/.ahignore.json"

    config.project_folder = "/other/project/"
    assert config.resolved_ignore_file == "/other/project/.ahignore.json"

    config.ignore_file = "/custom/ignore.json"
    assert config.resolved_ignore_file == "/custom/ignore.json"


def test_output_path_cannot_be_a_file(tmp_path):
    existing = tmp_path / "package.xml"
    existing.write_text("<Package/>", encoding="utf-8")

    assert ManagerConfig(output_path=tmp_path).output_path == str(tmp_path)
    with pytest.raises(ValidationError):
        ManagerConfig(output_path=existing)
