import json

import pytest

from ah_cli_manager.exceptions import (
    InvalidDirectoryPathError,
    InvalidFilePathError,
    MissingDirectoryError,
    MissingFileError,
    PathValidationError,
    WrongDirectoryPathError,
    WrongFilePathError,
    WrongFormatError,
)
from ah_cli_manager.utils.validator import (
    is_file,
    validate_file_path,
    validate_folder_path,
    validate_metadata_json,
)


@pytest.fixture
def xml_file(tmp_path):
    path = tmp_path / "Account.object-meta.xml"
    path.write_text("<CustomObject/>", encoding="utf-8")
    return path


def test_is_file(xml_file, tmp_path):
    assert is_file(xml_file) is True
    assert is_file(str(xml_file)) is True
    assert is_file(tmp_path) is False
    assert is_file(None) is False


def test_validate_file_path_returns_absolute_path(xml_file, monkeypatch):
    monkeypatch.chdir(xml_file.parent)

    assert validate_file_path(xml_file.name) == str(xml_file.resolve())


def test_validate_file_path_errors(xml_file, tmp_path):
    with pytest.raises(WrongFilePathError):
        validate_file_path(123)
    with pytest.raises(MissingFileError):
        validate_file_path(tmp_path / "missing.xml")
    with pytest.raises(InvalidFilePathError):
        validate_file_path(tmp_path)


def test_validate_folder_path_errors(xml_file, tmp_path):
    assert validate_folder_path(tmp_path) == str(tmp_path.resolve())
    with pytest.raises(WrongDirectoryPathError):
        validate_folder_path({})
    with pytest.raises(MissingDirectoryError):
        validate_folder_path(tmp_path / "missing")
    with pytest.raises(InvalidDirectoryPathError) as exc_info:
        validate_folder_path(xml_file)
    assert isinstance(exc_info.value, PathValidationError)


def test_validate_metadata_json_sources(tmp_path):
    tree = {"ApexClass": {"checked": True}}
    json_file = tmp_path / "tree.json"
    json_file.write_text(json.dumps(tree), encoding="utf-8")

    assert validate_metadata_json(tree) is tree
    assert validate_metadata_json(json.dumps(tree)) == tree
    assert validate_metadata_json(json_file) == tree


def test_validate_metadata_json_rejects_bad_files_and_values(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")

    with pytest.raises(WrongFormatError):
        validate_metadata_json(broken)
    with pytest.raises(WrongFormatError):
        validate_metadata_json(42)
