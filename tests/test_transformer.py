import json

import pytest

from ah_cli_manager.core.transformer import transform_types_to_cli_input
from ah_cli_manager.exceptions import WrongDatatypeError, WrongFormatError
from ah_cli_manager.models.metadata import deserialize_metadata_types


@pytest.mark.parametrize("absent", [None, ""])
def test_absent_selection_returns_none(absent):
    assert transform_types_to_cli_input(absent) is None


@pytest.mark.parametrize("empty", [[], {}])
def test_empty_selection_returns_empty_list(empty):
    assert transform_types_to_cli_input(empty) == []


def test_type_list_is_returned_as_is():
    assert transform_types_to_cli_input(["ApexClass", "CustomObject:Account"]) == [
        "ApexClass",
        "CustomObject:Account",
    ]


def test_type_list_with_non_strings_is_rejected():
    with pytest.raises(WrongDatatypeError, match="Strings only"):
        transform_types_to_cli_input(["ApexClass", 3])


def test_tree_is_flattened_to_topmost_checked_nodes(metadata_tree):
    assert transform_types_to_cli_input(metadata_tree) == [
        "CustomObject:Account",
        "CustomObject:Case:Subject",
        "ApexClass",
    ]


def test_checked_type_hides_its_children(metadata_tree):
    metadata_tree["CustomObject"]["checked"] = True

    assert transform_types_to_cli_input(metadata_tree) == ["CustomObject", "ApexClass"]


def test_only_types_returns_checked_types(metadata_tree):
    assert transform_types_to_cli_input(metadata_tree, only_types=True) == ["ApexClass"]


def test_tree_from_models(metadata_tree):
    models = deserialize_metadata_types(metadata_tree)

    assert transform_types_to_cli_input(models) == [
        "CustomObject:Account",
        "CustomObject:Case:Subject",
        "ApexClass",
    ]


def test_tree_from_json_string_and_file(metadata_tree, tmp_path):
    json_file = tmp_path / "types.json"
    json_file.write_text(json.dumps(metadata_tree), encoding="utf-8")

    expected = ["CustomObject:Account", "CustomObject:Case:Subject", "ApexClass"]
    assert transform_types_to_cli_input(json.dumps(metadata_tree)) == expected
    assert transform_types_to_cli_input(str(json_file)) == expected
    assert transform_types_to_cli_input(json_file) == expected


@pytest.mark.parametrize("bad", ["{not json", "[1, 2]", {"CustomObject": {"childs": []}}])
def test_malformed_tree_raises_wrong_format(bad):
    with pytest.raises(WrongFormatError):
        transform_types_to_cli_input(bad)


def test_nodes_below_items_are_ignored():
    tree = {
        "CustomObject": {
            "childs": {
                "Account": {
                    "childs": {
                        "Name": {"childs": {"Nested": {"checked": True}}},
                        "Phone": {"checked": True},
                    }
                }
            }
        }
    }

    assert transform_types_to_cli_input(tree) == ["CustomObject:Account:Phone"]
