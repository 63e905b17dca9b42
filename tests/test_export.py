"""Unit tests for CSV export of tenant resources."""

import json

import pandas as pd

from export import flatten_resources, save_resource_csv


class TestFlatten:

    def test_fixed_columns_and_missing_fields(self):
        df = flatten_resources(
            [{"id": "role1", "name": "admin", "extra": 1}, {"id": "role2"}],
            ["id", "name", "description"],
        )
        assert list(df.columns) == ["id", "name", "description"]
        assert df.loc[0, "name"] == "admin"
        assert pd.isna(df.loc[1, "name"])

    def test_nested_values_serialized(self):
        df = flatten_resources([{"id": "rs1", "scopes": [{"value": "read:data"}]}], ["id", "scopes"])
        assert json.loads(df.loc[0, "scopes"]) == [{"value": "read:data"}]

    def test_empty_listing(self):
        df = flatten_resources([], ["id", "name"])
        assert df.empty
        assert list(df.columns) == ["id", "name"]


class TestSaveResourceCsv:

    def test_writes_timestamped_and_latest(self, tmp_path):
        roles = [{"id": "role1", "name": "admin", "description": "Administrator"}]
        path = save_resource_csv("roles", roles, tmp_path / "out")

        assert path.exists()
        assert path.name.startswith("roles_")
        latest = tmp_path / "out" / "latest" / "roles_latest.csv"
        assert latest.exists()
        df = pd.read_csv(latest)
        assert df.to_dict("records") == roles

    def test_unknown_resource_uses_all_keys(self, tmp_path):
        path = save_resource_csv("widgets", [{"b": 1, "a": 2}], tmp_path)
        assert list(pd.read_csv(path).columns) == ["a", "b"]
