"""
Naming Tests — table/column derivation and relation accessor names.
"""

import pytest

from lorm.models.naming import (
    column_name_for,
    is_identifier,
    pluralize,
    relation_name_for,
    table_name_for,
    to_snake_case,
    to_table_case,
)


class TestSnakeCase:

    @pytest.mark.parametrize("name, expected", [
        ("UserDetail", "user_detail"),
        ("User", "user"),
        ("createdAt", "created_at"),
        ("HTTPRequestLog", "http_request_log"),
        ("already_snake", "already_snake"),
        ("kebab-case", "kebab_case"),
    ])
    def test_to_snake_case(self, name, expected):
        assert to_snake_case(name) == expected


class TestPluralize:

    @pytest.mark.parametrize("word, expected", [
        ("user", "users"),
        ("post", "posts"),
        ("category", "categories"),
        ("key", "keys"),
        ("status", "statuses"),
        ("box", "boxes"),
        ("person", "people"),
        ("leaf", "leaves"),
        ("user_detail", "user_details"),
        ("news", "news"),
    ])
    def test_pluralize(self, word, expected):
        assert pluralize(word) == expected

    def test_empty(self):
        assert pluralize("") == ""


class TestTableAndColumnNames:

    def test_table_case(self):
        assert to_table_case("UserDetail") == "user_details"
        assert to_table_case("AltUser") == "alt_users"

    def test_table_rename_wins(self):
        assert table_name_for("UserDetail", "people_v2") == "people_v2"
        assert table_name_for("UserDetail") == "user_details"

    def test_column_rename_wins(self):
        assert column_name_for("createdAt") == "created_at"
        assert column_name_for("createdAt", "ts") == "ts"

    def test_deterministic(self):
        assert [to_table_case("UserDetail") for _ in range(3)] == ["user_details"] * 3


class TestRelationName:

    def test_drops_id_suffix(self):
        assert relation_name_for("user_id") == "user"
        assert relation_name_for("parent_post_id") == "parent_post"

    def test_keeps_other_names(self):
        assert relation_name_for("owner") == "owner"
        assert relation_name_for("_id") == "_id"


class TestIdentifier:

    def test_valid(self):
        assert is_identifier("users")
        assert is_identifier("_x1")

    @pytest.mark.parametrize("name", ["", "1abc", "users; DROP TABLE x", "a-b", "a b", '"q"'])
    def test_invalid(self, name):
        assert not is_identifier(name)
