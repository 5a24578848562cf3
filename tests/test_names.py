"""
Test validated name value objects.
"""

import pytest

from content_store import RepositoryName, ValidationError
from content_store.model.names import validate_entry_name


class TestRepositoryName:

    @pytest.mark.parametrize("name", ["repo", "My-Repo_2", "a", "x" * 100])
    def test_valid(self, name):
        assert RepositoryName(name).value == name
        assert str(RepositoryName(name)) == name

    def test_empty(self):
        with pytest.raises(ValidationError) as exc_info:
            RepositoryName("")

        assert exc_info.value.field == "repository name"

    def test_too_long(self):
        with pytest.raises(ValidationError):
            RepositoryName("x" * 101)

    @pytest.mark.parametrize("name", ["has space", "dot.name", "slash/name", "ünï", "semi;colon"])
    def test_disallowed_characters(self, name):
        with pytest.raises(ValidationError):
            RepositoryName(name)

    def test_equality_and_hash(self):
        assert RepositoryName("repo") == RepositoryName("repo")
        assert RepositoryName("repo") != RepositoryName("other")
        assert len({RepositoryName("repo"), RepositoryName("repo")}) == 1


class TestEntryName:

    @pytest.mark.parametrize("name", ["README.md", ".gitignore", "with space", "ünïcode", "..hidden"])
    def test_valid(self, name):
        assert validate_entry_name(name) == name

    @pytest.mark.parametrize("name", ["", ".", "..", "a/b", "/abs", "nul\0"])
    def test_invalid(self, name):
        with pytest.raises(ValidationError):
            validate_entry_name(name)

    def test_undecodable_name(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_entry_name("bad\udcff.txt")

        assert exc_info.value.field == "entry name"

    def test_length_counted_in_bytes(self):
        assert validate_entry_name("é" * 127)  # 254 bytes
        with pytest.raises(ValidationError):
            validate_entry_name("é" * 128)  # 256 bytes
