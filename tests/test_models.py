# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for core data models."""

import json

import pytest

from projgraph.models import (
    FileContext,
    FileNode,
    FileRecord,
    PackageManifest,
    ProjectContext,
    derive_extension,
)


class TestDeriveExtension:
    """Tests for extension derivation."""

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("a.ts", "ts"),
            ("src/component.test.tsx", "tsx"),
            ("archive.tar.gz", "gz"),
            ("Makefile", None),
            (".env", None),
            ("config/.eslintrc.json", "json"),
            ("trailing.", ""),
            ("src/notes.", ""),
            ("...", ""),
            ("..", None),
            ("dir.d/file", None),
            ("Upper.TS", "TS"),
        ],
    )
    def test_derive_extension(self, path, expected):
        assert derive_extension(path) == expected


class TestFileRecord:
    """Tests for FileRecord."""

    def test_from_path_derives_extension(self):
        record = FileRecord.from_path("src/app.ts")

        assert record.path == "src/app.ts"
        assert record.extension == "ts"

    def test_record_is_immutable(self):
        record = FileRecord.from_path("a.ts")

        with pytest.raises(AttributeError):
            record.path = "b.ts"  # type: ignore[misc]

    def test_identity_is_path(self):
        assert FileRecord.from_path("a.ts") == FileRecord("a.ts", "ts")
        assert len({FileRecord.from_path("a.ts"), FileRecord.from_path("a.ts")}) == 1

    def test_to_dict_keeps_absent_extension(self):
        assert FileRecord.from_path("LICENSE").to_dict() == {"path": "LICENSE", "extension": None}

    def test_dict_roundtrip(self):
        record = FileRecord.from_path("lib/x.js")
        assert FileRecord.from_dict(record.to_dict()) == record


class TestFileNode:
    def test_name_is_last_component(self):
        node = FileNode.for_path("src/utils/format.ts")

        assert node.path == "src/utils/format.ts"
        assert node.name == "format.ts"


class TestFileContext:
    """Tests for FileContext."""

    def test_defaults_are_empty_lists(self):
        context = FileContext(path="a.ts", extension="ts")

        assert context.imports == []
        assert context.imported_by == []

    def test_summary_line(self):
        context = FileContext(
            path="src/a.ts", extension="ts", imports=["src/b.ts", "src/c.ts"], imported_by=["x.ts"]
        )

        assert context.summary_line() == "- src/a.ts (imports: 2, imported by: 1)"

    def test_to_dict(self):
        context = FileContext(path="a.ts", extension="ts", imports=["b.ts"])

        assert context.to_dict() == {
            "path": "a.ts",
            "extension": "ts",
            "imports": ["b.ts"],
            "imported_by": [],
        }


class TestPackageManifest:
    """Tests for PackageManifest."""

    def test_to_dict_omits_absent_fields(self):
        manifest = PackageManifest(name="pkg", scripts={"test": "jest"})

        assert manifest.to_dict() == {"name": "pkg", "scripts": {"test": "jest"}}

    def test_empty_manifest_serializes_to_empty_dict(self):
        assert PackageManifest().to_dict() == {}

    def test_dict_roundtrip(self):
        manifest = PackageManifest(
            name="pkg",
            version="0.0.1",
            dependencies={"a": "1"},
            dev_dependencies={"b": "2"},
            scripts={"build": "tsc"},
        )

        assert PackageManifest.from_dict(manifest.to_dict()) == manifest


class TestProjectContext:
    """Tests for ProjectContext."""

    def test_get_file(self):
        context = ProjectContext(files=[FileContext("a.ts", "ts"), FileContext("b.ts", "ts")])

        assert context.get_file("b.ts") is context.files[1]
        assert context.get_file("missing.ts") is None

    def test_to_dict_is_json_serializable(self):
        context = ProjectContext(
            files=[
                FileContext("a.ts", "ts", imports=["b.ts"]),
                FileContext("b.ts", "ts", imported_by=["a.ts"]),
            ],
            manifest=PackageManifest(name="pkg"),
        )

        data = json.loads(json.dumps(context.to_dict()))

        assert data["manifest"] == {"name": "pkg"}
        assert data["files"][0]["imports"] == ["b.ts"]
        assert data["files"][1]["imported_by"] == ["a.ts"]

    def test_to_dict_without_manifest(self):
        assert ProjectContext().to_dict() == {"files": [], "manifest": None}

    def test_from_dict(self):
        data = {
            "files": [{"path": "a.ts", "extension": "ts", "imports": [], "imported_by": []}],
            "manifest": {"name": "pkg"},
        }

        context = ProjectContext.from_dict(data)

        assert context.files[0].path == "a.ts"
        assert context.manifest == PackageManifest(name="pkg")

    def test_summary_lines(self):
        context = ProjectContext(files=[FileContext("a.ts", "ts", imports=["b.ts"])])

        assert context.summary_lines() == ["- a.ts (imports: 1, imported by: 0)"]
