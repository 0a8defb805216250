# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared fixtures for projgraph tests."""

import json
from pathlib import Path
from typing import Dict

import pytest


def write_files(root: Path, files: Dict[str, str]) -> None:
    """Create files (and parent directories) under root."""
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """Create a small TypeScript project.

    Layout:
    - src/index.ts imports ./app, ./utils (directory index) and lodash
    - src/app.ts imports ./utils/format twice and ../config.json
    - src/utils/index.ts re-exports ./format
    - src/utils/format.ts has no imports
    - src/legacy.js requires ./app and ./missing
    - README.md, config.json (not scanned)
    - dist/ is excluded by .gitignore
    - package.json manifest
    """
    project_root = tmp_path / "sample_project"
    project_root.mkdir()

    write_files(
        project_root,
        {
            ".gitignore": "dist/\n*.log\n",
            "README.md": "# Sample\nimport './src/app'\n",
            "config.json": "{}\n",
            "src/index.ts": (
                "import { App } from './app';\n"
                "import * as utils from './utils';\n"
                "import _ from 'lodash';\n"
            ),
            "src/app.ts": (
                "import { format } from './utils/format';\n"
                "import { pad } from \"./utils/format\";\n"
                "import config from '../config.json';\n"
                "export class App {}\n"
            ),
            "src/utils/index.ts": "export * from './format';\nimport './format';\n",
            "src/utils/format.ts": "export const format = (s: string) => s;\n",
            "src/legacy.js": "const app = require('./app');\nconst gone = require('./missing');\n",
            "dist/bundle.js": "require('../src/app');\n",
            "debug.log": "noise\n",
            "package.json": json.dumps(
                {
                    "name": "sample",
                    "version": "1.2.3",
                    "dependencies": {"lodash": "^4.17.21"},
                    "devDependencies": {"typescript": "^5.0.0"},
                    "scripts": {"build": "tsc"},
                    "private": True,
                }
            ),
        },
    )
    return project_root
