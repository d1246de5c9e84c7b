# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Sphinx configuration for sqlchain documentation."""

import os
import sys

sys.path.insert(0, os.path.abspath("../src"))

project = "sqlchain"
copyright = "2025, Softwell S.r.l."
author = "Genropy Team"
release = "0.1.0"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.intersphinx",
    "sphinx_autodoc_typehints",
    "myst_parser",
]

# Google-style docstrings; __init__ docs are merged into the class
napoleon_numpy_docstring = False
napoleon_include_init_with_doc = True

autodoc_default_options = {
    "members": True,
    "member-order": "bysource",
}
autodoc_typehints = "description"
# Optional drivers are not needed to document their adapters
autodoc_mock_imports = ["pymysql", "psycopg"]

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
}

html_theme = "furo"
html_title = "sqlchain"

# index.md carries the automodule directives in an eval-rst block
source_suffix = {".md": "markdown"}
root_doc = "index"
exclude_patterns = ["_build"]
