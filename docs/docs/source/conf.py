# Sphinx configuration for the Gestyx API docs.

import os
import sys

# Import the package straight from src/ so the docs build without installing it
sys.path.insert(0, os.path.abspath('../../../src'))

project = 'Gestyx'
copyright = '2025, Gestyx developers'
author = 'Gestyx developers'
release = '0.10'

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",      # Google-style docstrings
    "sphinx.ext.viewcode",      # "View Source" links
    "myst_parser",              # Markdown pages
    "sphinx_autodoc_typehints", # render annotations in signatures
    "sphinx.ext.autosectionlabel",
]

templates_path = ['_templates']
exclude_patterns = []

html_theme = "furo"
html_static_path = ['_static']

autodoc_default_options = {
    "members": True,
    "undoc-members": False,
    "show-inheritance": True,
}
autodoc_member_order = "bysource"  # follow module order: types, then operations

napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_include_init_with_doc = True

autosectionlabel_prefix_document = True  # api.rst and index.rst share heading names

autodoc_mock_imports = [
    "numpy",  # autodoc imports gestyx without the numeric stack
]
