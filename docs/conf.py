"""Sphinx configuration for the Smart Contact Manager documentation."""

import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.abspath(".."))

project = "Smart Contact Manager"
current_year = datetime.now().year
copyright = f"{current_year}, Smart Contact Manager"
author = "Smart Contact Manager Team"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
]

templates_path = ["_templates"]
exclude_patterns: list[str] = []

html_theme = "alabaster"
