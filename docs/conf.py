"""Sphinx configuration for the DidaX documentation."""

# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# -- Project information -----------------------------------------------------

project = "DidaX"
author = "DidaX developers"
copyright = "2026, DidaX developers"

# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.doctest",
    "sphinx_design",
]

autoclass_content = "both"
autodoc_member_order = "bysource"
napoleon_google_docstring = True
napoleon_numpy_docstring = False

exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]

# -- Options for HTML output -------------------------------------------------

html_theme = "furo"

html_theme_options = {
    "light_css_variables": {
        "color-brand-primary": "#3b9ab2",
        "color-brand-content": "#3b9ab2",
    },
    "dark_css_variables": {
        "color-brand-primary": "#3b9ab2",
        "color-brand-content": "#3b9ab2",
    },
}
