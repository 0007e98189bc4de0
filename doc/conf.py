# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# -- Project information -----------------------------------------------------

project = 'PyCoupleTools'
copyright = '2026, PyCoupleTools authors'
author = 'PyCoupleTools authors'
release = '0.1.0'

# -- General configuration ---------------------------------------------------

extensions = ['numpydoc', 'sphinx.ext.autodoc', 'sphinx.ext.autosummary', 'sphinx_rtd_theme']

templates_path = ['_templates']
exclude_patterns = []

# The interface classes are documented from their numpy style docstrings
numpydoc_class_members_toctree = False
numpydoc_validation_checks = {"all", "SA01", "EX01", "ES01"}

# mpi4py needs an MPI library, which the documentation build does not have
autodoc_mock_imports = ['mpi4py']

# -- Options for HTML output -------------------------------------------------

html_theme = 'sphinx_rtd_theme'
html_static_path = ['_static']
