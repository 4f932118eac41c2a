"""
codemd - A tool for rendering a source tree into one markdown document.

This package scans a directory tree, filters files through .gitignore and
.codeignore rules, directory exclusions and extension filters, and writes
the project structure plus every kept file's contents to a markdown file,
split into numbered parts when it grows too large.
"""

__version__ = "1.1.0"
__author__ = "codemd Team"
