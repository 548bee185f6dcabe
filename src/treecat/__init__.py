"""
treecat - flatten a directory tree into a single text file.

This package walks a directory, filters entries by extension and by the
patterns in the target's .gitignore, and writes every selected file as a
labelled record (relative path, contents, blank line) into one output file.
"""

__version__ = "0.1.0"
__author__ = "treecat contributors"
