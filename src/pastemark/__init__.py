"""
pastemark: normalize pasted Markdown (heading levels, escaping, blank lines, and
regex replacements) to fit the conventions of the document it is pasted into.
"""

from pastemark.settings import RegexReplacement, TransformResult, TransformSettings
from pastemark.transform_api import transform_file, transform_files, transform_markdown

__all__ = [
    "RegexReplacement",
    "TransformResult",
    "TransformSettings",
    "transform_file",
    "transform_files",
    "transform_markdown",
]
