from importlib.metadata import PackageNotFoundError, version

from regclean.diff import get_diff
from regclean.dirty import dirty_clean
from regclean.editor import cleanup_editor_output, cleanup_regulation_text
from regclean.text import de_prettify, prettify
from regclean.text_warnings import make_warnings

try:
    __version__ = version("regclean")
except PackageNotFoundError:
    # Running from a source checkout without installing
    __version__ = "0.0.0-dev"

__all__ = [
    "dirty_clean",
    "cleanup_editor_output",
    "cleanup_regulation_text",
    "prettify",
    "de_prettify",
    "get_diff",
    "make_warnings",
    "__version__",
]
