"""
crumb - Encrypted secrets in a single file

Stores hierarchical secrets (/prod/api/key=value) in one file encrypted to an
SSH key pair, and exports them as shell environment variables per project.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("crumb")
except PackageNotFoundError:
    __version__ = "0.4.0"

__all__ = [
    "__version__",
]
