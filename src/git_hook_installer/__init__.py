"""git-hook-installer: managed formatter pre-commit hooks for git repositories."""

__version__ = "0.4.0"
