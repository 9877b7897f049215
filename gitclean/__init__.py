"""gitclean: find every git repo under a directory and clean the safe ones."""

__version__ = "0.1.0"
