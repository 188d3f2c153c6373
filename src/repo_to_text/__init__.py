"""repo_to_text: flatten a local repository into a single text report."""

__version__ = "0.1.0"
