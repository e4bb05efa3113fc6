"""brun -- watch an upstream branch, pull and run a command on change."""

__version__ = "0.1.0"
