"""autodep - run a Python script with its dependencies installed automatically."""

__version__ = "0.1.0"
