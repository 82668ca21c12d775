"""gsc-cli: Google Search Console from the terminal."""

__version__ = "0.1.0"
