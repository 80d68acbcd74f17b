"""episodic: crawl listing, series and episode pages into one nested JSON catalog."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("episodic")
except PackageNotFoundError:
    __version__ = "0.0.0+dev"
