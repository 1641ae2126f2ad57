from importlib import metadata

try:
    __version__ = metadata.version("lsopt")
except metadata.PackageNotFoundError:
    # running from a source checkout that was never installed
    __version__ = "0.0.0"
