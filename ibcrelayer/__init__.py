"""Top-level package for the pluggable IBC relayer CLI."""

from importlib import metadata


def __getattr__(name: str) -> str:
    """Expose the package version via ``ibcrelayer.__version__``."""
    if name == "__version__":
        try:
            return metadata.version("ibcrelayer")
        except metadata.PackageNotFoundError:
            return "0.0.0"
    raise AttributeError(name)


__all__ = ["__version__"]
