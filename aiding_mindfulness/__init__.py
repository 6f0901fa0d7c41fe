"""Personalized breathing recommendations and mood analytics."""

__version__ = "0.1.0"


def main(*args, **kwargs):
    from .cli import main as _main
    return _main(*args, **kwargs)


__all__ = ["main", "__version__"]
