"""Models, request validation and HTTP clients for edge device fleet management."""

__version__ = "0.1.0"
__all__ = [
    "errors",
    "models",
    "headers",
    "imagebuilder",
    "inventory",
    "playbookdispatcher",
    "fdo",
    "logsetup",
]