"""exe-stitcher.

A build utility that turns a baseline runtime binary into a self-contained
executable by appending an application payload and a bootstrap prelude, then
patching the binary's marker regions so the runtime can find them.
"""

__all__: list[str] = ["__version__"]

__version__: str = "0.1.0"
