"""CasiLocal - content bot for the Madrid laptop-café directory."""

__version__ = "0.3.0"
