from .cli import RconCLI

__all__ = ["RconCLI"]
