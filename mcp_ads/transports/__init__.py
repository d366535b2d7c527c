from .http import create_app
from .stdio import StdioServer, run_stdio

__all__ = ["create_app", "StdioServer", "run_stdio"]
