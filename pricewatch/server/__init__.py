from .web_server import QueryServer, create_app

__all__ = ["QueryServer", "create_app"]
