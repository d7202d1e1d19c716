from .connection_data import ConnectionDataService

__all__ = ["ConnectionDataService"]
