from .handlers import BridgeResponse, BridgeService
from .server import build_service, create_app

__all__ = ["BridgeResponse", "BridgeService", "build_service", "create_app"]
