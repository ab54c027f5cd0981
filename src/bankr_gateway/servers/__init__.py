from .apps import GatewayServer, create_app
from .security import create_proxy_token, verify_proxy_token, save_key_to_env

__all__ = [
    "GatewayServer",
    "create_app",
    "create_proxy_token",
    "verify_proxy_token",
    "save_key_to_env"
]
