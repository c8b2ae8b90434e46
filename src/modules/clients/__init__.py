from src.modules.clients.models import Client, normalize_num_dossier
from src.modules.clients.service import ClientService
from src.modules.clients.router import router

__all__ = [
    "Client",
    "normalize_num_dossier",
    "ClientService",
    "router",
]
