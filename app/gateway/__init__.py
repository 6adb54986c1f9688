from app.gateway.functions import FunctionsClient
from app.gateway.store import OutfitStore

__all__ = ["FunctionsClient", "OutfitStore"]
