from wabba_server.models.association import ModAssociation
from wabba_server.models.mod import Mod, ModState
from wabba_server.models.modlist import Modlist

__all__ = [
    "Mod",
    "ModAssociation",
    "ModState",
    "Modlist",
]
