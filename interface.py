# interface.py
"""
Core Interface Layer for the Jewelcraft backend.

Builds the in-memory stores once from the seed files and wires their
cross-store references (cart -> catalog, designers -> catalog). server.py
attaches the result to ``app.state.stores``; every router reaches its store
through a small ``Request`` dependency declared next to it.
"""
import logging
from pathlib import Path
from typing import Optional

from cart import CartStore
from custom_orders import CustomOrderStore
from db import load_seed
from designers import DesignerStore
from products import CatalogStore
from users import SessionStore

log = logging.getLogger(__name__)


class Stores:
    def __init__(self, seed_dir: Optional[Path] = None, session_file: Optional[Path] = None):
        self.seed_dir = seed_dir
        self.catalog = CatalogStore(load_seed("products", seed_dir))
        self.cart = CartStore(self.catalog, load_seed("cart", seed_dir))
        self.custom_orders = CustomOrderStore(load_seed("custom_orders", seed_dir))
        self.designers = DesignerStore(self.catalog, load_seed("designers", seed_dir))
        self.session = SessionStore(load_seed("users", seed_dir), storage_path=session_file)

    def reset(self) -> None:
        """Reloads every store from the seed files and signs the current user out."""
        self.catalog.reset(load_seed("products", self.seed_dir))
        self.cart.reset(load_seed("cart", self.seed_dir))
        self.custom_orders.reset(load_seed("custom_orders", self.seed_dir))
        self.designers.reset(load_seed("designers", self.seed_dir))
        self.session.reset(load_seed("users", self.seed_dir))
        self.session.forget_current_user()
        log.info("All stores reset from seed data.")


def build_stores(seed_dir: Optional[Path] = None, session_file: Optional[Path] = None) -> Stores:
    stores = Stores(seed_dir=seed_dir, session_file=session_file)
    log.info("In-memory stores initialised.")
    return stores
