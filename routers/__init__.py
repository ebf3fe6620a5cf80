# routers/__init__.py
from .invoices import router as invoices_router
from .move_in import router as move_in_router
from .payments import router as payments_router

__all__ = ["invoices_router", "move_in_router", "payments_router"]
