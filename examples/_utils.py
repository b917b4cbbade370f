"""Shared collaborators for the runnable examples."""

from __future__ import annotations

import typing as t


class Inventory(t.Protocol):
    """Stock levels keyed by product code."""

    def reserve(self, sku: str, quantity: int) -> bool:
        """Reserve *quantity* items of *sku*."""
        ...

    def release(self, sku: str, quantity: int) -> None:
        """Return reserved items to stock."""
        ...

    def price(self, sku: str) -> float:
        """Return the unit price of *sku*."""
        ...


class Mailer(t.Protocol):
    """Outgoing notifications."""

    def send(self, to: str, subject: str, *, urgent: bool = False) -> None:
        """Send a message."""
        ...


class Checkout:
    """Order workflow exercised by the examples."""

    def __init__(self, inventory: Inventory, mailer: Mailer) -> None:
        self.inventory = inventory
        self.mailer = mailer

    def order(self, customer: str, sku: str, quantity: int) -> float:
        """Reserve stock, notify *customer* and return the total."""
        if not self.inventory.reserve(sku, quantity):
            self.mailer.send(customer, f"{sku} is out of stock")
            return 0.0
        total = self.inventory.price(sku) * quantity
        self.mailer.send(customer, f"Ordered {quantity} x {sku}")
        return total

    def cancel(self, customer: str, sku: str, quantity: int) -> None:
        """Release stock and tell *customer*."""
        self.inventory.release(sku, quantity)
        self.mailer.send(customer, f"Cancelled {sku}", urgent=True)
