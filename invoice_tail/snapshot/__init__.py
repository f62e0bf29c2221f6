"""Order invoice-data snapshots."""

from invoice_tail.snapshot.builder import load_snapshot, snapshot, take_order_snapshot

__all__ = ["load_snapshot", "snapshot", "take_order_snapshot"]
