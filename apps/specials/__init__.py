"""Specials app: capacity-safe promotional offers for directory businesses."""
