"""HTTP surface for the visual novel player."""
