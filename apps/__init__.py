"""Domain apps of the cubicle booking service."""
