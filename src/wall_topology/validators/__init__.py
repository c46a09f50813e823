"""Validation for floor plans.

- rooms: parent/child consistency, area sanity, overlapping siblings
- walls: wall type resolution, thickness and U-value ranges, open ends
"""
