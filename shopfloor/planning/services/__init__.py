"""
Planning services.
"""

from shopfloor.planning.services.plans import Planning, split_quantity

__all__ = [
    'Planning',
    'split_quantity',
]
