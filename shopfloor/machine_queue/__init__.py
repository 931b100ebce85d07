"""
Machine queue: machines and the ordered work waiting on each of them.
"""
