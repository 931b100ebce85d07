"""
Production planning: plans that turn a production request into batches.
"""
