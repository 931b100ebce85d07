"""
Production management: requests, batches, steps and the orchestration
that reserves material and queues work for a batch.
"""
