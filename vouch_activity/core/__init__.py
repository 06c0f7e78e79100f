"""
Core utilities: errors, response cache, retry and bounded concurrency.

Shared by the Helius client, the price oracle and the pipeline orchestrators.
"""
