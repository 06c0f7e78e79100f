"""
Helius integration: async client, response models and the enhanced
transaction decoder.
"""
