"""
Vouch activity: Solana wallet activity ingestion for reputation proofs.

Pulls a wallet's transaction history from Helius, classifies transactions
into program deployments and swaps, and derives the numeric inputs (program
TVL estimates, fiat trading volume) consumed by the proof circuits.
"""

__version__ = "0.1.0"
