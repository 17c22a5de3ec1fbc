"""Starship Realtime - windowed Solana DEX buy-trade feed."""

__version__ = "0.1.0"
