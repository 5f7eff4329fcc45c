"""walletview — connect a wallet and browse its transaction history."""

__version__ = "0.1.0"
