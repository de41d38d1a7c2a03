"""WebWallet: personal investment portfolio tracker"""

__version__ = "1.0.0"
