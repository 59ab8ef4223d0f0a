"""
IDL Scanner - Anchor IDL Account Hijack Scanner

Checks whether a deployed Solana program embeds Anchor IDL tooling whose
metadata account sits at a predictable address nobody has claimed yet.
"""

__version__ = "1.0.0"
__author__ = "Security Researcher"
