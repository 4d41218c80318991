"""
Sponsor tree services.

- chain_resolver: upline chain and downline traversal
"""

from income_engine.services.sponsor.chain_resolver import ChainLink, SponsorChainResolver

__all__ = [
    "ChainLink",
    "SponsorChainResolver",
]
