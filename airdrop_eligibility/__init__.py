"""
Airdrop Eligibility: multi-source wallet and identity eligibility scoring.

Aggregates on-chain history, social-graph activity, content reputation and
cross-chain bridge usage into per-source scores and one composite score with
recommendations and risk factors. Modular architecture: source adapters,
per-source scoring engines, historical comparator, result cache, orchestrator.
"""

__version__ = "0.1.0"
