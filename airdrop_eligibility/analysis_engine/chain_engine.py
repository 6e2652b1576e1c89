"""
Chain engine: on-chain transaction history for an address.

Scores transaction volume, smart-contract usage, protocol diversity and
ecosystem coverage. Requires an address; handles are never sent to the indexer.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from airdrop_eligibility.adapters.schemas import ChainTransaction
from airdrop_eligibility.analysis_engine.engine import ScoringEngine
from airdrop_eligibility.analysis_engine.factors import (
    EXCELLENT,
    FAIR,
    GOOD,
    POOR,
    safe_ratio,
    status_of,
    table,
)
from airdrop_eligibility.analysis_engine.models import EligibilityFactor, SourceType

WEI_PER_ETH = 10**18
RECENT_WINDOW_DAYS = 30
INACTIVE_AFTER_DAYS = 90
NEW_WALLET_DAYS = 30
FAILED_TX_RATIO_RISK = 0.25

# Canonical bridge contracts on Base (L2 standard bridge and common bridge routers)
BRIDGE_CONTRACTS = frozenset(
    {
        "0x4200000000000000000000000000000000000010",
        "0x3154cf16ccdb4c6d922629664174b904d80f2c35",
        "0xb8901acb165ed027e32754e0ffe830802919727f",
    }
)

ECOSYSTEM_BASE = "Base Ecosystem"
ECOSYSTEM_DEFI = "DeFi Protocols"
ECOSYSTEM_BRIDGE = "Bridge Protocols"
ECOSYSTEM_L2 = "Layer 2 Protocols"

FACTOR_TRANSACTIONS = "transactions"
FACTOR_CONTRACTS = "contract_interactions"
FACTOR_PROTOCOLS = "protocol_diversity"
FACTOR_ECOSYSTEMS = "ecosystem_coverage"

TRANSACTIONS_TABLE = table(
    FACTOR_TRANSACTIONS, 30,
    (100, 30, EXCELLENT),
    (50, 25, GOOD),
    (20, 20, GOOD),
    (10, 15, FAIR),
    (5, 10, FAIR),
    (1, 5, POOR),
)
CONTRACTS_TABLE = table(
    FACTOR_CONTRACTS, 25,
    (20, 25, EXCELLENT),
    (10, 20, GOOD),
    (5, 15, FAIR),
    (1, 10, POOR),
)
PROTOCOLS_TABLE = table(
    FACTOR_PROTOCOLS, 20,
    (10, 20, EXCELLENT),
    (5, 15, GOOD),
    (3, 10, FAIR),
    (1, 5, POOR),
)
# 5 points per qualifying ecosystem
ECOSYSTEMS_TABLE = table(
    FACTOR_ECOSYSTEMS, 20,
    (4, 20, EXCELLENT),
    (3, 15, GOOD),
    (2, 10, FAIR),
    (1, 5, POOR),
)


def eligible_ecosystems(
    tx_count: int, contract_calls: int, protocols: int, touched_bridge: bool
) -> list[str]:
    """Ecosystem programs the wallet's activity qualifies for."""
    programs: list[str] = []
    if tx_count >= 5:
        programs.append(ECOSYSTEM_BASE)
    if contract_calls >= 10:
        programs.append(ECOSYSTEM_DEFI)
    if touched_bridge:
        programs.append(ECOSYSTEM_BRIDGE)
    if tx_count >= 20 and protocols >= 3:
        programs.append(ECOSYSTEM_L2)
    return programs


class ChainEngine(ScoringEngine):
    source = SourceType.ONCHAIN
    requires_address = True
    positive_message = "Excellent on-chain profile! Continue your current activity strategy"
    default_recommendations = (
        "Make your first on-chain transactions to start building eligibility",
        "Interact with DeFi protocols and smart contracts",
        "Bridge assets to a Layer 2 network such as Base",
    )
    default_risk_factors = ("No on-chain activity detected",)

    def derive(
        self, raw: list[ChainTransaction], now: datetime
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        txs = list(raw)
        contract_calls = [tx for tx in txs if tx.is_contract_call]
        protocols = {tx.to_address for tx in contract_calls}
        touched_bridge = any(tx.to_address in BRIDGE_CONTRACTS for tx in txs)
        programs = eligible_ecosystems(len(txs), len(contract_calls), len(protocols), touched_bridge)

        stamps = sorted(tx.timestamp for tx in txs if tx.timestamp is not None)
        window_start = now - timedelta(days=RECENT_WINDOW_DAYS)
        metrics: dict[str, Any] = {
            "transaction_count": len(txs),
            "contract_interactions": len(contract_calls),
            "unique_protocols": len(protocols),
            "eligible_ecosystems": len(programs),
            "recent_transactions_30d": sum(1 for ts in stamps if ts >= window_start),
            "failed_transactions": sum(1 for tx in txs if tx.is_error),
            "total_value_eth": sum(tx.value for tx in txs) / WEI_PER_ETH,
            "account_age_days": (now - stamps[0]).days if stamps else 0,
            "days_since_last_tx": (now - stamps[-1]).days if stamps else None,
        }
        details: dict[str, Any] = {
            "ecosystems": programs,
            "chain_ids": sorted({tx.chain_id for tx in txs}),
            "first_transaction_at": stamps[0].isoformat() if stamps else None,
            "last_transaction_at": stamps[-1].isoformat() if stamps else None,
        }
        return metrics, details

    def has_profile(self, raw: Any, metrics: dict[str, Any]) -> bool:
        return metrics["transaction_count"] > 0

    def score_factors(
        self, metrics: dict[str, Any], details: dict[str, Any]
    ) -> list[EligibilityFactor]:
        return [
            TRANSACTIONS_TABLE.evaluate(metrics["transaction_count"]),
            CONTRACTS_TABLE.evaluate(metrics["contract_interactions"]),
            PROTOCOLS_TABLE.evaluate(metrics["unique_protocols"]),
            ECOSYSTEMS_TABLE.evaluate(metrics["eligible_ecosystems"]),
        ]

    def premium_gate(self, factors: list[EligibilityFactor], metrics: dict[str, Any]) -> bool:
        return status_of(factors, FACTOR_CONTRACTS) is EXCELLENT

    def recommend(self, factors: list[EligibilityFactor], metrics: dict[str, Any]) -> list[str]:
        recs: list[str] = []
        if metrics["transaction_count"] < 10:
            recs.append("Increase on-chain activity with more transactions")
        if metrics["contract_interactions"] < 5:
            recs.append("Interact with more DeFi protocols and smart contracts")
        if metrics["eligible_ecosystems"] < 3:
            recs.append("Diversify across more blockchain ecosystems")
        if metrics["unique_protocols"] < 3:
            recs.append("Explore a wider range of on-chain protocols")
        if metrics["recent_transactions_30d"] == 0:
            recs.append("Resume on-chain activity - recent transactions matter for snapshot-based airdrops")
        return recs

    def assess_risks(self, metrics: dict[str, Any], details: dict[str, Any]) -> list[str]:
        risks: list[str] = []
        tx_count = metrics["transaction_count"]
        if tx_count < 5:
            risks.append("Very low transaction count")
        if metrics["contract_interactions"] == 0:
            risks.append("No smart contract interactions")
        idle = metrics["days_since_last_tx"]
        if idle is not None and idle > INACTIVE_AFTER_DAYS:
            risks.append("Inactive wallet address")
        if details["first_transaction_at"] is not None and metrics["account_age_days"] < NEW_WALLET_DAYS:
            risks.append("Very new wallet - may not qualify for retroactive airdrops")
        if safe_ratio(metrics["failed_transactions"], tx_count) > FAILED_TX_RATIO_RISK:
            risks.append("High share of failed transactions")
        return risks
