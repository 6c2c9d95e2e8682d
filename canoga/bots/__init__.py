"""
Bots module - Move selection for automated players and help suggestions.

Provides:
- BotPolicy: Interface for move selection
- BotDecision: A proposed move with its explanation
- StrategyPolicy: The fixed Canoga heuristic
"""

from .policy import BotPolicy, BotDecision, StrategyPolicy, pick_best_combo

__all__ = [
    "BotPolicy",
    "BotDecision",
    "StrategyPolicy",
    "pick_best_combo",
]
