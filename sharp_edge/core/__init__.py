"""Core mathematics and configuration for the Sharp Edge decision engine.

This package contains pure, sport-agnostic building blocks:

- ``odds_math``      — odds conversion, vig removal, Φ, EV, slippage, attribution
- ``kelly``          — fractional Kelly sizing and the unit scale
- ``league_config``  — per-league constants (σ baselines, gating thresholds)
- ``game_interface`` — game DTOs and the score-model ABC
- ``variance``       — context-aware σ for spreads and totals

Nothing in this package imports from ``sharp_edge.services``.
All modules are side-effect-free and unit-testable in isolation.
"""
