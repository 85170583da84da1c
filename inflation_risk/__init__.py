"""
Macro Inflation Risk Engine
===========================
Monthly alignment of mixed-frequency macro series and tail-risk analysis
of inflation, implementing:
- Quarterly → monthly interpolation and (year, month) key joins
- Growth-rate and log-shift transforms with complete-case filtering
- OLS inflation model with VIF and holdout evaluation
- Historical VaR / CVaR
- Monte Carlo VaR / CVaR with bootstrapped residuals
- Stressed-scenario simulation
"""

__version__ = "1.0.0"
