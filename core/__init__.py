"""Core domain modules.

- market_data: FTSOv2 / CoinGecko feeds and the hybrid quote resolver
- signals: price classification and explanation (signal fusion)
- execution: simulated trade ledger and its journal
- portfolio: demo account balance and position checks
- config: environment-driven settings
- errors: error taxonomy
"""
