"""MAGI, the Worldchain DeFi knowledge core: corpus retrieval and protocol cache."""
