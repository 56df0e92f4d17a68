"""Commerce Agent - an LLM agent that takes payments on-chain."""

__version__ = "0.1.0"
