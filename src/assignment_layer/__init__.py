"""
LLM Assignment Layer for personal-finance transactions.

Assigns each transaction a label from a caller-supplied closed vocabulary:
- Categories (e.g. Groceries, Medical)
- Budgets (e.g. Food, Travel), where "no budget" is a valid answer

Architecture: FastAPI surface + Anthropic inference + rate limiting, circuit
breaking and retry/backoff + closed-vocabulary validation
"""

__version__ = "0.1.0"
