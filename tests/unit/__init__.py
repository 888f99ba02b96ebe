"""
Unit tests for the LLM Assignment Layer.

Test individual components in isolation:
- Resilience (rate limiter, circuit breaker, resilient client)
- Anthropic client (httpx MockTransport) and prompt builder
- Validation (response parser, closed-vocabulary validator)
- Assignment service and orchestrator (scripted provider)
- API routes (TestClient with dependency overrides)
"""
