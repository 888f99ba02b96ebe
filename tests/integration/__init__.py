"""
Integration tests for the LLM Assignment Layer.

Run against the real Anthropic API (marked with @pytest.mark.integration) and
are skipped unless ANTHROPIC_API_KEY is set.
"""
