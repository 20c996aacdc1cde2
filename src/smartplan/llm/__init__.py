"""
LLM clients.

Components:
- client.py: OpenRouter (OpenAI-compatible) streaming client with model fallback
- offline.py: deterministic client for runs without an API key
"""
