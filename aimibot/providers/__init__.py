"""
Completion backends.

The agent only depends on ``LLMProvider``; ``OpenAIProvider`` covers
OpenRouter, OpenAI and any other chat-completions compatible endpoint.
"""
