"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build a summarisation prompt from a restaurant's reviews.
- Call the Groq LLM for a one-sentence summary of what people think.
- Return nothing when the LLM is unavailable so callers can show a fallback message.
"""
