"""
Medical Assistant Suite gateway.

This gateway provides:
- A static registry of clinical document generation tools
- Prompt compilation from tool templates and caller input
- Relay of compiled prompts to an OpenAI-compatible chat completions API
- Health checks and CORS-friendly JSON responses
"""

__version__ = "1.0.0"
