"""
Pocket Assistant - Source Package

A personal finance and scheduling assistant: chat with an AI that
falls back across providers, track transactions, import bank
statements, convert currencies and keep a calendar.

DESIGN PRINCIPLES:
1. Remote services are optional, local fallbacks always answer
2. Nothing a provider does is fatal to the caller
3. LLM output is parsed strictly or not at all
4. State lives on instances, never in module globals
5. Storage layer is swappable
"""

__version__ = "0.1.0"
__author__ = "Pocket Assistant Team"
