"""
Label Extraction Backend Application.

A FastAPI service that extracts allergen and nutrition data from
food label PDFs using AI (OpenAI GPT-4o), with a vision fallback
for scanned documents.
"""

__version__ = "1.0.0"
