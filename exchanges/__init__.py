"""
Price Source Package

One subpackage per exchange, each with:
- api_client.py: REST request building, payload models and pure parse functions
- __init__.py: the SourceAdapter implementation and its failure policy

The modular design allows adding new sources without modifying existing code.
"""
