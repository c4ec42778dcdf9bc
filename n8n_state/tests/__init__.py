"""
Test suite for n8n-state.
"""
