"""
Core domain models
"""
