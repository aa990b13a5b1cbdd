"""
Services layer - Application business logic
"""
