"""
Repositories package
"""
