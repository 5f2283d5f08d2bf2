"""
Database Module Initialization
"""
