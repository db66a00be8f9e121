"""
Client for the library REST API
"""
