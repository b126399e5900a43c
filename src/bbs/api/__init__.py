"""
HTTP API for the BBS backend
"""
