"""Core application for the clinic backend.

This package contains the identity and booking models, the scheduling
rules, authentication services and the views/routes of the JSON API.
"""
