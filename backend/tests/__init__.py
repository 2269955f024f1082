"""
Project Management API - Test Suite

Structure:
- unit/: Unit tests for services, policies and utilities
- integration/: Integration tests for API endpoints
"""
