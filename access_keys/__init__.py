"""
Access keys module - Access key records and admission control.

This module handles:
- AccessKey entity and domain logic
- Lazy expiry evaluation
- Login-count and session-binding admission
"""
