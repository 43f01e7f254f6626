"""
Notifications module - Delivery of access keys to purchasers.
"""
