"""
Billing module - Activation of access keys from payment events.

This module handles:
- Normalized billing events
- Create-or-renew reconciliation of access keys
- Cancellation on subscription deletion
- Stripe webhook payload normalization
"""
