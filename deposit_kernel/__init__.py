"""
Deposit Kernel - time deposit quoting and commission distribution

A transactional core for opening time deposit contracts with:
- Tiered rate interpolation and term earnings
- Manual and agent-hierarchy referral commission splits
- Idempotent, atomic multi-document deposit creation
- Structured audit trails for every money movement
"""

__version__ = "0.1.0"
