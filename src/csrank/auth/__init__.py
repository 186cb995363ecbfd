"""
CSRank identity bridge.

- steam: Steam OpenID 2.0 verification and Steam Web API profile lookup
- jwt: application access tokens
- users: player profile documents
"""
