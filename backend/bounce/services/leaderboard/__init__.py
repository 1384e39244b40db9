"""Leaderboard services: submission guard, ranking queries, throttling.

Services take the store session as a constructor argument; HTTP routes pass
in the request-scoped ``db.session``.
"""
