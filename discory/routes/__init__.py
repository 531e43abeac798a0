"""
Discory Backend — API Routes Package
=====================================

Route Inventory (all under /api unless noted):
    - auth.py:           POST /auth/register, /auth/login
    - vinyls.py:         catalogue CRUD, collections, stats
    - followers.py:      follow graph, requests, search, recent feed
    - interactions.py:   likes, comments, comment likes
    - notifications.py:  inbox, unread count, mark read, push subscribe
    - users.py:          profiles, own account, profile stats
    - scan.py:           barcode / title release lookup
    - music.py:          Deezer search proxy
    - analytics.py:      collection analytics, personal stats, compare
    - health.py:         GET /health (no prefix)

Routes stay thin: read the request, call one service method, shape the
response. Business rules and status decisions live in the services.
"""
