"""
Discory Backend — Services Layer
=================================

What:  Business rules between the routes (HTTP) and the database.
How:   Each module exposes a singleton whose async methods take an
       AsyncSession first and return schema objects. Errors are raised as
       DiscoryError subclasses and mapped to status codes in main.py.

Service Inventory:
    - auth_service:          register, login, JWT issue/verify
    - vinyl_service:         catalogue CRUD, collections, stats
    - follow_service:        follow edges, visibility, search
    - feed_service:          recent items from followed accounts
    - interaction_service:   likes, comments, comment likes
    - notification_service:  emitter (store → push → socket) and inbox
    - push_service:          one Web Push delivery (pywebpush)
    - user_service:          profiles and profile stats
    - analytics_service:     collection analytics and comparisons
    - scan_service:          barcode/title lookup over the providers below
    - discogs_service, cover_art_service (iTunes), music_service (Deezer)
"""
