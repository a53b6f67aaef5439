# Routes package init
"""
Profilebook Backend — API Routes Package
=========================================

Route Inventory:
    - profile.py:  GET /data/{id}, POST /registrate, POST /login,
                   POST /update-data, POST /delete-img, DELETE /delete/{id}
    - uploads.py:  POST /upload-profile, POST /upload-background
    - posts.py:    GET /posts/{id}, GET /images/{id}, POST /post,
                   POST /post_textonly, POST /post_imgonly,
                   POST /delete_imgpost, POST /delete-post
    - news.py:     POST /news
    - health.py:   GET /health

Paths and payload shapes are the ones the existing web client uses, which
is why they mix dashes and underscores.

Routes stay thin: they parse the request, call a service, and schedule
superseded-file removal as a background task once the database change is
committed.
"""
