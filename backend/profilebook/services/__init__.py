# Services package init
"""
Profilebook Backend — Services Layer
=====================================

Service Inventory:
    - ProfileService: registration, login, profile details, picture columns, deletion
    - PostService:    posts and standalone images
    - StorageService: per-profile image directories on disk
    - NewsService:    proxy to the external news search API

Services never touch the filesystem and the database in one call; the
routes sequence them as write-new → commit → delete-old.
"""
