"""
FastAPI RESTful API for the Library Management System.

This package provides:
- Book record creation, retrieval, update and deletion
- Paginated book listings ordered by title
- Case-insensitive text search over title, author and genre
"""
