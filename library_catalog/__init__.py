"""Library Catalog - Core Application Package

This package contains the core application modules including:
- Catalog management logic (library.py)
- Data models (book.py)
- JSON persistence layer (database.py)
- Settings (config.py)
- CLI interface (main.py)
"""
