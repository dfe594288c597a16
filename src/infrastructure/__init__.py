"""
infrastructure - Concrete implementations of domain ports.

Contains all vendor-specific code: SQLite (aiosqlite), object-storage CSV
exports (requests + pandas), environment configuration (python-dotenv).
Depends on domain/ only (implements ports). Never imported by application/.
"""
