"""
Site Easy Migration

Packages a WordPress site's database and files into a single zip archive for
one-shot migration or backup.

Supports:
- Database export via mysqldump, WP-CLI, or a built-in SQL generator
- Verification of every dump by file size, not exit status
- Recursive archiving of the site root with self-exclusion
- A web trigger with login, a CLI, and a remote client
"""

__version__ = "1.0.0"
