"""Memo persistence and ordering.

Layout (directory backend):
    ~/.memopad/memos/
    ├── 3f2a…c1.md      # One file per memo: front-matter block + raw body
    └── 9b07…e4.md

Layout (blob backend):
    ~/.memopad/memos.json   # {"<id>.md": "<encoded record>", ...}

Load path:  backend.list() → codec.decode() → migration.normalize()
Write path: ordering (pure) → autosave / repository.save_one() → codec.encode()
"""
