"""
Restaurant images.

Responsibilities:
- Store uploaded restaurant photos under a per-restaurant directory.
- Point the restaurant's ``photo`` field at the public URL of the upload.
"""
