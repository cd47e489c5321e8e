"""Backend fetch layer — the authoritative lists synchronizers load from."""
