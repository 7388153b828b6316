def validate_chunk_id(type_: object, chunk_id: str | None) -> None:
    """Validate that a chunk id is exactly 4 ASCII characters."""
    if chunk_id is None:
        return

    if not chunk_id.isascii() or len(chunk_id) != 4:
        raise ValueError("Chunk id must be exactly 4 ASCII characters, e.g. 'data' or 'fmt '")
