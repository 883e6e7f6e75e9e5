"""Document ID generators.

Firestore can assign IDs server-side, but records created by the console get
a client-side CUID2 so the ID is known before the write returns.
"""

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()


def generate_document_id() -> str:
    """Return a new collision-resistant document ID (CUID2)."""
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result
