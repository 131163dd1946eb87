"""passvault — a local, encrypted password vault for the command line."""

__version__ = "0.1.0"


def find_records(master_password: str, query=None) -> list:
    """Read records straight from the vault — the one-liner for scripts.

    Derives the key from *master_password*, loads ``~/.pass_vault`` and
    returns every record, or only those whose name or username contains
    *query* (case-insensitive).

    Args:
        master_password: The vault's master password.
        query: Optional search term.

    Returns:
        A list of :class:`passvault.models.Record`.

    Raises:
        passvault.store.BadVaultError: If the vault exists but does not
            decrypt with this password.

    Example::

        from passvault import find_records

        (github,) = find_records("hunter2", "github")
        print(github.password)
    """
    from .crypto import derive_key
    from .store import VaultRepository

    store = VaultRepository().load(derive_key(master_password), strict=True)
    if query is None:
        return list(store.entries)
    return store.search(query)
