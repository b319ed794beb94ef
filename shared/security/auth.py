import os


def get_auth_token() -> str | None:
    return os.environ.get("REGISTRY_AUTH_TOKEN") or None


def auth_metadata() -> tuple[tuple[str, str], ...]:
    """gRPC call metadata carrying the registry token, empty when unset"""
    token = get_auth_token()
    if not token:
        return ()
    return (("authorization", f"Bearer {token}"),)
