HEX_PREFIX = "0x"


def render_identity(identity: str | bytes) -> str:
    """Render an identity as a 0x-prefixed hex string"""
    if isinstance(identity, (bytes, bytearray)):
        return HEX_PREFIX + bytes(identity).hex()
    identity = identity.strip()
    if identity.lower().startswith(HEX_PREFIX):
        return identity
    return HEX_PREFIX + identity


def normalize_identity(identity: str | bytes) -> str:
    """Lower-cased hex without prefix, so both sides compare the same way"""
    return render_identity(identity)[len(HEX_PREFIX):].lower()


def identities_match(left: str | bytes, right: str | bytes) -> bool:
    return normalize_identity(left) == normalize_identity(right)
