import hashlib


def fingerprint(referrer: str, user_agent: str) -> str:
    """
    Visitor identity: hex MD5 of referrer followed by user agent.

    Deterministic across processes, so the same visitor maps to the same
    dedup member after a restart.
    """
    digest = hashlib.md5((referrer + user_agent).encode("utf-8"))
    return digest.hexdigest()
