import hashlib

from flask import current_app, request


def client_address() -> str:
    """Caller's network address, honouring a configured proxy header."""
    header = current_app.config.get('CLIENT_IP_HEADER')
    if header:
        forwarded = request.headers.get(header)
        if forwarded:
            return forwarded.split(',')[0].strip()
    return request.remote_addr or 'unknown'


def hash_identity(address: str) -> str:
    """One-way, deterministic digest; raw addresses are never stored."""
    return hashlib.sha256(address.encode('utf-8')).hexdigest()
