import hashlib
from fastapi import Request
from yourvoice.config import settings


def get_client_ip(request: Request) -> str:
    """
    Resolve the client IP

    Proxy headers first (x-forwarded-for, x-real-ip, cf-connecting-ip),
    then the socket peer address.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    cf_ip = request.headers.get("cf-connecting-ip")
    if cf_ip:
        return cf_ip.strip()

    if request.client and request.client.host:
        host = request.client.host
        if host.startswith("::ffff:"):
            host = host[len("::ffff:"):]
        return host

    return "unknown"


def hash_ip(ip: str) -> str:
    """One-way salted hash, raw IPs are never stored"""
    return hashlib.sha256((ip + settings.IP_HASH_SALT).encode("utf-8")).hexdigest()
