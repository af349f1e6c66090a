"""Device fingerprint derivation from request headers."""
import hashlib

FINGERPRINT_HEADER = 'X-Device-Fingerprint'
MAX_FINGERPRINT_LENGTH = 128

def device_fingerprint(request) -> str:
    """Client-supplied fingerprint if present, otherwise a hash of request traits."""
    supplied = (request.headers.get(FINGERPRINT_HEADER) or '').strip()
    if supplied:
        return supplied[:MAX_FINGERPRINT_LENGTH]
    
    components = [
        request.headers.get('User-Agent', ''),
        request.headers.get('Accept-Language', ''),
        request.remote_addr or '',
        request.headers.get('Sec-CH-UA-Platform', ''),
    ]
    return hashlib.sha256('|'.join(components).encode()).hexdigest()
